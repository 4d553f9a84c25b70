"""Configuration system for ratebridge.

Supports loading from YAML files, dicts, or programmatic construction via
Pydantic models. The config selects the engine and carries every
construction option, so a resampler can be described entirely in a file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ratebridge.core.errors import ConfigurationError
from ratebridge.core.ratio import as_float
from ratebridge.core.types import BoundaryPolicy, ChannelLayout, QualityPreset, SizingMode
from ratebridge.dsp.designer import QUALITY_PRESETS, SincParameters


class FftParameters(BaseModel):
    """Settings used by the fft engine only."""

    sub_chunks: int = Field(default=1, ge=1)
    backend: str = "numpy"  # numpy | scipy


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"


class ResamplerConfig(BaseModel):
    """Top-level resampler configuration.

    Examples:
        # Programmatic
        config = ResamplerConfig(engine="sinc", ratio=(48000, 44100), channels=2)

        # From YAML
        config = ResamplerConfig.from_yaml("resampler.yaml")

        # Shorthand
        config = ResamplerConfig.from_dict({
            "input_rate": 44100,
            "output_rate": 48000,
            "channels": 2,
            "sinc_len": 256,
        })
    """

    engine: str = "sinc"  # sinc | fft
    ratio: Union[Tuple[int, int], float, str] = 1.0
    channels: int = Field(default=1, ge=1)
    mode: SizingMode = SizingMode.FIXED_INPUT
    quality: Union[QualityPreset, SincParameters] = QualityPreset.BALANCED
    chunk_size: int = Field(default=1024, ge=1)
    max_chunk_size: Optional[int] = None
    ratio_bounds: Optional[Tuple[float, float]] = None
    boundary: BoundaryPolicy = BoundaryPolicy.ZERO
    layout: ChannelLayout = ChannelLayout.PLANAR
    dtype: Literal["float32", "float64"] = "float64"
    fft: FftParameters = Field(default_factory=FftParameters)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("ratio")
    @classmethod
    def _check_ratio(cls, value: Any) -> Any:
        as_float(value)
        return value

    @property
    def ratio_value(self) -> float:
        """The ratio as a float, whatever form it was given in."""
        return as_float(self.ratio)

    @classmethod
    def from_yaml(cls, path: str | Path) -> ResamplerConfig:
        """Load configuration from a YAML file."""
        path = Path(path)
        with path.open() as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        return cls._from_raw(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResamplerConfig:
        """Load configuration from a dictionary.

        Supports both the full nested format and a flat shorthand format:

        Full format:
            {"ratio": [48000, 44100], "quality": {"sinc_len": 256}, "fft": {"sub_chunks": 2}}

        Shorthand format:
            {"input_rate": 44100, "output_rate": 48000, "sinc_len": 256, "sub_chunks": 2}
        """
        return cls._from_raw(data)

    @classmethod
    def _from_raw(cls, data: dict[str, Any]) -> ResamplerConfig:
        """Normalize and construct config from a raw dict."""
        data = dict(data)

        # Sample rates instead of a ratio
        if "input_rate" in data or "output_rate" in data:
            if "input_rate" not in data or "output_rate" not in data:
                raise ConfigurationError("input_rate and output_rate must be given together")
            data["ratio"] = (data.pop("output_rate"), data.pop("input_rate"))

        # Flat sinc keys refine the preset (or the custom parameters) given in `quality`
        sinc_keys = ("sinc_len", "f_cutoff", "oversampling_factor", "interpolation", "window")
        overrides = {key: data.pop(key) for key in sinc_keys if key in data}
        if overrides:
            data["quality"] = {**cls._quality_as_dict(data.get("quality")), **overrides}

        flat_mappings = {
            "sub_chunks": ("fft", "sub_chunks"),
            "fft_backend": ("fft", "backend"),
            "log_level": ("logging", "level"),
        }
        for flat_key, (section, nested_key) in flat_mappings.items():
            if flat_key in data:
                data[section] = dict(data.get(section) or {})
                data[section][nested_key] = data.pop(flat_key)

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid resampler configuration: {exc}") from exc

    @staticmethod
    def _quality_as_dict(quality: Any) -> dict[str, Any]:
        if quality is None:
            quality = QualityPreset.BALANCED
        if isinstance(quality, SincParameters):
            return quality.model_dump()
        if isinstance(quality, dict):
            return dict(quality)
        try:
            return QUALITY_PRESETS[QualityPreset(quality)].model_dump()
        except ValueError as exc:
            raise ConfigurationError(f"Unknown quality preset '{quality}'") from exc


def load_config(source: str | Path | dict[str, Any] | ResamplerConfig) -> ResamplerConfig:
    """Load a ResamplerConfig from any supported source.

    Args:
        source: A YAML file path (str/Path), a dict, an engine name, or an
            existing ResamplerConfig.

    Returns:
        A ResamplerConfig instance.
    """
    if isinstance(source, ResamplerConfig):
        return source
    if isinstance(source, dict):
        return ResamplerConfig.from_dict(source)
    if isinstance(source, (str, Path)):
        path = Path(source)
        if path.suffix in (".yaml", ".yml"):
            if not path.exists():
                raise ConfigurationError(f"Config file not found: {path}")
            return ResamplerConfig.from_yaml(path)
        # Maybe it's an engine name shorthand?
        return ResamplerConfig.from_dict({"engine": str(source)})
    raise TypeError(f"Cannot load config from {type(source)}")


# Default YAML template documenting every option
DEFAULT_CONFIG_YAML = """\
# ratebridge configuration

engine: sinc            # sinc | fft
ratio: [48000, 44100]   # output_rate / input_rate: number, "160/147" or [out, in]
# input_rate: 44100     # alternative to ratio
# output_rate: 48000
channels: 2
mode: fixed_input       # fixed_input | fixed_output | fixed_both (fft only)
chunk_size: 1024
# max_chunk_size: 4096  # sinc: upper bound for set_chunk_size
layout: planar          # planar | interleaved
dtype: float64          # float32 | float64

# sinc engine
quality: balanced       # fastest | fast | balanced | high | best
# quality:              # or custom parameters
#   sinc_len: 256
#   f_cutoff: 0.95
#   oversampling_factor: 256
#   interpolation: cubic     # nearest | linear | cubic
#   window: blackman_harris2 # blackman | blackman2 | blackman_harris | blackman_harris2 | hann | hann2
# ratio_bounds: [0.5, 2.0]
boundary: zero          # zero | edge | reflect

# fft engine
fft:
  sub_chunks: 1
  backend: numpy        # numpy | scipy

logging:
  level: INFO
"""
