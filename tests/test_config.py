"""Tests for the configuration system and config-driven construction."""

import importlib
from fractions import Fraction

import pytest
import yaml
from loguru import logger

import ratebridge
from ratebridge.config import (
    DEFAULT_CONFIG_YAML,
    FftParameters,
    LoggingConfig,
    ResamplerConfig,
    load_config,
)
from ratebridge.core.errors import ConfigurationError
from ratebridge.core.types import BoundaryPolicy, QualityPreset, SizingMode, WindowFunction
from ratebridge.dsp.designer import SincParameters
from ratebridge.engines.fft import FftResampler
from ratebridge.engines.registry import create_resampler
from ratebridge.engines.sinc import SincResampler
from ratebridge.log import configure_logging


class TestResamplerConfig:
    """Tests for the Pydantic models."""

    def test_defaults(self):
        config = ResamplerConfig()
        assert config.engine == "sinc"
        assert config.ratio == 1.0
        assert config.channels == 1
        assert config.mode is SizingMode.FIXED_INPUT
        assert config.quality is QualityPreset.BALANCED
        assert config.boundary is BoundaryPolicy.ZERO
        assert config.fft == FftParameters()
        assert config.logging == LoggingConfig()

    def test_ratio_forms(self):
        """A ratio can be a number, a pair or a fraction string."""
        assert ResamplerConfig(ratio=(48000, 44100)).ratio_value == pytest.approx(48000 / 44100)
        assert ResamplerConfig(ratio="160/147").ratio_value == pytest.approx(160 / 147)
        assert ResamplerConfig(ratio=2).ratio_value == 2.0

    def test_custom_quality(self):
        config = ResamplerConfig(quality={"sinc_len": 64, "window": "hann2"})
        assert isinstance(config.quality, SincParameters)
        assert config.quality.window is WindowFunction.HANN2


class TestFromDict:
    """Tests for dict loading and the flat shorthand."""

    def test_nested_format(self):
        config = ResamplerConfig.from_dict({
            "engine": "fft",
            "ratio": [48000, 44100],
            "channels": 2,
            "fft": {"sub_chunks": 4, "backend": "numpy"},
        })
        assert config.engine == "fft"
        assert config.ratio == (48000, 44100)
        assert config.fft.sub_chunks == 4

    def test_sample_rate_shorthand(self):
        """input_rate/output_rate become an (out, in) ratio pair."""
        config = ResamplerConfig.from_dict({"input_rate": 44100, "output_rate": 48000})
        assert config.ratio == (48000, 44100)

    def test_sample_rates_must_come_together(self):
        with pytest.raises(ConfigurationError):
            ResamplerConfig.from_dict({"input_rate": 44100})

    def test_flat_sinc_keys_refine_preset(self):
        """Flat sinc keys start from the named preset."""
        config = ResamplerConfig.from_dict({"quality": "best", "sinc_len": 1024})
        assert isinstance(config.quality, SincParameters)
        assert config.quality.sinc_len == 1024
        assert config.quality.interpolation.value == "cubic"

    def test_flat_sinc_keys_default_to_balanced(self):
        config = ResamplerConfig.from_dict({"window": "blackman"})
        assert config.quality.sinc_len == 128
        assert config.quality.window is WindowFunction.BLACKMAN

    def test_flat_mappings(self):
        config = ResamplerConfig.from_dict({
            "sub_chunks": 3,
            "fft_backend": "scipy",
            "log_level": "DEBUG",
        })
        assert config.fft.sub_chunks == 3
        assert config.fft.backend == "scipy"
        assert config.logging.level == "DEBUG"

    def test_input_not_mutated(self):
        data = {"input_rate": 8000, "output_rate": 16000, "log_level": "DEBUG"}
        ResamplerConfig.from_dict(data)
        assert data == {"input_rate": 8000, "output_rate": 16000, "log_level": "DEBUG"}

    @pytest.mark.parametrize(
        "data",
        [
            {"channels": 0},
            {"ratio": -1.0},
            {"ratio": "fast"},
            {"mode": "sideways"},
            {"quality": "ultra"},
            {"quality": "ultra", "sinc_len": 64},
            {"dtype": "int16"},
            {"sub_chunks": 0},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(ConfigurationError):
            ResamplerConfig.from_dict(data)


class TestLoadConfig:
    """Tests for YAML files and the load_config entry point."""

    def test_default_yaml_is_valid(self):
        config = ResamplerConfig.from_dict(yaml.safe_load(DEFAULT_CONFIG_YAML))
        assert config.ratio == (48000, 44100)
        assert config.channels == 2

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "resampler.yaml"
        path.write_text("engine: fft\ninput_rate: 44100\noutput_rate: 48000\nsub_chunks: 2\n")
        config = load_config(path)
        assert config.engine == "fft"
        assert config.fft.sub_chunks == 2
        assert load_config(str(path)).ratio == (48000, 44100)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("engine: [sinc\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "missing.yaml")

    def test_passthrough_and_shorthand(self):
        config = ResamplerConfig(channels=2)
        assert load_config(config) is config
        assert load_config({"channels": 3}).channels == 3
        assert load_config("fft").engine == "fft"

    def test_unsupported_source(self):
        with pytest.raises(TypeError):
            load_config(42)


class TestCreateResampler:
    """Tests for building engines from configuration."""

    def test_sinc_from_dict(self):
        resampler = create_resampler({
            "input_rate": 44100,
            "output_rate": 48000,
            "channels": 2,
            "quality": "fast",
            "boundary": "edge",
        })
        assert isinstance(resampler, SincResampler)
        assert resampler.ratio == pytest.approx(48000 / 44100)
        assert resampler.parameters.sinc_len == 64
        assert resampler.boundary is BoundaryPolicy.EDGE

    def test_fft_from_yaml(self, tmp_path):
        path = tmp_path / "fft.yaml"
        path.write_text(DEFAULT_CONFIG_YAML.replace("engine: sinc", "engine: fft"))
        resampler = create_resampler(path)
        assert isinstance(resampler, FftResampler)
        assert resampler.fraction == Fraction(160, 147)
        assert resampler.channels == 2

    def test_unknown_engine(self):
        with pytest.raises(ConfigurationError):
            create_resampler({"engine": "linear"})


class TestLogging:
    """Tests for the loguru setup helper."""

    def test_debug_messages_on_construction(self):
        messages = []
        handler = configure_logging("debug", sink=messages.append)
        try:
            SincResampler(1.5, 1)
        finally:
            logger.remove(handler)
        assert any("SincResampler" in message for message in messages)

    def test_silent_until_configured(self):
        """Importing the package mutes its messages even on a DEBUG sink."""
        importlib.reload(ratebridge)
        messages = []
        handler = logger.add(messages.append, level="DEBUG")
        try:
            SincResampler(1.5, 1)
        finally:
            logger.remove(handler)
        assert messages == []

    def test_level_from_config(self):
        messages = []
        handler = configure_logging(LoggingConfig(level="WARNING"), sink=messages.append)
        try:
            SincResampler(1.5, 1)
        finally:
            logger.remove(handler)
        assert messages == []
