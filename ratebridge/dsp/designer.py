"""Windowed-sinc FIR design and the quality presets built on it.

The designer is a pure function of its parameters: it returns the flat
prototype filter and leaves phase partitioning to the filter bank.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Union

import numpy as np
from pydantic import BaseModel, ValidationError

from ratebridge.core.errors import ConfigurationError
from ratebridge.core.types import InterpolationType, QualityPreset, WindowFunction
from ratebridge.dsp.windows import calculate_cutoff, make_window


class SincParameters(BaseModel):
    """Custom sinc filter parameters.

    Attributes:
        sinc_len: Taps per phase (``L``). Rounded up to an even number.
        f_cutoff: Relative cutoff as a fraction of the lower Nyquist
            frequency. ``None`` picks a value from :func:`calculate_cutoff`.
        oversampling_factor: Number of phases (``P``) in the filter bank.
        interpolation: How fractional phases between table rows are evaluated.
        window: Window used to taper the sinc.
    """

    sinc_len: int = 128
    f_cutoff: Optional[float] = None
    oversampling_factor: int = 256
    interpolation: InterpolationType = InterpolationType.LINEAR
    window: WindowFunction = WindowFunction.BLACKMAN_HARRIS2


QUALITY_PRESETS: dict[QualityPreset, SincParameters] = {
    QualityPreset.FASTEST: SincParameters(
        sinc_len=32,
        oversampling_factor=512,
        interpolation=InterpolationType.NEAREST,
        window=WindowFunction.HANN2,
    ),
    QualityPreset.FAST: SincParameters(
        sinc_len=64,
        oversampling_factor=256,
        interpolation=InterpolationType.LINEAR,
        window=WindowFunction.BLACKMAN2,
    ),
    QualityPreset.BALANCED: SincParameters(
        sinc_len=128,
        oversampling_factor=256,
        interpolation=InterpolationType.LINEAR,
        window=WindowFunction.BLACKMAN_HARRIS2,
    ),
    QualityPreset.HIGH: SincParameters(
        sinc_len=256,
        oversampling_factor=256,
        interpolation=InterpolationType.LINEAR,
        window=WindowFunction.BLACKMAN_HARRIS2,
    ),
    QualityPreset.BEST: SincParameters(
        sinc_len=512,
        oversampling_factor=256,
        interpolation=InterpolationType.CUBIC,
        window=WindowFunction.BLACKMAN_HARRIS2,
    ),
}

QualityLike = Union[QualityPreset, str, SincParameters, dict]


def design_sinc_filter(
    sinc_len: int,
    oversampling: int,
    f_cutoff: float,
    window: WindowFunction | str = WindowFunction.BLACKMAN_HARRIS2,
) -> np.ndarray:
    """Design a windowed-sinc low-pass prototype of ``oversampling * sinc_len`` taps.

    Tap ``k`` sits at ``(k - N/2) / oversampling`` input samples from the
    filter centre, so every ``oversampling``-th tap belongs to the same
    fractional phase. The taps are scaled so the average phase has unit
    DC gain.

    Args:
        sinc_len: Taps per phase. Must be positive.
        oversampling: Number of phases. Must be positive.
        f_cutoff: Cutoff as a fraction of Nyquist, strictly between 0 and 1.
        window: Window family used to taper the sinc.

    Raises:
        ConfigurationError: On a non-positive tap count or an out-of-range cutoff.
    """
    if sinc_len <= 0:
        raise ConfigurationError(f"sinc_len must be positive, got {sinc_len}")
    if oversampling <= 0:
        raise ConfigurationError(f"oversampling factor must be positive, got {oversampling}")
    if not 0.0 < f_cutoff < 1.0:
        raise ConfigurationError(f"f_cutoff must be in (0, 1), got {f_cutoff}")

    npoints = sinc_len * oversampling
    offsets = (np.arange(npoints) - npoints // 2) / oversampling
    taps = f_cutoff * np.sinc(f_cutoff * offsets) * make_window(npoints, window)
    taps *= oversampling / taps.sum()
    return taps


def resolve_quality(quality: QualityLike) -> SincParameters:
    """Turn a preset name or custom parameters into concrete parameters.

    The returned copy always has an even ``sinc_len`` and a resolved cutoff.
    """
    if isinstance(quality, SincParameters):
        params = quality
    elif isinstance(quality, dict):
        try:
            params = SincParameters(**quality)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid sinc parameters: {exc}") from exc
    else:
        try:
            preset = QualityPreset(quality)
        except ValueError as exc:
            available = ", ".join(p.value for p in QualityPreset)
            raise ConfigurationError(
                f"Unknown quality preset '{quality}'. Available: {available}"
            ) from exc
        params = QUALITY_PRESETS[preset]

    if params.sinc_len <= 0:
        raise ConfigurationError(f"sinc_len must be positive, got {params.sinc_len}")
    if params.oversampling_factor <= 0:
        raise ConfigurationError(
            f"oversampling_factor must be positive, got {params.oversampling_factor}"
        )

    updates: dict[str, Any] = {"sinc_len": 2 * math.ceil(params.sinc_len / 2)}
    if params.f_cutoff is None:
        updates["f_cutoff"] = calculate_cutoff(updates["sinc_len"], params.window)
    return params.model_copy(update=updates)
