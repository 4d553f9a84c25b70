"""Ratio parsing.

A ratio is always ``output_rate / input_rate``. It can be given as:

- a number: ``1.5`` or ``2``
- a :class:`fractions.Fraction`
- a pair ``(output_rate, input_rate)``: ``(48000, 44100)``
- a string: ``"160/147"`` or ``"0.5"``
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Union

from ratebridge.core.errors import ConfigurationError, InvalidRatio

RatioLike = Union[float, int, Fraction, str, tuple, list]

# Largest numerator/denominator the FFT engine accepts
MAX_RATIONAL_FACTOR = 4096

# Relative tolerance when a float ratio is matched to a small fraction
_FLOAT_MATCH_TOLERANCE = 1e-9


def _pair_to_fraction(value: tuple | list) -> Fraction:
    if len(value) != 2:
        raise ConfigurationError(
            f"Ratio pair must be (output_rate, input_rate), got {value!r}"
        )
    out_rate, in_rate = value
    if not isinstance(out_rate, int) or not isinstance(in_rate, int):
        raise ConfigurationError(f"Ratio pair must hold integers, got {value!r}")
    if out_rate <= 0 or in_rate <= 0:
        raise ConfigurationError(f"Sample rates must be positive, got {value!r}")
    return Fraction(out_rate, in_rate)


def _parse(value: RatioLike) -> Fraction | float:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid ratio: {value!r}")
    if isinstance(value, Fraction):
        return value
    if isinstance(value, int):
        return Fraction(value)
    if isinstance(value, float):
        return value
    if isinstance(value, (tuple, list)):
        return _pair_to_fraction(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if "/" in text:
                num, den = text.split("/", 1)
                return _pair_to_fraction((int(num), int(den)))
            return float(text)
        except ValueError as exc:
            raise ConfigurationError(f"Cannot parse ratio {value!r}") from exc
    raise ConfigurationError(f"Unsupported ratio type: {type(value).__name__}")


def as_float(value: RatioLike) -> float:
    """Return the ratio as a strictly positive, finite float."""
    parsed = _parse(value)
    ratio = float(parsed)
    if not math.isfinite(ratio) or ratio <= 0.0:
        raise ConfigurationError(f"Ratio must be positive and finite, got {value!r}")
    return ratio


def as_fraction(value: RatioLike, max_factor: int = MAX_RATIONAL_FACTOR) -> Fraction:
    """Return the ratio as a reduced fraction with small terms.

    Raises:
        ConfigurationError: If the value is not a positive ratio at all.
        InvalidRatio: If it does not reduce to coprime integers no larger
            than ``max_factor``.
    """
    ratio = as_float(value)
    parsed = _parse(value)
    if isinstance(parsed, Fraction):
        frac = parsed
    else:
        frac = Fraction(ratio).limit_denominator(max_factor)
        if abs(float(frac) - ratio) > _FLOAT_MATCH_TOLERANCE * ratio:
            raise InvalidRatio(
                f"Ratio {ratio!r} is not a fraction with terms up to {max_factor}",
                ratio=value,
            )
    if frac.numerator > max_factor or frac.denominator > max_factor:
        raise InvalidRatio(
            f"Ratio {frac} reduces to terms larger than {max_factor}",
            ratio=value,
        )
    return frac
