"""Tests for ratio parsing and the error taxonomy."""

import math
from fractions import Fraction

import pytest

from ratebridge.core.errors import (
    ConfigurationError,
    InvalidRatio,
    RatioNotAdjustable,
    ResampleError,
    WrongInputSize,
    WrongNumberOfChannels,
    WrongOutputSize,
)
from ratebridge.core.ratio import MAX_RATIONAL_FACTOR, as_float, as_fraction


class TestAsFloat:
    """Tests for converting ratio specs to floats."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1.5, 1.5),
            (2, 2.0),
            (Fraction(1, 4), 0.25),
            ((48000, 44100), 48000 / 44100),
            ([16000, 48000], 1 / 3),
            ("160/147", 160 / 147),
            ("0.5", 0.5),
        ],
    )
    def test_accepted_forms(self, value, expected):
        assert as_float(value) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "value",
        [0, -1.0, math.inf, math.nan, "abc", (48000,), (48000.0, 44100), (0, 44100), True, None],
    )
    def test_rejected(self, value):
        """Non-positive, non-finite or malformed ratios raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            as_float(value)


class TestAsFraction:
    """Tests for reducing ratios to small fractions."""

    def test_pair_reduces(self):
        assert as_fraction((48000, 44100)) == Fraction(160, 147)

    def test_float_matches_small_fraction(self):
        """A float close to a small fraction is matched exactly."""
        assert as_fraction(0.5) == Fraction(1, 2)
        assert as_fraction(160 / 147) == Fraction(160, 147)

    def test_irrational_rejected(self):
        with pytest.raises(InvalidRatio) as exc_info:
            as_fraction(math.sqrt(2))
        assert exc_info.value.ratio == math.sqrt(2)

    def test_terms_too_large(self):
        with pytest.raises(InvalidRatio):
            as_fraction(Fraction(MAX_RATIONAL_FACTOR + 1, 1))
        with pytest.raises(InvalidRatio):
            as_fraction("4099/4097")

    def test_custom_limit(self):
        assert as_fraction((3, 2), max_factor=3) == Fraction(3, 2)
        with pytest.raises(InvalidRatio):
            as_fraction((5, 4), max_factor=3)


class TestErrors:
    """Tests for the error hierarchy."""

    def test_hierarchy(self):
        """Every error is a ResampleError and a ValueError."""
        for cls in (ConfigurationError, InvalidRatio, WrongInputSize,
                    WrongNumberOfChannels, WrongOutputSize):
            assert issubclass(cls, ResampleError)
            assert issubclass(cls, ValueError)
        assert issubclass(RatioNotAdjustable, InvalidRatio)

    def test_size_errors_carry_values(self):
        err = WrongOutputSize(expected=10, actual=4)
        assert (err.expected, err.actual) == (10, 4)
        assert "10" in str(err)
        err = WrongInputSize(expected=8, actual=7, channel=1)
        assert err.channel == 1
        assert "channel 1" in str(err)
