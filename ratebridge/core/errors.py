"""Error taxonomy for ratebridge.

Every failure the library can report is a subclass of :class:`ResampleError`.
Construction problems are :class:`ConfigurationError`; buffer shape mismatches
are caller programming errors and carry the expected and actual values so the
host application can decide what to do (resize, drop, abort the stream).
"""

from __future__ import annotations


class ResampleError(Exception):
    """Base class for all ratebridge errors."""


class ConfigurationError(ResampleError, ValueError):
    """Invalid construction parameters (ratio, channels, quality, sizes)."""


class InvalidRatio(ResampleError, ValueError):
    """A ratio is out of bounds or cannot be represented by the engine."""

    def __init__(self, message: str, ratio: object = None) -> None:
        super().__init__(message)
        self.ratio = ratio


class RatioNotAdjustable(InvalidRatio):
    """The engine runs at a fixed ratio and cannot be retuned."""


class WrongNumberOfChannels(ResampleError, ValueError):
    """The buffer channel count does not match the engine."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected {expected} channel(s), got {actual}")
        self.expected = expected
        self.actual = actual


class WrongInputSize(ResampleError, ValueError):
    """The number of input frames does not match ``input_frames_next()``."""

    def __init__(self, expected: int, actual: int, channel: int | None = None) -> None:
        where = f" in channel {channel}" if channel is not None else ""
        super().__init__(f"Expected {expected} input frame(s){where}, got {actual}")
        self.expected = expected
        self.actual = actual
        self.channel = channel


class WrongOutputSize(ResampleError, ValueError):
    """An output buffer cannot hold ``output_frames_next()`` frames."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Output buffer needs room for {expected} frame(s), got {actual}")
        self.expected = expected
        self.actual = actual


class BufferSizeError(ResampleError, ValueError):
    """An internal buffer was asked to hold or release more frames than it has."""
