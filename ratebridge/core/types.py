"""Shared enums and value types for ratebridge.

The engines, the filter designer and the configuration layer all speak in
terms of these enums, so a YAML file, a dict and a direct constructor call
describe a resampler with the same vocabulary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SizingMode(str, Enum):
    """Which side of a process call has a constant frame count."""

    FIXED_INPUT = "fixed_input"
    FIXED_OUTPUT = "fixed_output"
    FIXED_BOTH = "fixed_both"  # FFT engine only


class WindowFunction(str, Enum):
    """Window used to taper the truncated sinc.

    The squared variants roll off more slowly but attenuate more.
    """

    BLACKMAN = "blackman"
    BLACKMAN2 = "blackman2"
    BLACKMAN_HARRIS = "blackman_harris"
    BLACKMAN_HARRIS2 = "blackman_harris2"
    HANN = "hann"
    HANN2 = "hann2"


class InterpolationType(str, Enum):
    """How a fractional phase is evaluated from the polyphase table."""

    NEAREST = "nearest"
    LINEAR = "linear"
    CUBIC = "cubic"


class QualityPreset(str, Enum):
    FASTEST = "fastest"
    FAST = "fast"
    BALANCED = "balanced"
    HIGH = "high"
    BEST = "best"


class BoundaryPolicy(str, Enum):
    """What the sinc filter sees before the first input sample."""

    ZERO = "zero"
    EDGE = "edge"
    REFLECT = "reflect"


class ChannelLayout(str, Enum):
    """Sample layout accepted by ``process`` and returned from it.

    PLANAR is one row per channel, ``(channels, frames)``.
    INTERLEAVED is either a flat ``frames * channels`` buffer or a
    ``(frames, channels)`` array.
    """

    PLANAR = "planar"
    INTERLEAVED = "interleaved"


class EngineState(str, Enum):
    IDLE = "idle"
    STEADY = "steady"
    RECONFIGURING = "reconfiguring"


@dataclass(frozen=True)
class ChunkSizes:
    """Frame counts a caller must use for the next process call."""

    input_frames: int
    output_frames: int

    def __post_init__(self) -> None:
        if self.input_frames < 0 or self.output_frames < 0:
            raise ValueError(
                f"Chunk sizes must be non-negative, got "
                f"in={self.input_frames} out={self.output_frames}"
            )
