"""Core types, errors and ratio helpers shared by every ratebridge module."""

from ratebridge.core.errors import (
    ConfigurationError,
    InvalidRatio,
    RatioNotAdjustable,
    ResampleError,
    WrongInputSize,
    WrongNumberOfChannels,
    WrongOutputSize,
)
from ratebridge.core.types import (
    BoundaryPolicy,
    ChannelLayout,
    ChunkSizes,
    EngineState,
    InterpolationType,
    QualityPreset,
    SizingMode,
    WindowFunction,
)

__all__ = [
    "ResampleError",
    "ConfigurationError",
    "InvalidRatio",
    "RatioNotAdjustable",
    "WrongNumberOfChannels",
    "WrongInputSize",
    "WrongOutputSize",
    "BoundaryPolicy",
    "ChannelLayout",
    "ChunkSizes",
    "EngineState",
    "InterpolationType",
    "QualityPreset",
    "SizingMode",
    "WindowFunction",
]
