"""ratebridge - Streaming audio sample-rate conversion.

Two engines behind one contract:
- ``sinc``: polyphase windowed-sinc interpolation, any ratio, adjustable
  (and rampable) while streaming.
- ``fft``: FFT overlap-add for fixed rational ratios such as 48000/44100.

Quick start (programmatic):
    import numpy as np
    from ratebridge import SincResampler

    resampler = SincResampler(ratio=(48000, 44100), channels=2, chunk_size=1024)
    while stream_is_running:
        chunk = read_frames(resampler.input_frames_next())   # (2, n) array
        write_frames(resampler.process(chunk))

Quick start (config-driven):
    from ratebridge import create_resampler

    resampler = create_resampler({
        "engine": "fft",
        "input_rate": 44100,
        "output_rate": 48000,
        "channels": 2,
    })
    resampled = resampler.process_all(waveform)
"""

__version__ = "0.1.0"

from loguru import logger

# Silent until the application opts in with configure_logging().
logger.disable("ratebridge")

# Core
from ratebridge.config import (
    DEFAULT_CONFIG_YAML,
    FftParameters,
    LoggingConfig,
    ResamplerConfig,
    load_config,
)
from ratebridge.log import configure_logging

# Types and errors
from ratebridge.core.errors import (
    BufferSizeError,
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

# Filter design
from ratebridge.dsp.designer import QUALITY_PRESETS, SincParameters
from ratebridge.dsp.windows import calculate_cutoff, make_window

# Engines
from ratebridge.engines.base import BaseResampler
from ratebridge.engines.registry import EngineRegistry, create_resampler, engine_registry
from ratebridge.engines.sinc import SincResampler

# FFT backends
from ratebridge.fft.base import RealFft
from ratebridge.fft.registry import fft_registry

__all__ = [
    # Core
    "ResamplerConfig",
    "FftParameters",
    "LoggingConfig",
    "DEFAULT_CONFIG_YAML",
    "load_config",
    "configure_logging",
    # Types and errors
    "ResampleError",
    "BufferSizeError",
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
    # Filter design
    "QUALITY_PRESETS",
    "SincParameters",
    "calculate_cutoff",
    "make_window",
    # Engines
    "BaseResampler",
    "EngineRegistry",
    "SincResampler",
    "create_resampler",
    "engine_registry",
    # FFT backends
    "RealFft",
    "fft_registry",
]
