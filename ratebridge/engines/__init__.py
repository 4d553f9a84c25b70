"""Resampling engines.

The sinc engine is imported eagerly; the fft engine is reached through the
registry (or imported directly) so its backend is only loaded on demand.
"""

from ratebridge.engines.base import BaseResampler
from ratebridge.engines.registry import EngineRegistry, create_resampler, engine_registry
from ratebridge.engines.sinc import ResampleState, SincResampler

__all__ = [
    "BaseResampler",
    "EngineRegistry",
    "create_resampler",
    "engine_registry",
    "ResampleState",
    "SincResampler",
]
