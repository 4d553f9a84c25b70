"""Real FFT backends used by the rational FFT resampler.

Usage:
    from ratebridge.fft import fft_registry

    fft = fft_registry.create("numpy")
    spectrum = fft.forward(block)
"""

from ratebridge.fft.base import RealFft
from ratebridge.fft.numpy_fft import NumpyRealFft
from ratebridge.fft.registry import FftRegistry, fft_registry

__all__ = [
    "RealFft",
    "NumpyRealFft",
    "FftRegistry",
    "fft_registry",
]
