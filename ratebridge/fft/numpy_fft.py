"""Default FFT backend on top of :mod:`numpy.fft`."""

from __future__ import annotations

import numpy as np

from ratebridge.fft.base import RealFft


class NumpyRealFft(RealFft):
    """Real FFT using ``numpy.fft.rfft`` / ``irfft``."""

    def forward(self, samples: np.ndarray) -> np.ndarray:
        return np.fft.rfft(samples, axis=-1)

    def inverse(self, spectrum: np.ndarray, n: int) -> np.ndarray:
        return np.fft.irfft(spectrum, n=n, axis=-1)

    @property
    def name(self) -> str:
        return "numpy"
