"""Optional FFT backend on top of :mod:`scipy.fft`.

Install with ``pip install ratebridge[scipy]``. ``workers`` lets scipy split
multi-channel blocks across threads.
"""

from __future__ import annotations

import numpy as np
import scipy.fft

from ratebridge.fft.base import RealFft


class ScipyRealFft(RealFft):
    """Real FFT using ``scipy.fft.rfft`` / ``irfft``."""

    def __init__(self, workers: int | None = None) -> None:
        self.workers = workers

    def forward(self, samples: np.ndarray) -> np.ndarray:
        return scipy.fft.rfft(samples, axis=-1, workers=self.workers)

    def inverse(self, spectrum: np.ndarray, n: int) -> np.ndarray:
        return scipy.fft.irfft(spectrum, n=n, axis=-1, workers=self.workers)

    @property
    def name(self) -> str:
        return "scipy"
