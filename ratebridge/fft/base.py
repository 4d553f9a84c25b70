"""Real FFT capability injected into the FFT resampler.

The engine only needs "N real samples to N/2 + 1 complex bins and back".
Backends implement that along the last axis so one call transforms every
channel of a block at once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


class RealFft(ABC):
    """Abstract forward/inverse real-valued FFT.

    Both transforms use the unnormalised forward / ``1/n`` inverse
    convention, so ``inverse(forward(x), n)`` returns ``x``.
    """

    @abstractmethod
    def forward(self, samples: np.ndarray) -> np.ndarray:
        """Transform ``(..., n)`` real samples into ``(..., n // 2 + 1)`` bins."""
        ...

    @abstractmethod
    def inverse(self, spectrum: np.ndarray, n: int) -> np.ndarray:
        """Transform ``(..., n // 2 + 1)`` bins back into ``(..., n)`` real samples."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of this backend (e.g. 'numpy')."""
        ...
