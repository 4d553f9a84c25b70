"""Window functions for tapering truncated sinc filters.

All windows are periodic: a window of ``n`` points peaks at index ``n // 2``
and its first point is the (near) zero that a length ``n + 1`` symmetric
window would end on.
"""

from __future__ import annotations

import numpy as np

from ratebridge.core.types import WindowFunction

# Cubic fit of the recommended relative cutoff against sinc length, per window.
# Valid for sinc lengths from 32 to 2048.
_CUTOFF_COEFFICIENTS: dict[WindowFunction, tuple[float, float, float]] = {
    WindowFunction.BLACKMAN_HARRIS: (8.041443677716476, 55.9506779343387, 898.0287985384213),
    WindowFunction.BLACKMAN_HARRIS2: (13.745202940783823, 121.73532586374934, 5964.163279612051),
    WindowFunction.BLACKMAN: (6.159598046201173, 18.926415097606878, 653.4247430458968),
    WindowFunction.BLACKMAN2: (9.506235102129398, 79.13120634953742, 1502.2316160588925),
    WindowFunction.HANN: (3.3481080887677166, 10.106519434875038, 78.96345249024414),
    WindowFunction.HANN2: (5.38751148378734, 29.69451915489501, 184.82117462266237),
}


def _cosine_sum(npoints: int, coefficients: tuple[float, ...]) -> np.ndarray:
    phase = 2.0 * np.pi * np.arange(npoints) / npoints
    window = np.zeros(npoints)
    sign = 1.0
    for order, coef in enumerate(coefficients):
        window += sign * coef * np.cos(order * phase)
        sign = -sign
    return window


def blackman(npoints: int) -> np.ndarray:
    return _cosine_sum(npoints, (0.42, 0.5, 0.08))


def blackman_harris(npoints: int) -> np.ndarray:
    return _cosine_sum(npoints, (0.35875, 0.48829, 0.14128, 0.01168))


def hann(npoints: int) -> np.ndarray:
    return _cosine_sum(npoints, (0.5, 0.5))


def make_window(npoints: int, window: WindowFunction | str) -> np.ndarray:
    """Build the requested window, squaring it for the ``*2`` variants."""
    window = WindowFunction(window)
    if window in (WindowFunction.BLACKMAN_HARRIS, WindowFunction.BLACKMAN_HARRIS2):
        values = blackman_harris(npoints)
    elif window in (WindowFunction.BLACKMAN, WindowFunction.BLACKMAN2):
        values = blackman(npoints)
    else:
        values = hann(npoints)

    if window in (WindowFunction.BLACKMAN2, WindowFunction.BLACKMAN_HARRIS2, WindowFunction.HANN2):
        values = values * values
    return values


def calculate_cutoff(npoints: int, window: WindowFunction | str) -> float:
    """Return a relative cutoff suited to a sinc of ``npoints`` taps.

    The value is a fraction of the Nyquist frequency, chosen so the
    transition band ends close to Nyquist for the given window.
    """
    k1, k2, k3 = _CUTOFF_COEFFICIENTS[WindowFunction(window)]
    n = float(npoints)
    return 1.0 / (k1 / n + k2 / (n * n) + k3 / (n * n * n) + 1.0)
