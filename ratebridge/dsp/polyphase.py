"""Polyphase partitioning of a windowed-sinc prototype.

Row ``p`` of the bank is the sub-filter for a fractional delay of ``p / P``
input samples. Dotting it with the ``L`` input samples around an output
position gives that output directly, so a fractional-delay evaluation costs
``L`` multiply-adds regardless of the oversampling factor.
"""

from __future__ import annotations

import numpy as np

from ratebridge.core.errors import ConfigurationError
from ratebridge.core.types import InterpolationType

# Guard rows stored before and after the P main rows (phases -1, P and P+1)
_GUARD_BEFORE = 1
_GUARD_AFTER = 2


def _shift_right(row: np.ndarray, shift: int) -> np.ndarray:
    shifted = np.zeros_like(row)
    if shift >= 0:
        shifted[shift:] = row[: row.size - shift]
    else:
        shifted[:shift] = row[-shift:]
    return shifted


class PolyphaseFilterBank:
    """Phase-indexed sub-filters of a prototype low-pass filter.

    Args:
        taps: Flat prototype of ``oversampling * L`` taps, as returned by
            :func:`ratebridge.dsp.designer.design_sinc_filter`.
        oversampling: Number of phases ``P``.

    Every row, guard rows included, is normalised to unit DC gain, so any
    interpolation between rows with weights summing to one passes DC
    unchanged.
    """

    def __init__(self, taps: np.ndarray, oversampling: int) -> None:
        taps = np.asarray(taps, dtype=np.float64)
        if oversampling <= 0:
            raise ConfigurationError(f"oversampling must be positive, got {oversampling}")
        if taps.ndim != 1 or taps.size == 0 or taps.size % oversampling:
            raise ConfigurationError(
                f"Expected a flat filter with a multiple of {oversampling} taps, "
                f"got shape {taps.shape}"
            )

        self._phases = oversampling
        self._taps_per_phase = taps.size // oversampling

        # Row p holds h[(L - 1 - j) * P + p] for j = 0..L-1
        rows = taps.reshape(self._taps_per_phase, oversampling).T[:, ::-1]

        table = np.empty((oversampling + _GUARD_BEFORE + _GUARD_AFTER, self._taps_per_phase))
        for q in range(-_GUARD_BEFORE, oversampling + _GUARD_AFTER):
            wraps, base = divmod(q, oversampling)
            table[q + _GUARD_BEFORE] = _shift_right(rows[base], wraps)

        sums = table.sum(axis=1, keepdims=True)
        if np.any(np.abs(sums) < 1e-12):
            raise ConfigurationError("Filter has a phase with zero DC gain")
        table /= sums
        table.flags.writeable = False
        self._table = table

    @property
    def oversampling(self) -> int:
        return self._phases

    @property
    def taps_per_phase(self) -> int:
        return self._taps_per_phase

    @property
    def table(self) -> np.ndarray:
        """The ``P`` main rows (read-only)."""
        return self._table[_GUARD_BEFORE : _GUARD_BEFORE + self._phases]

    def phase(self, index: int) -> np.ndarray:
        """Return the sub-filter for phase ``index`` modulo ``P``."""
        return self._table[(index % self._phases) + _GUARD_BEFORE]

    def interpolated(self, position: float) -> np.ndarray:
        """Linearly blend the two rows around a non-integer phase position.

        ``position`` is taken modulo ``P``; a position just below ``P``
        blends row ``P - 1`` with the guard row that continues it.
        """
        position = float(position) % self._phases
        index = min(int(np.floor(position)), self._phases - 1)
        weight = position - index
        lower = self._table[index + _GUARD_BEFORE]
        upper = self._table[index + _GUARD_BEFORE + 1]
        return (1.0 - weight) * lower + weight * upper

    def coefficients(
        self,
        fractions: np.ndarray,
        interpolation: InterpolationType = InterpolationType.LINEAR,
    ) -> np.ndarray:
        """Return one filter row per fractional sample offset.

        Args:
            fractions: Fractional parts in ``[0, 1)`` of the output positions.
            interpolation: Evaluation method between table rows.

        Returns:
            Array of shape ``(len(fractions), L)``.
        """
        phase = np.asarray(fractions, dtype=np.float64) * self._phases
        interpolation = InterpolationType(interpolation)

        if interpolation is InterpolationType.NEAREST:
            index = np.rint(phase).astype(np.intp)
            return self._table[index + _GUARD_BEFORE]

        index = np.minimum(np.floor(phase).astype(np.intp), self._phases - 1)
        x = (phase - index)[:, None]
        row = index + _GUARD_BEFORE

        if interpolation is InterpolationType.LINEAR:
            return (1.0 - x) * self._table[row] + x * self._table[row + 1]

        # 4-point Lagrange over rows q-1, q, q+1, q+2
        w_prev = -x * (x - 1.0) * (x - 2.0) / 6.0
        w_curr = (x + 1.0) * (x - 1.0) * (x - 2.0) / 2.0
        w_next = -(x + 1.0) * x * (x - 2.0) / 2.0
        w_last = (x + 1.0) * x * (x - 1.0) / 6.0
        return (
            w_prev * self._table[row - 1]
            + w_curr * self._table[row]
            + w_next * self._table[row + 1]
            + w_last * self._table[row + 2]
        )
