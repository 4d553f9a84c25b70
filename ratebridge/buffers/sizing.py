"""Frame-count negotiation for both engines.

Everything here is pure computation. The sinc engine uses the same position
schedule both to answer ``input_frames_next`` / ``output_frames_next`` and to
process, so a reported size and the processed size cannot disagree.

Sinc positions are expressed in input samples relative to the start of the
engine's history buffer. Output ``k`` (counted from the last anchor) sits at
``origin + k / ratio``; an output at position ``t`` needs input samples up to
``floor(t) + L/2``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from fractions import Fraction

import numpy as np

from ratebridge.core.types import ChunkSizes, SizingMode


@dataclass(frozen=True)
class RatioSchedule:
    """Ratio in effect for the next call.

    ``start`` is the current ratio. When ``ramp`` is set and ``target``
    differs, the ratio moves linearly from ``start`` to ``target`` across the
    ramp length given to :func:`output_positions`.
    """

    start: float
    target: float
    ramp: bool = False

    @classmethod
    def constant(cls, ratio: float) -> RatioSchedule:
        return cls(start=ratio, target=ratio)

    @property
    def ramping(self) -> bool:
        return self.ramp and self.start != self.target

    @property
    def max_ratio(self) -> float:
        return max(self.start, self.target) if self.ramping else self.start

    @property
    def min_ratio(self) -> float:
        return min(self.start, self.target) if self.ramping else self.start

    def settled(self) -> RatioSchedule:
        """The schedule once the pending ramp (if any) has been applied."""
        final = self.target if self.ramp else self.start
        return RatioSchedule.constant(final)


def output_positions(
    origin: float,
    offset: int,
    count: int,
    schedule: RatioSchedule,
    ramp_len: int = 1,
) -> np.ndarray:
    """Return ``count + 1`` output positions.

    The first ``count`` entries are the positions of outputs
    ``offset .. offset + count - 1``; the last is where the following output
    would go.

    Args:
        origin: Position of output 0 since the anchor.
        offset: Outputs already emitted since the anchor. Must be 0 while
            ramping, since a ramp always starts from a fresh anchor.
        count: Number of outputs.
        schedule: Ratio schedule for this call.
        ramp_len: Outputs over which a ramp reaches its target.
    """
    if not schedule.ramping:
        step = 1.0 / schedule.start
        return origin + (offset + np.arange(count + 1)) * step

    index = np.arange(1, count + 1, dtype=np.float64)
    progress = np.minimum(index / max(ramp_len, 1), 1.0)
    ratios = schedule.start + (schedule.target - schedule.start) * progress
    positions = np.empty(count + 1)
    positions[0] = origin
    np.cumsum(1.0 / ratios, out=positions[1:])
    positions[1:] += origin
    return positions


def sinc_output_frames(
    origin: float,
    offset: int,
    input_frames: int,
    schedule: RatioSchedule,
    history: int,
    half_len: int,
    ramp_len: int = 1,
) -> int:
    """Outputs that can be computed once ``input_frames`` more frames arrive."""
    limit = history + input_frames - half_len
    first = float(output_positions(origin, offset, 0, schedule)[0])
    if first >= limit:
        return 0
    upper = int(math.ceil((limit - first) * schedule.max_ratio)) + 2
    positions = output_positions(origin, offset, upper, schedule, ramp_len)[:-1]
    return int(np.searchsorted(positions, limit, side="left"))


def sinc_input_frames(
    origin: float,
    offset: int,
    output_frames: int,
    schedule: RatioSchedule,
    history: int,
    half_len: int,
    ramp_len: int = 1,
) -> int:
    """Input frames needed to compute the next ``output_frames`` outputs."""
    if output_frames <= 0:
        return 0
    positions = output_positions(origin, offset, output_frames, schedule, ramp_len)
    last = positions[output_frames - 1]
    return max(0, int(math.floor(last)) + 1 + half_len - history)


def fft_block_sizes(
    ratio: Fraction,
    chunk_size: int,
    sub_chunks: int,
    mode: SizingMode,
) -> tuple[int, int]:
    """Return ``(block_in, block_out)`` for a rational ratio.

    The fixed side of the chunk is split into ``sub_chunks`` blocks, each a
    whole multiple of the ratio's denominator (input) and numerator (output).
    """
    up, down = ratio.numerator, ratio.denominator
    per_block = chunk_size / sub_chunks
    if mode is SizingMode.FIXED_OUTPUT:
        units = math.ceil(per_block / up)
    else:
        units = math.ceil(per_block / down)
    units = max(units, 1)
    return units * down, units * up


def fft_fixed_input_sizes(buffered: int, chunk_size: int, block_in: int, block_out: int) -> ChunkSizes:
    """Sizes when the caller always supplies ``chunk_size`` input frames."""
    blocks = (buffered + chunk_size) // block_in
    return ChunkSizes(input_frames=chunk_size, output_frames=blocks * block_out)


def fft_fixed_output_sizes(buffered: int, chunk_size: int, block_in: int, block_out: int) -> ChunkSizes:
    """Sizes when the caller always asks for ``chunk_size`` output frames."""
    missing = max(0, chunk_size - buffered)
    blocks = -(-missing // block_out)
    return ChunkSizes(input_frames=blocks * block_in, output_frames=chunk_size)
