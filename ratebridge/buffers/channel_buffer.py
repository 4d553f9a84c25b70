"""Preallocated per-channel sample storage.

Both buffers are sized once at construction; processing calls only copy into
and out of them.
"""

from __future__ import annotations

import numpy as np

from ratebridge.core.errors import BufferSizeError
from ratebridge.core.types import BoundaryPolicy


class HistoryBuffer:
    """Filter history followed by the frames of the current call.

    Layout per channel: ``[history | fresh input]``. After a call,
    :meth:`advance` moves the last ``history`` frames to the front so the
    next call's filter windows see a continuous signal.

    Args:
        channels: Number of channels (rows).
        history: Frames of history kept between calls.
        max_input: Largest number of fresh frames a single call may append.
    """

    def __init__(self, channels: int, history: int, max_input: int) -> None:
        self._history = history
        self._fresh = 0
        self._data = np.zeros((channels, history + max_input))

    @property
    def channels(self) -> int:
        return self._data.shape[0]

    @property
    def history(self) -> int:
        return self._history

    @property
    def max_input(self) -> int:
        return self._data.shape[1] - self._history

    @property
    def fresh(self) -> int:
        """Frames appended since the last :meth:`advance`."""
        return self._fresh

    def view(self) -> np.ndarray:
        """History plus fresh frames, shape ``(channels, history + fresh)``."""
        return self._data[:, : self._history + self._fresh]

    def append(self, frames: np.ndarray) -> None:
        count = frames.shape[1]
        if self._fresh + count > self.max_input:
            raise BufferSizeError(
                f"History buffer overflow: {self._fresh + count} > {self.max_input} frames"
            )
        start = self._history + self._fresh
        self._data[:, start : start + count] = frames
        self._fresh += count

    def prime(self, frames: np.ndarray, policy: BoundaryPolicy) -> None:
        """Fill the history from the first frames of a stream.

        ``zero`` leaves silence, ``edge`` repeats the first frame and
        ``reflect`` mirrors the start of the stream around its first frame.
        """
        history = self._data[:, : self._history]
        history[:] = 0.0
        count = frames.shape[1]
        if policy is BoundaryPolicy.ZERO or count == 0:
            return
        if policy is BoundaryPolicy.REFLECT and count > 1:
            padded = np.pad(frames, ((0, 0), (self._history, 0)), mode="reflect")
            history[:] = padded[:, : self._history]
            return
        history[:] = frames[:, :1]

    def advance(self) -> None:
        """Keep the most recent ``history`` frames and drop the rest."""
        end = self._history + self._fresh
        self._data[:, : self._history] = self._data[:, end - self._history : end]
        self._fresh = 0

    def clear(self) -> None:
        self._data[:] = 0.0
        self._fresh = 0


class FrameQueue:
    """Fixed-capacity FIFO of frames, stored as a ring indexed by position."""

    def __init__(self, channels: int, capacity: int) -> None:
        self._data = np.zeros((channels, max(capacity, 1)))
        self._start = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return self._data.shape[1]

    def push(self, frames: np.ndarray) -> None:
        count = frames.shape[1]
        if self._count + count > self.capacity:
            raise BufferSizeError(
                f"Frame queue overflow: {self._count + count} > {self.capacity} frames"
            )
        write = (self._start + self._count) % self.capacity
        first = min(count, self.capacity - write)
        self._data[:, write : write + first] = frames[:, :first]
        if first < count:
            self._data[:, : count - first] = frames[:, first:]
        self._count += count

    def pop(self, count: int, out: np.ndarray | None = None) -> np.ndarray:
        """Remove the oldest ``count`` frames, writing them to ``out`` if given."""
        if count > self._count:
            raise BufferSizeError(f"Frame queue underflow: {count} > {self._count} frames")
        if out is None:
            out = np.empty((self._data.shape[0], count))
        first = min(count, self.capacity - self._start)
        out[:, :first] = self._data[:, self._start : self._start + first]
        if first < count:
            out[:, first:count] = self._data[:, : count - first]
        self._start = (self._start + count) % self.capacity
        self._count -= count
        return out

    def clear(self) -> None:
        self._data[:] = 0.0
        self._start = 0
        self._count = 0
