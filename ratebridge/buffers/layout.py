"""Conversion between caller buffer layouts and the engines' planar layout.

Engines work on planar float64 arrays of shape ``(channels, frames)``.
Shape problems are reported as :class:`WrongNumberOfChannels` or
:class:`WrongInputSize`; nothing is truncated or padded here.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from ratebridge.core.errors import WrongInputSize, WrongNumberOfChannels
from ratebridge.core.types import ChannelLayout

AudioInput = Union[np.ndarray, Sequence[np.ndarray], Sequence[Sequence[float]]]


def _planar_from_sequence(data: Sequence, channels: int) -> np.ndarray:
    if len(data) != channels:
        raise WrongNumberOfChannels(channels, len(data))
    rows = [np.asarray(row, dtype=np.float64) for row in data]
    length = rows[0].shape[0] if rows else 0
    for index, row in enumerate(rows):
        if row.ndim != 1:
            raise WrongNumberOfChannels(channels, len(data))
        if row.shape[0] != length:
            raise WrongInputSize(length, row.shape[0], channel=index)
    if not rows:
        return np.zeros((0, 0))
    return np.vstack(rows)


def to_planar(data: AudioInput, channels: int, layout: ChannelLayout = ChannelLayout.PLANAR) -> np.ndarray:
    """Return ``data`` as a ``(channels, frames)`` float64 array.

    Args:
        data: Planar array, list of per-channel arrays, or an interleaved
            buffer (flat, or ``(frames, channels)``).
        channels: Channel count the engine was built for.
        layout: How ``data`` is laid out.
    """
    if layout is ChannelLayout.INTERLEAVED:
        array = np.asarray(data, dtype=np.float64)
        if array.ndim == 1:
            if array.size % channels:
                raise WrongInputSize(
                    expected=array.size - array.size % channels,
                    actual=array.size,
                )
            return array.reshape(-1, channels).T
        if array.ndim == 2:
            if array.shape[1] != channels:
                raise WrongNumberOfChannels(channels, array.shape[1])
            return array.T
        raise WrongNumberOfChannels(channels, array.shape[-1] if array.ndim else 0)

    if isinstance(data, np.ndarray):
        array = np.asarray(data, dtype=np.float64)
        if array.ndim == 1:
            if channels != 1:
                raise WrongNumberOfChannels(channels, 1)
            return array.reshape(1, -1)
        if array.ndim != 2 or array.shape[0] != channels:
            actual = array.shape[0] if array.ndim else 0
            raise WrongNumberOfChannels(channels, actual)
        return array
    return _planar_from_sequence(data, channels)


def from_planar(data: np.ndarray, layout: ChannelLayout = ChannelLayout.PLANAR) -> np.ndarray:
    """Convert engine output back to the caller's layout."""
    if layout is ChannelLayout.INTERLEAVED:
        return interleave(data)
    return data


def interleave(planar: np.ndarray) -> np.ndarray:
    """``(channels, frames)`` to a flat ``[f0c0, f0c1, f1c0, ...]`` buffer."""
    return np.ascontiguousarray(np.asarray(planar).T).reshape(-1)


def deinterleave(data: np.ndarray, channels: int) -> np.ndarray:
    """Flat interleaved buffer to ``(channels, frames)``."""
    return to_planar(data, channels, ChannelLayout.INTERLEAVED).copy()
