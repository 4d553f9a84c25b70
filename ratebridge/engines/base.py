"""Resampler contract shared by every engine.

Calling code can be written against :class:`BaseResampler` alone and pick
the engine only at construction time. Engines implement the sizing queries,
ratio control and a planar ``_process_planar`` step; layout conversion,
shape validation and the convenience wrappers (partial chunks, whole
signals, caller-owned output buffers) live here.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence, Union

import numpy as np

from ratebridge.buffers.layout import AudioInput, from_planar, to_planar
from ratebridge.core.errors import (
    ConfigurationError,
    WrongInputSize,
    WrongNumberOfChannels,
    WrongOutputSize,
)
from ratebridge.core.ratio import RatioLike
from ratebridge.core.types import ChannelLayout, ChunkSizes, EngineState, SizingMode

if TYPE_CHECKING:
    from ratebridge.config import ResamplerConfig

OutputBuffer = Union[np.ndarray, Sequence[np.ndarray]]

_SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))


class BaseResampler(ABC):
    """Abstract base class for resampling engines.

    Lifecycle:
        1. ``__init__(...)``: design filters and allocate buffers
        2. ``input_frames_next()`` / ``output_frames_next()``: size buffers
        3. ``process(chunk)``: once per chunk, with exactly the reported size
        4. ``set_ratio(...)`` / ``reset()``: between calls, as needed

    Instances are not thread-safe; every call mutates stream state.
    """

    def __init__(
        self,
        channels: int,
        layout: ChannelLayout | str = ChannelLayout.PLANAR,
        dtype: str | np.dtype | type = np.float64,
    ) -> None:
        self._validate_channels(channels)
        try:
            self._layout = ChannelLayout(layout)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown channel layout: {layout!r}") from exc
        resolved = np.dtype(dtype)
        if resolved not in _SUPPORTED_DTYPES:
            raise ConfigurationError(f"dtype must be float32 or float64, got {resolved}")
        self._channels = channels
        self._dtype = resolved
        self._state = EngineState.IDLE

    @staticmethod
    def _validate_channels(channels: int) -> None:
        if isinstance(channels, bool) or not isinstance(channels, int) or channels <= 0:
            raise ConfigurationError(f"channels must be a positive integer, got {channels!r}")

    # ------------------------------------------------------------------
    # Engine-specific operations
    # ------------------------------------------------------------------

    @classmethod
    @abstractmethod
    def from_config(cls, config: ResamplerConfig) -> BaseResampler:
        """Build an engine from a validated :class:`ResamplerConfig`."""
        ...

    @abstractmethod
    def input_frames_next(self) -> int:
        """Input frames the next ``process`` call requires."""
        ...

    @abstractmethod
    def output_frames_next(self) -> int:
        """Output frames the next ``process`` call will return."""
        ...

    @abstractmethod
    def input_frames_max(self) -> int:
        """Upper bound of ``input_frames_next()`` for this configuration."""
        ...

    @abstractmethod
    def output_frames_max(self) -> int:
        """Upper bound of ``output_frames_next()`` for this configuration."""
        ...

    @abstractmethod
    def output_delay(self) -> int:
        """Delay, in output frames, between an input sample and its output."""
        ...

    @abstractmethod
    def set_ratio(self, ratio: RatioLike, *, relative: bool = False, ramp: bool = False) -> None:
        """Change the conversion ratio.

        Args:
            ratio: New ratio, or a factor applied to the construction ratio
                when ``relative`` is set.
            relative: Interpret ``ratio`` relative to the construction ratio.
            ramp: Move gradually to the new ratio over the next call.

        Raises:
            InvalidRatio: The ratio is out of bounds or the engine is fixed.
                The engine is left unchanged.
        """
        ...

    @abstractmethod
    def reset(self) -> None:
        """Clear all history and buffered frames, e.g. after a seek."""
        ...

    @abstractmethod
    def _process_planar(self, planar: np.ndarray) -> np.ndarray:
        """Process exactly ``input_frames_next()`` planar frames.

        Returns the ``(channels, output_frames)`` float64 result. The array
        may be a view of an internal buffer and is only valid until the
        next call.
        """
        ...

    @property
    @abstractmethod
    def ratio(self) -> float:
        """Current output/input ratio."""
        ...

    @property
    @abstractmethod
    def mode(self) -> SizingMode:
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the engine (e.g. 'sinc', 'fft')."""
        ...

    # ------------------------------------------------------------------
    # Shared surface
    # ------------------------------------------------------------------

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def layout(self) -> ChannelLayout:
        return self._layout

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def state(self) -> EngineState:
        return self._state

    def chunk_sizes(self) -> ChunkSizes:
        """Both frame counts for the next call."""
        return ChunkSizes(
            input_frames=self.input_frames_next(),
            output_frames=self.output_frames_next(),
        )

    def process(self, inputs: AudioInput) -> np.ndarray:
        """Resample one chunk.

        Args:
            inputs: Exactly ``input_frames_next()`` frames, in the engine's
                channel layout.

        Returns:
            ``output_frames_next()`` frames (as reported before the call) in
            the same layout.

        Raises:
            WrongNumberOfChannels: The channel count does not match.
            WrongInputSize: The frame count does not match.
        """
        planar = to_planar(inputs, self._channels, self._layout)
        expected = self.input_frames_next()
        if planar.shape[1] != expected:
            raise WrongInputSize(expected, planar.shape[1])
        return self._finish(self._process_planar(planar))

    def process_partial(self, inputs: AudioInput | None = None) -> np.ndarray:
        """Resample a short final chunk, padding it with silence.

        Passing ``None`` processes a chunk of pure silence, which flushes
        the samples still held back by the filter delay.
        """
        expected = self.input_frames_next()
        planar = np.zeros((self._channels, expected))
        if inputs is not None:
            given = to_planar(inputs, self._channels, self._layout)
            if given.shape[1] > expected:
                raise WrongInputSize(expected, given.shape[1])
            planar[:, : given.shape[1]] = given
        return self._finish(self._process_planar(planar))

    def process_into_buffer(self, inputs: AudioInput, outputs: OutputBuffer) -> tuple[int, int]:
        """Resample one chunk into a caller-owned output buffer.

        The output buffer is checked before any state changes; it must have
        room for at least ``output_frames_next()`` frames.

        Returns:
            ``(input_frames_used, output_frames_written)``.
        """
        needed = self.output_frames_next()
        self._check_output_buffer(outputs, needed)
        n_in = self.input_frames_next()
        result = self.process(inputs)
        if isinstance(outputs, np.ndarray):
            if self._layout is ChannelLayout.INTERLEAVED:
                # Write through the caller's array; reshape may return a copy.
                if outputs.ndim == 2:
                    outputs[:needed] = result.reshape(-1, self._channels)
                else:
                    outputs[: result.size] = result
            else:
                outputs[:, : result.shape[1]] = result
        else:
            for channel, row in enumerate(outputs):
                row[: result.shape[1]] = result[channel]
        return n_in, needed

    def process_all(self, waveform: AudioInput) -> np.ndarray:
        """Resample a complete signal in one go.

        The engine is reset first; the signal is fed chunk by chunk, flushed
        with silence, and the filter delay is trimmed so that output frame
        ``k`` lines up with input time ``k / ratio``. The result holds
        ``ceil(frames * ratio)`` frames.
        """
        planar = to_planar(waveform, self._channels, self._layout)
        total_in = planar.shape[1]
        expected = math.ceil(total_in * self.ratio - 1e-9)
        delay = self.output_delay()

        self.reset()
        pieces: list[np.ndarray] = []
        produced = 0
        consumed = 0
        while produced < expected + delay:
            needed = self.input_frames_next()
            if consumed + needed <= total_in:
                out = self._process_planar(planar[:, consumed : consumed + needed])
                consumed += needed
            else:
                tail = np.zeros((self._channels, needed))
                remaining = total_in - consumed
                tail[:, :remaining] = planar[:, consumed:]
                consumed = total_in
                out = self._process_planar(tail)
            pieces.append(out.copy())
            produced += out.shape[1]

        joined = np.concatenate(pieces, axis=1) if pieces else np.zeros((self._channels, 0))
        return self._finish(joined[:, delay : delay + expected])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _finish(self, planar: np.ndarray) -> np.ndarray:
        result = planar.astype(self._dtype, copy=True)
        return from_planar(result, self._layout)

    def _check_output_buffer(self, outputs: OutputBuffer, needed: int) -> None:
        if isinstance(outputs, np.ndarray):
            if self._layout is ChannelLayout.INTERLEAVED:
                if outputs.ndim not in (1, 2):
                    raise ConfigurationError(
                        f"Interleaved output must be 1-D or (frames, channels), got {outputs.ndim}-D"
                    )
                if outputs.ndim == 2:
                    if outputs.shape[1] != self._channels:
                        raise WrongNumberOfChannels(self._channels, outputs.shape[1])
                    frames = outputs.shape[0]
                else:
                    frames = outputs.size // self._channels
            else:
                if outputs.ndim != 2 or outputs.shape[0] != self._channels:
                    actual = outputs.shape[0] if outputs.ndim else 0
                    raise WrongNumberOfChannels(self._channels, actual)
                frames = outputs.shape[1]
        elif self._layout is ChannelLayout.INTERLEAVED:
            raise ConfigurationError(
                "Interleaved output must be a numpy array, not a list of channels"
            )
        else:
            if len(outputs) != self._channels:
                raise WrongNumberOfChannels(self._channels, len(outputs))
            frames = min((len(row) for row in outputs), default=0)
        if frames < needed:
            raise WrongOutputSize(needed, frames)
