"""Asynchronous resampler based on a polyphase windowed-sinc filter.

Each output sample sits at a fractional input position. The integer part
selects ``L`` input samples from the history buffer and the fractional part
selects (and interpolates) a row of the polyphase filter bank. Positions step
by ``1 / ratio`` input samples, so the ratio can be changed between calls,
optionally with a linear ramp, without disturbing phase or history.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np
from loguru import logger

from ratebridge.buffers.channel_buffer import HistoryBuffer
from ratebridge.buffers.sizing import (
    RatioSchedule,
    output_positions,
    sinc_input_frames,
    sinc_output_frames,
)
from ratebridge.core.errors import ConfigurationError, InvalidRatio
from ratebridge.core.ratio import RatioLike, as_float
from ratebridge.core.types import (
    BoundaryPolicy,
    ChannelLayout,
    EngineState,
    QualityPreset,
    SizingMode,
)
from ratebridge.dsp.designer import QualityLike, SincParameters, design_sinc_filter, resolve_quality
from ratebridge.dsp.polyphase import PolyphaseFilterBank
from ratebridge.engines.base import BaseResampler

if TYPE_CHECKING:
    from ratebridge.config import ResamplerConfig

# Outputs emitted before the position anchor is moved forward
_REBASE_AFTER = 1 << 20


@dataclass
class ResampleState:
    """Position bookkeeping for the output stream.

    Output ``k`` after the anchor sits at ``anchor + k / ratio - consumed``
    in history-buffer coordinates. Counting from a fixed anchor keeps the
    positions independent of how the stream is cut into chunks.

    Attributes:
        anchor: Position of the first output after the anchor, at the time
            the anchor was set.
        emitted: Outputs produced since the anchor.
        consumed: Input frames consumed since the anchor.
        schedule: Ratio for the next call, including any pending ramp.
    """

    anchor: float
    schedule: RatioSchedule
    emitted: int = 0
    consumed: int = 0

    @property
    def origin(self) -> float:
        return self.anchor - self.consumed

    def next_position(self) -> float:
        return self.origin + self.emitted / self.schedule.start

    def rebase(self, position: float, schedule: RatioSchedule) -> None:
        self.anchor = position
        self.emitted = 0
        self.consumed = 0
        self.schedule = schedule


class SincResampler(BaseResampler):
    """Streaming sinc-interpolation resampler with an adjustable ratio.

    Args:
        ratio: Output rate / input rate.
        channels: Number of channels.
        chunk_size: Frames on the fixed side of each call.
        mode: ``fixed_input`` or ``fixed_output``.
        quality: Preset name or :class:`SincParameters`.
        ratio_bounds: ``(low, high)`` limits for :meth:`set_ratio`.
            Defaults to half and twice the initial ratio.
        boundary: What the filter sees before the first input sample.
        layout: Caller buffer layout.
        dtype: Output sample type (float32 or float64).
        max_chunk_size: Largest chunk size :meth:`set_chunk_size` may
            select. Defaults to ``chunk_size``.

    Example:
        resampler = SincResampler(ratio=(48000, 44100), channels=2)
        out = resampler.process(np.zeros((2, resampler.input_frames_next())))
    """

    def __init__(
        self,
        ratio: RatioLike,
        channels: int,
        chunk_size: int = 1024,
        mode: SizingMode | str = SizingMode.FIXED_INPUT,
        quality: QualityLike = QualityPreset.BALANCED,
        ratio_bounds: Optional[Sequence[RatioLike]] = None,
        boundary: BoundaryPolicy | str = BoundaryPolicy.ZERO,
        layout: ChannelLayout | str = ChannelLayout.PLANAR,
        dtype: str | np.dtype | type = np.float64,
        max_chunk_size: Optional[int] = None,
    ) -> None:
        super().__init__(channels, layout=layout, dtype=dtype)
        self._nominal_ratio = as_float(ratio)
        self._bounds = self._parse_bounds(ratio_bounds, self._nominal_ratio)
        self._mode = self._parse_mode(mode)
        self._boundary = self._parse_boundary(boundary)
        self._chunk_size, self._max_chunk_size = self._parse_chunk_sizes(chunk_size, max_chunk_size)
        self._params = resolve_quality(quality)

        self._stream = ResampleState(anchor=0.0, schedule=RatioSchedule.constant(self._nominal_ratio))
        self._design()
        self._allocate()
        self.reset()
        logger.debug(
            f"SincResampler: ratio={self._nominal_ratio:.6f} channels={self._channels} "
            f"mode={self._mode.value} chunk={self._chunk_size} "
            f"sinc_len={self._params.sinc_len} oversampling={self._params.oversampling_factor}"
        )

    @classmethod
    def from_config(cls, config: ResamplerConfig) -> SincResampler:
        return cls(
            ratio=config.ratio,
            channels=config.channels,
            chunk_size=config.chunk_size,
            mode=config.mode,
            quality=config.quality,
            ratio_bounds=config.ratio_bounds,
            boundary=config.boundary,
            layout=config.layout,
            dtype=config.dtype,
            max_chunk_size=config.max_chunk_size,
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_bounds(bounds: Optional[Sequence[RatioLike]], ratio: float) -> tuple[float, float]:
        if bounds is None:
            return ratio / 2.0, ratio * 2.0
        if len(bounds) != 2:
            raise ConfigurationError(f"ratio_bounds must be (low, high), got {bounds!r}")
        low, high = as_float(bounds[0]), as_float(bounds[1])
        if not low <= ratio <= high:
            raise ConfigurationError(
                f"Ratio {ratio} is outside ratio_bounds ({low}, {high})"
            )
        return low, high

    @staticmethod
    def _parse_mode(mode: SizingMode | str) -> SizingMode:
        try:
            mode = SizingMode(mode)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown sizing mode: {mode!r}") from exc
        if mode is SizingMode.FIXED_BOTH:
            raise ConfigurationError(
                "The sinc engine supports fixed_input and fixed_output only; "
                "use the fft engine for fixed_both"
            )
        return mode

    @staticmethod
    def _parse_boundary(boundary: BoundaryPolicy | str) -> BoundaryPolicy:
        try:
            return BoundaryPolicy(boundary)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown boundary policy: {boundary!r}") from exc

    @staticmethod
    def _parse_chunk_sizes(chunk_size: int, max_chunk_size: Optional[int]) -> tuple[int, int]:
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if max_chunk_size is None:
            max_chunk_size = chunk_size
        if max_chunk_size < chunk_size:
            raise ConfigurationError(
                f"max_chunk_size ({max_chunk_size}) is smaller than chunk_size ({chunk_size})"
            )
        return chunk_size, max_chunk_size

    def _design(self) -> None:
        """Design the filter bank for the ratio currently in effect."""
        ratio = self._stream.schedule.target
        cutoff = self._params.f_cutoff * min(1.0, ratio)
        taps = design_sinc_filter(
            self._params.sinc_len,
            self._params.oversampling_factor,
            cutoff,
            self._params.window,
        )
        self._bank = PolyphaseFilterBank(taps, self._params.oversampling_factor)
        self._half = self._params.sinc_len // 2
        self._history_len = self._params.sinc_len + 2
        self._offsets = np.arange(-self._half + 1, self._half + 1)

    def _allocate(self) -> None:
        low, high = self._bounds
        if self._mode is SizingMode.FIXED_INPUT:
            max_input = self._max_chunk_size
            max_output = math.ceil(self._max_chunk_size * high) + 2
        else:
            max_input = math.ceil(self._max_chunk_size / low) + 3
            max_output = self._max_chunk_size
        self._buffer = HistoryBuffer(self._channels, self._history_len, max_input)
        self._output = np.zeros((self._channels, max_output))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "sinc"

    @property
    def ratio(self) -> float:
        """Ratio in effect once any pending ramp has completed."""
        return self._stream.schedule.target

    @property
    def mode(self) -> SizingMode:
        return self._mode

    @property
    def ratio_bounds(self) -> tuple[float, float]:
        return self._bounds

    @property
    def boundary(self) -> BoundaryPolicy:
        return self._boundary

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    @property
    def parameters(self) -> SincParameters:
        """Resolved filter parameters (even ``sinc_len``, concrete cutoff)."""
        return self._params

    # ------------------------------------------------------------------
    # Sizing
    # ------------------------------------------------------------------

    def _ramp_len(self) -> int:
        schedule = self._stream.schedule
        if self._mode is SizingMode.FIXED_OUTPUT:
            return self._chunk_size
        return max(1, round(self._chunk_size * (schedule.start + schedule.target) / 2.0))

    def input_frames_next(self) -> int:
        if self._mode is SizingMode.FIXED_INPUT:
            return self._chunk_size
        return sinc_input_frames(
            self._stream.origin,
            self._stream.emitted,
            self._chunk_size,
            self._stream.schedule,
            self._history_len,
            self._half,
            self._ramp_len(),
        )

    def output_frames_next(self) -> int:
        if self._mode is SizingMode.FIXED_OUTPUT:
            return self._chunk_size
        return sinc_output_frames(
            self._stream.origin,
            self._stream.emitted,
            self._chunk_size,
            self._stream.schedule,
            self._history_len,
            self._half,
            self._ramp_len(),
        )

    def input_frames_max(self) -> int:
        return self._buffer.max_input

    def output_frames_max(self) -> int:
        return self._output.shape[1]

    def output_delay(self) -> int:
        return round(self._half * self.ratio)

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def set_ratio(self, ratio: RatioLike, *, relative: bool = False, ramp: bool = False) -> None:
        target = self._nominal_ratio * as_float(ratio) if relative else as_float(ratio)
        low, high = self._bounds
        tolerance = 1e-12 * high
        if not low - tolerance <= target <= high + tolerance:
            raise InvalidRatio(
                f"Ratio {target} is outside the bounds ({low}, {high})",
                ratio=ratio,
            )

        stream = self._stream
        if ramp:
            schedule = RatioSchedule(start=stream.schedule.start, target=target, ramp=True)
        else:
            schedule = RatioSchedule.constant(target)
        stream.rebase(stream.next_position(), schedule)
        if schedule.ramping:
            self._state = EngineState.RECONFIGURING

    def set_chunk_size(self, chunk_size: int) -> None:
        """Change the nominal chunk size, keeping all history.

        Raises:
            ConfigurationError: If ``chunk_size`` is not in
                ``1..max_chunk_size``.
        """
        if not 0 < chunk_size <= self._max_chunk_size:
            raise ConfigurationError(
                f"chunk_size must be between 1 and {self._max_chunk_size}, got {chunk_size}"
            )
        if chunk_size != self._chunk_size and self._state is not EngineState.IDLE:
            self._state = EngineState.RECONFIGURING
        self._chunk_size = chunk_size

    def reconfigure(
        self,
        channels: Optional[int] = None,
        mode: SizingMode | str | None = None,
        chunk_size: Optional[int] = None,
        quality: Optional[QualityLike] = None,
        boundary: BoundaryPolicy | str | None = None,
        max_chunk_size: Optional[int] = None,
    ) -> None:
        """Rebuild the engine with new settings at the current ratio.

        The filter is redesigned, buffers are reallocated and the engine
        returns to ``IDLE``. Settings left as ``None`` are kept. Nothing is
        changed if validation fails.
        """
        new_channels = self._channels if channels is None else channels
        self._validate_channels(new_channels)
        new_mode = self._mode if mode is None else self._parse_mode(mode)
        new_boundary = self._boundary if boundary is None else self._parse_boundary(boundary)
        new_chunk = self._chunk_size if chunk_size is None else chunk_size
        if max_chunk_size is None:
            max_chunk_size = max(new_chunk, self._max_chunk_size)
        new_chunk, new_max = self._parse_chunk_sizes(new_chunk, max_chunk_size)
        new_params = self._params if quality is None else resolve_quality(quality)

        self._channels = new_channels
        self._mode = new_mode
        self._boundary = new_boundary
        self._chunk_size, self._max_chunk_size = new_chunk, new_max
        self._params = new_params
        self._stream.schedule = self._stream.schedule.settled()
        self._design()
        self._allocate()
        self.reset()
        logger.debug(
            f"SincResampler reconfigured: ratio={self.ratio:.6f} channels={self._channels} "
            f"mode={self._mode.value} chunk={self._chunk_size} sinc_len={self._params.sinc_len}"
        )

    def reset(self) -> None:
        """Clear history and restart the output stream at the current ratio."""
        self._buffer.clear()
        self._output[:] = 0.0
        self._stream.rebase(
            float(self._history_len - self._half),
            self._stream.schedule.settled(),
        )
        self._primed = False
        self._state = EngineState.IDLE

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _process_planar(self, planar: np.ndarray) -> np.ndarray:
        n_in = planar.shape[1]
        n_out = self.output_frames_next()
        stream = self._stream

        if not self._primed and n_in:
            self._buffer.prime(planar, self._boundary)
            self._primed = True
        self._buffer.append(planar)

        positions = output_positions(
            stream.origin, stream.emitted, n_out, stream.schedule, self._ramp_len()
        )
        out = self._output[:, :n_out]
        if n_out:
            self._evaluate(self._buffer.view(), positions[:n_out], out)
        self._buffer.advance()

        if stream.schedule.ramping or stream.emitted + n_out > _REBASE_AFTER:
            stream.rebase(float(positions[n_out]) - n_in, stream.schedule.settled())
        else:
            stream.emitted += n_out
            stream.consumed += n_in
        self._state = EngineState.STEADY
        return out

    def _evaluate(self, data: np.ndarray, positions: np.ndarray, out: np.ndarray) -> None:
        base = np.floor(positions).astype(np.intp)
        coeffs = self._bank.coefficients(positions - base, self._params.interpolation)
        window = base[:, None] + self._offsets[None, :]
        for channel in range(self._channels):
            out[channel] = np.einsum("nl,nl->n", data[channel][window], coeffs)
