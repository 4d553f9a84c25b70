"""Synchronous resampler for fixed rational ratios, using FFT overlap-add.

Every block of ``in`` input frames becomes exactly ``out`` output frames,
where ``out / in`` is the reduced ratio ``u / d``. Blocks are aligned to the
start of the stream, so the output does not depend on how the caller cuts
the stream as long as the block size stays the same.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import TYPE_CHECKING

import numpy as np
from loguru import logger

from ratebridge.buffers.channel_buffer import FrameQueue
from ratebridge.buffers.sizing import fft_block_sizes, fft_fixed_input_sizes, fft_fixed_output_sizes
from ratebridge.core.errors import ConfigurationError, RatioNotAdjustable
from ratebridge.core.ratio import RatioLike, as_fraction
from ratebridge.core.types import ChannelLayout, EngineState, SizingMode, WindowFunction
from ratebridge.dsp.designer import design_sinc_filter
from ratebridge.dsp.windows import calculate_cutoff
from ratebridge.engines.base import BaseResampler
from ratebridge.fft.base import RealFft
from ratebridge.fft.registry import fft_registry

if TYPE_CHECKING:
    from ratebridge.config import ResamplerConfig

_WINDOW = WindowFunction.BLACKMAN_HARRIS2


def design_block_response(block_in: int, block_out: int, fft: RealFft) -> np.ndarray:
    """Spectrum of the anti-aliasing filter applied to every block.

    The filter is a windowed sinc of ``block_in`` taps. When downsampling its
    cutoff is lowered to the output Nyquist frequency. Only the bins shared
    by the input and output spectra are returned, already scaled by the
    ``out / in`` gain the inverse transform needs.
    """
    if block_out < block_in:
        cutoff = calculate_cutoff(block_out, _WINDOW) * block_out / block_in
    else:
        cutoff = calculate_cutoff(block_in, _WINDOW)
    taps = design_sinc_filter(block_in, 1, cutoff, _WINDOW)
    taps /= taps.sum()

    padded = np.zeros(2 * block_in)
    padded[:block_in] = taps
    bins = min(block_in, block_out)
    return fft.forward(padded)[:bins] * (block_out / block_in)


class SpectralBlock:
    """Overlap-add state for fixed-size blocks.

    Holds the zero-padded input scratch, the output spectrum scratch and the
    overlap tail carried into the next block.
    """

    def __init__(self, channels: int, block_in: int, block_out: int, fft: RealFft) -> None:
        self.block_in = block_in
        self.block_out = block_out
        self._fft = fft
        self._response = design_block_response(block_in, block_out, fft)
        self._bins = self._response.shape[0]
        self._padded = np.zeros((channels, 2 * block_in))
        self._spectrum = np.zeros((channels, block_out + 1), dtype=np.complex128)
        self.overlap = np.zeros((channels, block_out))

    def process(self, samples: np.ndarray, out: np.ndarray) -> None:
        """Resample one ``(channels, block_in)`` block into ``out``."""
        self._padded[:, : self.block_in] = samples
        spectrum = self._fft.forward(self._padded)
        self._spectrum[:, : self._bins] = spectrum[:, : self._bins] * self._response
        result = self._fft.inverse(self._spectrum, 2 * self.block_out)
        out[:] = result[:, : self.block_out] + self.overlap
        self.overlap[:] = result[:, self.block_out :]

    def reset(self) -> None:
        self._padded[:] = 0.0
        self.overlap[:] = 0.0


class FftResampler(BaseResampler):
    """Fixed-ratio resampler with synchronous, block-aligned output.

    Args:
        ratio: Output rate / input rate. Must reduce to ``u / d`` with both
            terms at most 4096.
        channels: Number of channels.
        chunk_size: Frames on the fixed side of each call.
        mode: ``fixed_input``, ``fixed_output`` or ``fixed_both``.
        sub_chunks: Number of FFT blocks a chunk is split into. More blocks
            mean shorter FFTs and lower latency.
        fft_backend: Registered backend name or a :class:`RealFft` instance.
        layout: Caller buffer layout.
        dtype: Output sample type (float32 or float64).

    Raises:
        InvalidRatio: The ratio cannot be represented with small terms.
        ConfigurationError: Any other invalid setting.
    """

    def __init__(
        self,
        ratio: RatioLike,
        channels: int,
        chunk_size: int = 1024,
        mode: SizingMode | str = SizingMode.FIXED_INPUT,
        sub_chunks: int = 1,
        fft_backend: str | RealFft = "numpy",
        layout: ChannelLayout | str = ChannelLayout.PLANAR,
        dtype: str | np.dtype | type = np.float64,
    ) -> None:
        super().__init__(channels, layout=layout, dtype=dtype)
        self._fraction = as_fraction(ratio)
        try:
            self._mode = SizingMode(mode)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown sizing mode: {mode!r}") from exc
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if sub_chunks <= 0:
            raise ConfigurationError(f"sub_chunks must be positive, got {sub_chunks}")
        self._chunk_size = chunk_size
        self._sub_chunks = sub_chunks

        block_in, block_out = fft_block_sizes(self._fraction, chunk_size, sub_chunks, self._mode)
        self._fft = fft_registry.create(fft_backend)
        self._block = SpectralBlock(channels, block_in, block_out, self._fft)

        if self._mode is SizingMode.FIXED_INPUT:
            self._input_queue = FrameQueue(channels, chunk_size + block_in)
            max_out = ((block_in - 1 + chunk_size) // block_in) * block_out
            self._output = np.zeros((channels, max_out))
        elif self._mode is SizingMode.FIXED_OUTPUT:
            self._output_queue = FrameQueue(channels, chunk_size + block_out)
            self._output = np.zeros((channels, chunk_size))
            self._scratch = np.zeros((channels, block_out))
        else:
            self._output = np.zeros((channels, sub_chunks * block_out))

        self.reset()
        logger.debug(
            f"FftResampler: ratio={self._fraction} channels={channels} mode={self._mode.value} "
            f"block={block_in}->{block_out} backend={self._fft.name}"
        )

    @classmethod
    def from_config(cls, config: ResamplerConfig) -> FftResampler:
        return cls(
            ratio=config.ratio,
            channels=config.channels,
            chunk_size=config.chunk_size,
            mode=config.mode,
            sub_chunks=config.fft.sub_chunks,
            fft_backend=config.fft.backend,
            layout=config.layout,
            dtype=config.dtype,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "fft"

    @property
    def ratio(self) -> float:
        return float(self._fraction)

    @property
    def fraction(self) -> Fraction:
        """The exact ratio ``u / d``."""
        return self._fraction

    @property
    def mode(self) -> SizingMode:
        return self._mode

    @property
    def block_sizes(self) -> tuple[int, int]:
        """``(input, output)`` frames per FFT block."""
        return self._block.block_in, self._block.block_out

    @property
    def fft_backend(self) -> str:
        return self._fft.name

    # ------------------------------------------------------------------
    # Sizing
    # ------------------------------------------------------------------

    def input_frames_next(self) -> int:
        block_in, block_out = self.block_sizes
        if self._mode is SizingMode.FIXED_INPUT:
            return self._chunk_size
        if self._mode is SizingMode.FIXED_OUTPUT:
            return fft_fixed_output_sizes(
                len(self._output_queue), self._chunk_size, block_in, block_out
            ).input_frames
        return self._sub_chunks * block_in

    def output_frames_next(self) -> int:
        block_in, block_out = self.block_sizes
        if self._mode is SizingMode.FIXED_INPUT:
            return fft_fixed_input_sizes(
                len(self._input_queue), self._chunk_size, block_in, block_out
            ).output_frames
        if self._mode is SizingMode.FIXED_OUTPUT:
            return self._chunk_size
        return self._sub_chunks * block_out

    def input_frames_max(self) -> int:
        block_in, block_out = self.block_sizes
        if self._mode is SizingMode.FIXED_INPUT:
            return self._chunk_size
        if self._mode is SizingMode.FIXED_OUTPUT:
            return math.ceil(self._chunk_size / block_out) * block_in
        return self._sub_chunks * block_in

    def output_frames_max(self) -> int:
        return self._output.shape[1]

    def output_delay(self) -> int:
        return self._block.block_out // 2

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def set_ratio(self, ratio: RatioLike, *, relative: bool = False, ramp: bool = False) -> None:
        raise RatioNotAdjustable(
            f"The fft engine runs at a fixed ratio of {self._fraction}; "
            f"use the sinc engine to change the ratio while streaming",
            ratio=ratio,
        )

    def reset(self) -> None:
        self._block.reset()
        self._output[:] = 0.0
        if self._mode is SizingMode.FIXED_INPUT:
            self._input_queue.clear()
        elif self._mode is SizingMode.FIXED_OUTPUT:
            self._output_queue.clear()
        self._state = EngineState.IDLE

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _process_planar(self, planar: np.ndarray) -> np.ndarray:
        block_in, block_out = self.block_sizes
        if self._mode is SizingMode.FIXED_INPUT:
            n_out = self.output_frames_next()
            self._input_queue.push(planar)
            for start in range(0, n_out, block_out):
                samples = self._input_queue.pop(block_in)
                self._block.process(samples, self._output[:, start : start + block_out])
            result = self._output[:, :n_out]
        elif self._mode is SizingMode.FIXED_OUTPUT:
            for start in range(0, planar.shape[1], block_in):
                self._block.process(planar[:, start : start + block_in], self._scratch)
                self._output_queue.push(self._scratch)
            result = self._output_queue.pop(self._chunk_size, out=self._output)
        else:
            for index in range(self._sub_chunks):
                self._block.process(
                    planar[:, index * block_in : (index + 1) * block_in],
                    self._output[:, index * block_out : (index + 1) * block_out],
                )
            result = self._output
        self._state = EngineState.STEADY
        return result
