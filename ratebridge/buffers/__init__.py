"""Chunk/buffer management shared by the resampling engines.

- ``sizing``: pure frame-count negotiation
- ``channel_buffer``: preallocated history and FIFO storage
- ``layout``: planar/interleaved conversion and shape validation
"""

from ratebridge.buffers.channel_buffer import FrameQueue, HistoryBuffer
from ratebridge.buffers.layout import deinterleave, from_planar, interleave, to_planar
from ratebridge.buffers.sizing import (
    RatioSchedule,
    fft_block_sizes,
    fft_fixed_input_sizes,
    fft_fixed_output_sizes,
    output_positions,
    sinc_input_frames,
    sinc_output_frames,
)

__all__ = [
    "FrameQueue",
    "HistoryBuffer",
    "deinterleave",
    "from_planar",
    "interleave",
    "to_planar",
    "RatioSchedule",
    "fft_block_sizes",
    "fft_fixed_input_sizes",
    "fft_fixed_output_sizes",
    "output_positions",
    "sinc_input_frames",
    "sinc_output_frames",
]
