"""Filter design: windows, windowed-sinc prototypes and polyphase banks."""

from ratebridge.dsp.designer import (
    QUALITY_PRESETS,
    SincParameters,
    design_sinc_filter,
    resolve_quality,
)
from ratebridge.dsp.polyphase import PolyphaseFilterBank
from ratebridge.dsp.windows import calculate_cutoff, make_window

__all__ = [
    "QUALITY_PRESETS",
    "SincParameters",
    "design_sinc_filter",
    "resolve_quality",
    "PolyphaseFilterBank",
    "calculate_cutoff",
    "make_window",
]
