"""Tests for the rational FFT engine."""

import math
from fractions import Fraction

import numpy as np
import pytest

from ratebridge.core.errors import ConfigurationError, InvalidRatio, RatioNotAdjustable
from ratebridge.core.types import EngineState, SizingMode
from ratebridge.engines.fft import FftResampler, SpectralBlock, design_block_response
from ratebridge.fft.numpy_fft import NumpyRealFft


def stream(resampler, signal, calls):
    """Feed ``calls`` chunks of ``signal`` and return the concatenated output."""
    pieces = []
    consumed = 0
    for _ in range(calls):
        needed = resampler.input_frames_next()
        pieces.append(resampler.process(signal[:, consumed : consumed + needed]))
        consumed += needed
    return np.concatenate(pieces, axis=1)


class TestFftConstruction:
    """Tests for ratio reduction and block sizing."""

    def test_ratio_reduces(self):
        resampler = FftResampler((48000, 44100), 2)
        assert resampler.name == "fft"
        assert resampler.fraction == Fraction(160, 147)
        assert resampler.ratio == pytest.approx(160 / 147)
        assert resampler.block_sizes == (1029, 1120)
        assert resampler.state is EngineState.IDLE

    def test_float_ratio(self):
        """A float that is a small fraction is accepted."""
        assert FftResampler(1.5, 1).fraction == Fraction(3, 2)

    def test_irrational_ratio_rejected(self):
        with pytest.raises(InvalidRatio):
            FftResampler(math.sqrt(2), 1)

    def test_large_terms_rejected(self):
        with pytest.raises(InvalidRatio):
            FftResampler("4099/4097", 1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"chunk_size": 0},
            {"sub_chunks": 0},
            {"mode": "sideways"},
            {"fft_backend": "fftw"},
        ],
    )
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ConfigurationError):
            FftResampler(2.0, 1, **kwargs)

    def test_output_delay(self):
        """Delay is half an output block."""
        assert FftResampler(2.0, 1, chunk_size=1024).output_delay() == 1024

    def test_ratio_is_fixed(self):
        resampler = FftResampler(2.0, 1)
        with pytest.raises(RatioNotAdjustable):
            resampler.set_ratio(1.5)
        with pytest.raises(InvalidRatio):
            resampler.set_ratio(1.1, relative=True)
        assert resampler.ratio == 2.0


class TestSpectralBlock:
    """Tests for a single overlap-add block."""

    def test_response_gain(self):
        """The filter passes DC with the out / in gain folded in."""
        response = design_block_response(100, 50, NumpyRealFft())
        assert response.shape == (50,)
        assert response[0].real == pytest.approx(0.5)

    def test_overlap_carries_tail(self):
        """A block leaves a non-empty tail for the next block."""
        block = SpectralBlock(1, 64, 128, NumpyRealFft())
        out = np.zeros((1, 128))
        block.process(np.ones((1, 64)), out)
        assert np.any(block.overlap != 0.0)
        block.reset()
        assert not np.any(block.overlap)


class TestFftSizing:
    """Tests for the three sizing modes."""

    def test_fixed_input_waits_for_a_full_block(self):
        """Output appears once a whole block has been buffered."""
        resampler = FftResampler((48000, 44100), 1, chunk_size=100)
        assert resampler.block_sizes == (147, 160)
        assert resampler.process(np.zeros((1, 100))).shape == (1, 0)
        assert resampler.output_frames_next() == 160
        assert resampler.process(np.zeros((1, 100))).shape == (1, 160)
        assert resampler.output_frames_max() == 160

    def test_fixed_output(self):
        """Every call returns chunk frames; input comes in whole blocks."""
        resampler = FftResampler((48000, 44100), 1, chunk_size=1000, mode="fixed_output")
        assert resampler.mode is SizingMode.FIXED_OUTPUT
        assert resampler.input_frames_next() == 1029
        assert resampler.input_frames_max() == 1029
        total_in = 0
        for _ in range(20):
            needed = resampler.input_frames_next()
            assert needed in (0, 1029)
            assert resampler.process(np.zeros((1, needed))).shape == (1, 1000)
            total_in += needed
        assert total_in * 1120 // 1029 >= 20 * 1000

    def test_fixed_both(self):
        """Both sides are whole numbers of blocks."""
        resampler = FftResampler(2.0, 2, chunk_size=1024, mode="fixed_both", sub_chunks=2)
        assert resampler.block_sizes == (512, 1024)
        assert resampler.chunk_sizes().input_frames == 1024
        assert resampler.chunk_sizes().output_frames == 2048
        assert resampler.process(np.zeros((2, 1024))).shape == (2, 2048)


class TestFftSignal:
    """Tests for the signal produced by the engine."""

    def test_100hz_tone_44k1_to_48k(self):
        """A 100 Hz tone keeps its frequency and amplitude."""
        signal = np.sin(2.0 * np.pi * 100.0 / 44100.0 * np.arange(88200))
        resampler = FftResampler((48000, 44100), 1)
        out = resampler.process_all(signal[np.newaxis, :])
        assert out.shape == (1, 96000)

        segment = out[0, 24000:72000]
        spectrum = np.abs(np.fft.rfft(segment))
        assert abs(int(np.argmax(spectrum)) - 100) <= 1
        rms = np.sqrt(np.mean(segment**2))
        assert rms == pytest.approx(1.0 / np.sqrt(2.0), rel=0.01)

    @pytest.mark.parametrize("ratio", [(48000, 44100), (44100, 48000)])
    def test_dc_is_preserved(self, ratio):
        resampler = FftResampler(ratio, 2, chunk_size=512)
        out = resampler.process_all(np.ones((2, 8000)))
        np.testing.assert_allclose(out[:, 1500:-1500], 1.0, atol=1e-3)

    @pytest.mark.parametrize("chunk_size", [256, 1024])
    def test_anti_aliasing(self, chunk_size):
        """A 12 kHz tone is removed when converting 48 kHz to 16 kHz."""
        signal = np.sin(2.0 * np.pi * 12000.0 / 48000.0 * np.arange(48000))
        resampler = FftResampler((16000, 48000), 1, chunk_size=chunk_size)
        out = resampler.process_all(signal[np.newaxis, :])
        assert out.shape == (1, 16000)
        assert np.max(np.abs(out[0, 500:-500])) < 1e-3

    def test_up_then_down_reproduces_input(self):
        """Upsampling by 2 then downsampling by 2 restores the signal."""
        frames = np.arange(6000)
        signal = np.sin(2.0 * np.pi * 0.05 * frames) + 0.5 * np.sin(2.0 * np.pi * 0.2 * frames)
        up = FftResampler(2.0, 1).process_all(signal[np.newaxis, :])
        down = FftResampler(0.5, 1).process_all(up)
        assert down.shape == (1, 6000)
        np.testing.assert_allclose(down[0, 1500:-1500], signal[1500:-1500], atol=1e-4)

    def test_chunking_does_not_change_output(self):
        """The same block size gives the same stream whatever the chunk size."""
        signal = np.sin(2.0 * np.pi * 0.01 * np.arange(3 * 4704))[np.newaxis, :]
        small = FftResampler((48000, 44100), 1, chunk_size=588)
        large = FftResampler((48000, 44100), 1, chunk_size=4704, sub_chunks=8)
        assert small.block_sizes == large.block_sizes == (588, 640)

        out_small = stream(small, signal, 24)
        out_large = stream(large, signal, 3)
        assert out_small.shape == out_large.shape == (1, 15360)
        np.testing.assert_allclose(out_small, out_large, atol=1e-12)

    def test_reset_clears_overlap(self):
        signal = np.random.default_rng(1).standard_normal((1, 1024))
        resampler = FftResampler(2.0, 1, chunk_size=1024)
        first = resampler.process(signal)
        resampler.process(signal)
        resampler.reset()
        np.testing.assert_allclose(resampler.process(signal), first)

    def test_scipy_backend_matches_numpy(self):
        pytest.importorskip("scipy")
        signal = np.random.default_rng(2).standard_normal((2, 2048))
        with_numpy = FftResampler(1.5, 2, chunk_size=1024).process_all(signal)
        resampler = FftResampler(1.5, 2, chunk_size=1024, fft_backend="scipy")
        assert resampler.fft_backend == "scipy"
        np.testing.assert_allclose(resampler.process_all(signal), with_numpy, atol=1e-9)
