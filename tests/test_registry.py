"""Tests for the engine and FFT backend registries."""

import numpy as np
import pytest

from ratebridge.core.errors import ConfigurationError
from ratebridge.engines.registry import EngineRegistry, engine_registry
from ratebridge.engines.sinc import SincResampler
from ratebridge.fft.base import RealFft
from ratebridge.fft.numpy_fft import NumpyRealFft
from ratebridge.fft.registry import FftRegistry, fft_registry


class TestEngineRegistry:
    """Tests for engine lookup and creation."""

    def test_builtins(self):
        assert engine_registry.available == ["sinc", "fft"]

    def test_get_resolves_lazy_path(self):
        assert engine_registry.get("sinc") is SincResampler
        assert engine_registry.get("fft").__name__ == "FftResampler"

    def test_unknown_engine(self):
        with pytest.raises(ConfigurationError, match="sinc, fft"):
            engine_registry.get("linear")

    def test_create(self):
        resampler = engine_registry.create("sinc", ratio=0.5, channels=1, quality="fastest")
        assert isinstance(resampler, SincResampler)
        assert resampler.ratio == 0.5

    def test_register_custom_engine(self):
        """Custom engines can be registered on a separate registry."""

        class HalfRate(SincResampler):
            def __init__(self, channels: int = 1, **kwargs):
                super().__init__(ratio=0.5, channels=channels, **kwargs)

        registry = EngineRegistry()
        registry.register("half", HalfRate)
        assert "half" in registry.available
        assert "half" not in engine_registry.available
        assert registry.create("half", channels=2).ratio == 0.5

    def test_register_rejects_non_engine(self):
        with pytest.raises(TypeError):
            EngineRegistry().register("bad", dict)


class TestFftRegistry:
    """Tests for FFT backend lookup."""

    def test_default_backend(self):
        fft = fft_registry.create()
        assert isinstance(fft, NumpyRealFft)
        assert fft.name == "numpy"

    def test_instance_passthrough(self):
        fft = NumpyRealFft()
        assert fft_registry.create(fft) is fft

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError, match="numpy"):
            fft_registry.create("fftw")

    def test_register(self):
        class DoubledFft(NumpyRealFft):
            @property
            def name(self) -> str:
                return "doubled"

        registry = FftRegistry()
        registry.register("doubled", DoubledFft)
        assert registry.create("doubled").name == "doubled"
        with pytest.raises(TypeError):
            registry.register("bad", object)

    def test_numpy_transform_pair(self):
        """inverse(forward(x)) returns x along the last axis."""
        fft = NumpyRealFft()
        samples = np.random.default_rng(0).standard_normal((2, 32))
        spectrum = fft.forward(samples)
        assert spectrum.shape == (2, 17)
        np.testing.assert_allclose(fft.inverse(spectrum, 32), samples, atol=1e-12)
        assert isinstance(fft, RealFft)
