"""FFT backend registry.

Backends are registered by name, either as classes or as lazy
``"module:Class"`` import paths, so optional dependencies such as scipy are
only imported when that backend is actually requested.
"""

from __future__ import annotations

import importlib
from typing import Any, Type

from loguru import logger

from ratebridge.core.errors import ConfigurationError
from ratebridge.fft.base import RealFft


class FftRegistry:
    """Factory for :class:`RealFft` backends.

    Example:
        fft = fft_registry.create("numpy")
        fft = fft_registry.create("scipy", workers=4)
    """

    def __init__(self) -> None:
        self._backends: dict[str, Type[RealFft] | str] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        self._backends["numpy"] = "ratebridge.fft.numpy_fft:NumpyRealFft"
        self._backends["scipy"] = "ratebridge.fft.scipy_fft:ScipyRealFft"

    def _resolve_class(self, name: str, ref: Type[RealFft] | str) -> Type[RealFft]:
        if not isinstance(ref, str):
            return ref
        module_path, class_name = ref.rsplit(":", 1)
        try:
            module = importlib.import_module(module_path)
        except ImportError as exc:
            raise ConfigurationError(
                f"FFT backend '{name}' is not available: {exc}. "
                f"Install its optional dependency (e.g. ratebridge[{name}])."
            ) from exc
        return getattr(module, class_name)

    def register(self, name: str, cls: Type[RealFft]) -> None:
        """Register a custom FFT backend class."""
        if not issubclass(cls, RealFft):
            raise TypeError(f"{cls} is not a subclass of RealFft")
        self._backends[name] = cls
        logger.debug(f"Registered FFT backend: {name}")

    def create(self, backend: str | RealFft = "numpy", **kwargs: Any) -> RealFft:
        """Return a backend instance.

        Args:
            backend: A registered name, or an existing :class:`RealFft`
                which is returned unchanged.
            **kwargs: Passed to the backend constructor.

        Raises:
            ConfigurationError: If the name is unknown or its dependency is
                not installed.
        """
        if isinstance(backend, RealFft):
            return backend
        if backend not in self._backends:
            available = ", ".join(self._backends)
            raise ConfigurationError(
                f"Unknown FFT backend '{backend}'. Available: {available}"
            )
        cls = self._resolve_class(backend, self._backends[backend])
        logger.debug(f"Creating FFT backend: {backend}")
        return cls(**kwargs)

    @property
    def available(self) -> list[str]:
        """Registered backend names (importability is checked on create)."""
        return list(self._backends.keys())


# Global singleton
fft_registry = FftRegistry()
