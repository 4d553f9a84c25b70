"""Engine registry: factory for resampler instances.

Engines are registered by name with lazy import paths, so the FFT engine
(and whatever backend it pulls in) is only imported when it is requested.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Type, Union

from loguru import logger

from ratebridge.config import ResamplerConfig, load_config
from ratebridge.core.errors import ConfigurationError
from ratebridge.engines.base import BaseResampler


class EngineRegistry:
    """Factory for creating resampling engines.

    Built-in engines are registered automatically; custom engines can be
    added with :meth:`register`.

    Example:
        resampler = engine_registry.create("sinc", ratio=1.5, channels=2)
        resampler = engine_registry.create("fft", ratio=(48000, 44100), channels=1)
    """

    def __init__(self) -> None:
        self._engines: dict[str, Type[BaseResampler] | str] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register built-in engines with lazy import paths."""
        self._engines["sinc"] = "ratebridge.engines.sinc:SincResampler"
        self._engines["fft"] = "ratebridge.engines.fft:FftResampler"

    def _resolve_class(self, ref: Type[BaseResampler] | str) -> Type[BaseResampler]:
        """Resolve a class reference, importing lazily if needed."""
        if isinstance(ref, str):
            module_path, class_name = ref.rsplit(":", 1)
            module = importlib.import_module(module_path)
            return getattr(module, class_name)
        return ref

    def register(self, name: str, cls: Type[BaseResampler]) -> None:
        """Register a custom engine class."""
        if not issubclass(cls, BaseResampler):
            raise TypeError(f"{cls} is not a subclass of BaseResampler")
        self._engines[name] = cls
        logger.debug(f"Registered resampling engine: {name}")

    def get(self, name: str) -> Type[BaseResampler]:
        """Return the engine class registered under ``name``.

        Raises:
            ConfigurationError: If the name is not registered.
        """
        if name not in self._engines:
            available = ", ".join(self._engines.keys())
            raise ConfigurationError(
                f"Unknown resampling engine '{name}'. Available: {available}"
            )
        return self._resolve_class(self._engines[name])

    def create(self, name: str, **kwargs: Any) -> BaseResampler:
        """Create an engine instance.

        Args:
            name: Engine name (e.g., "sinc", "fft").
            **kwargs: Engine constructor arguments (ratio, channels, ...).
        """
        cls = self.get(name)
        logger.debug(f"Creating resampling engine: {name}")
        return cls(**kwargs)

    def create_from_config(self, config: ResamplerConfig) -> BaseResampler:
        """Create the engine described by a validated config."""
        cls = self.get(config.engine)
        logger.debug(f"Creating resampling engine from config: {config.engine}")
        return cls.from_config(config)

    @property
    def available(self) -> list[str]:
        """Registered engine names."""
        return list(self._engines.keys())


# Global singleton
engine_registry = EngineRegistry()


def create_resampler(source: Union[ResamplerConfig, dict, str, Path]) -> BaseResampler:
    """Build a resampler from a config object, a dict or a YAML file path.

    Example:
        resampler = create_resampler("resampler.yaml")
        resampler = create_resampler({"input_rate": 44100, "output_rate": 48000})
    """
    return engine_registry.create_from_config(load_config(source))
