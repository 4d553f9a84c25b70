"""Logging setup.

ratebridge logs through loguru at debug level only (construction,
registration, reconfiguration). The package disables its own messages on
import; applications that want them call :func:`configure_logging`, which
re-enables them and replaces loguru's default sink.
"""

from __future__ import annotations

import sys
from typing import Any, TextIO, Union

from loguru import logger

from ratebridge.config import LoggingConfig


def configure_logging(level: Union[str, LoggingConfig] = "INFO", sink: Any = None) -> int:
    """Route loguru output to ``sink`` at ``level``.

    Args:
        level: A level name or the ``logging`` section of a config.
        sink: Anything loguru accepts as a sink. Defaults to stderr.

    Returns:
        The loguru handler id, usable with ``logger.remove(handler_id)``.
    """
    if isinstance(level, LoggingConfig):
        level = level.level
    target: Union[TextIO, Any] = sys.stderr if sink is None else sink
    logger.remove()
    logger.enable("ratebridge")
    return logger.add(target, level=level.upper())
