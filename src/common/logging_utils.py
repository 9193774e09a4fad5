"""Logging helpers shared by the resolver packages and the CLI.

Modules obtain their logger with ``logging.getLogger(__name__)`` and attach
structured fields through ``extra=extra_context(...)``; this module only
configures the root logger and provides small utilities around it.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from constants import Constants


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    Level precedence: explicit argument, then ``PORTPLAN_LOG_LEVEL``, then INFO.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level_value)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` payload, dropping empty fields.

    Keys that collide with LogRecord attributes are prefixed so the logging
    module does not reject them.
    """
    reserved = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}
    ctx: Dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        ctx[f"ctx_{key}" if key in reserved else key] = value
    return ctx


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
