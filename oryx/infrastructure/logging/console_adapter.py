"""Console logging adapter.

Writes structured Oryx logs to stdout through structlog, rendered for humans
by default or as JSON lines with ``log_json=True``.

Each adapter wraps its own structlog logger instead of configuring structlog
globally, so several Oryx instances can log at different levels in the same
process. Discovery binds the file or package it is working on, so every
warning about a skipped model or API carries its ``path``.

Implementation intentionally does NOT inherit from LoggerProtocol (PEP 544
structural subtyping).
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from oryx.core.enums import LogLevel


class ConsoleAdapter:
    """Console logger for an Oryx instance.

    Args:
        level (LogLevel | str): Minimum level emitted.
        use_json (bool): JSON output when True, human-readable when False.
    """

    def __init__(
        self, *, level: LogLevel | str = LogLevel.DEBUG, use_json: bool = False
    ) -> None:
        name = level.value if isinstance(level, LogLevel) else str(level).upper()

        processors: list[structlog.types.Processor] = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer()
            if use_json
            else structlog.dev.ConsoleRenderer(colors=True),
        ]

        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=sys.stdout),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(
                logging.getLevelName(name)
            ),
            context_class=dict,
        )

    @classmethod
    def _from_logger(cls, logger: Any) -> ConsoleAdapter:
        adapter = cls.__new__(cls)
        adapter._logger = logger
        return adapter

    def debug(self, message: str, /, **context: Any) -> None:
        self._log("debug", message, context)

    def info(self, message: str, /, **context: Any) -> None:
        self._log("info", message, context)

    def warning(self, message: str, /, **context: Any) -> None:
        self._log("warning", message, context)

    def bind(self, **context: Any) -> ConsoleAdapter:
        """Return an adapter that adds context to every later entry."""
        return self._from_logger(self._logger.bind(**context))

    def _log(self, level: str, message: str, context: dict[str, Any]) -> None:
        # the filtering wrapper turns methods below the level into no-ops
        getattr(self._logger, level)(message, **context)
