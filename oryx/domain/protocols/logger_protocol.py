"""LoggerProtocol definition for structured logging.

Every Oryx component logs through this protocol, so an application can hand
its own structured logger to the instance while the default stays a
structlog console adapter.

Log Levels:
    - DEBUG: Loaded models/APIs, full failure detail
    - INFO: Autowiring summary
    - WARNING: Skipped model files or API descriptors

Usage:
    from oryx.domain.protocols.logger_protocol import LoggerProtocol

    def report(logger: LoggerProtocol, path: Path) -> None:
        logger.bind(path=str(path)).warning("Unable to load model")
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    All logging calls are structured: message + key-value context.
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message.

        Args:
            message: Human-readable message (avoid f-strings; use context).
            **context: Structured key-value context fields.
        """
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message."""
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message."""
        ...

    def bind(self, **context: Any) -> "LoggerProtocol":
        """Return new logger with permanently bound context.

        Args:
            **context: Context to bind to all future logs.

        Returns:
            LoggerProtocol: New logger instance with merged context.
        """
        ...
