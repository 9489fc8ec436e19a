"""Oryx error types.

All errors raised by Oryx inherit from OryxError so callers can catch the
whole family without a catch-all. Each error carries a stable name, a
human-readable message and optional structured metadata (e.g. the wrapped
cause of a filesystem failure).

Error Hierarchy:
    OryxError (base)
    ├── DirectoryError (missing/non-directory path during discovery)
    ├── ConfigLoadError (profile configuration failed to load)
    ├── ValidationError (malformed request body or query)
    │   └── InvalidQueryError (unusable 'where' clause)
    └── DataLayerError (failure surfaced by the data layer)

Usage:
    from oryx.core.errors import DirectoryError

    raise DirectoryError(f"Unable to read model directory: {path}", {"cause": exc})
"""

from __future__ import annotations

from typing import Any


class OryxError(Exception):
    """Base error for everything raised by Oryx.

    Attributes:
        message: Human-readable error message.
        meta: Optional structured metadata (e.g. ``{"cause": exc}``).
    """

    def __init__(self, message: str, meta: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.meta = meta

    @property
    def name(self) -> str:
        """Stable error name, used in JSON error envelopes."""
        return type(self).__name__

    @property
    def cause(self) -> BaseException | None:
        """The wrapped underlying error, if one was attached."""
        if self.meta is None:
            return None
        return self.meta.get("cause")

    def to_dict(self) -> dict[str, str]:
        """Serialize to the ``{name, message}`` shape used in responses."""
        return {"name": self.name, "message": self.message}


class DirectoryError(OryxError):
    """A discovery path is missing, unreadable, or not a directory."""


class ConfigLoadError(OryxError):
    """A profile-specific configuration file failed to load."""


class ValidationError(OryxError):
    """Request data (body or query) failed validation."""


class InvalidQueryError(ValidationError):
    """The resolved 'where' clause is neither a mapping nor a list."""


class DataLayerError(OryxError):
    """Any failure surfaced by the data layer or its adapters."""
