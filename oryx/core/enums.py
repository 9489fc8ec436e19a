"""Enumerations shared across Oryx layers."""

from enum import Enum


class HTTPMethod(str, Enum):
    """HTTP methods accepted in route keys.

    Attributes:
        GET: Safe, idempotent read operations
        POST: Non-idempotent create operations
        PUT: Idempotent complete replacement
        DELETE: Idempotent delete operations
        PATCH: Non-idempotent partial update
        HEAD: Headers-only read
        OPTIONS: Capability discovery
        TRACE: Loop-back diagnostics
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class LogLevel(str, Enum):
    """Log levels accepted by the console logger."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
