"""Core shared kernel.

This module provides foundational pieces used across all layers:
- Error classes and the JSON response envelope
- Instance settings and configuration file loading
- Shared enums

The core module has NO dependencies on other Oryx layers.
"""

from oryx.core.errors import (
    ConfigLoadError,
    DataLayerError,
    DirectoryError,
    InvalidQueryError,
    OryxError,
    ValidationError,
)
from oryx.core.enums import HTTPMethod, LogLevel
from oryx.core.response import OryxResponse

__all__ = [
    "ConfigLoadError",
    "DataLayerError",
    "DirectoryError",
    "HTTPMethod",
    "InvalidQueryError",
    "LogLevel",
    "OryxError",
    "OryxResponse",
    "ValidationError",
]
