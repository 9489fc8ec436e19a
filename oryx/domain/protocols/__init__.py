"""Domain protocols (ports) package.

Infrastructure adapters implement these protocols without inheritance.

Usage:
    from oryx.domain.protocols import AdapterProtocol, LoggerProtocol
"""

from oryx.domain.protocols.adapter_protocol import AdapterProtocol
from oryx.domain.protocols.logger_protocol import LoggerProtocol

__all__ = ["AdapterProtocol", "LoggerProtocol"]
