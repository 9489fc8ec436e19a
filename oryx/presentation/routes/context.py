"""Binding context shared by every attached model route."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from oryx.core.config_loader import OryxConfig
    from oryx.domain.protocols.logger_protocol import LoggerProtocol
    from oryx.infrastructure.persistence.handle import CollectionHandle


@dataclass(frozen=True, slots=True, kw_only=True)
class BindingContext:
    """Read-only state handed to route handlers as their third argument.

    Attributes:
        config: Merged instance configuration.
        logger: Instance logger.
        models: Live collection handles keyed by name (read-only mapping).
    """

    config: OryxConfig
    logger: LoggerProtocol
    models: Mapping[str, CollectionHandle]
