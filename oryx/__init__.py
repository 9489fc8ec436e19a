"""Oryx - convention-driven auto-wiring of models and APIs for FastAPI."""

from oryx.core.errors import (
    ConfigLoadError,
    DataLayerError,
    DirectoryError,
    InvalidQueryError,
    OryxError,
    ValidationError,
)
from oryx.core.response import OryxResponse
from oryx.discovery.apis import ApiDescriptor
from oryx.infrastructure.persistence import ORM, Collection, CollectionHandle
from oryx.instance import Oryx
from oryx.presentation.responses import ResponseBuilder
from oryx.presentation.routes.context import BindingContext

__all__ = [
    "ORM",
    "ApiDescriptor",
    "BindingContext",
    "Collection",
    "CollectionHandle",
    "ConfigLoadError",
    "DataLayerError",
    "DirectoryError",
    "InvalidQueryError",
    "Oryx",
    "OryxError",
    "OryxResponse",
    "ResponseBuilder",
    "ValidationError",
]
