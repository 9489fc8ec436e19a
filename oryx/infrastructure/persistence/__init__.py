"""Bundled collection data layer.

This package is what model factories receive as ``orm``:

    def model(orm):
        return orm.Collection.extend(identity="user", attributes={...})
"""

from oryx.infrastructure.persistence.collection import Collection, is_collection
from oryx.infrastructure.persistence.criteria import QueryDescriptor
from oryx.infrastructure.persistence.handle import CollectionHandle
from oryx.infrastructure.persistence.registry import ORM

__all__ = [
    "ORM",
    "Collection",
    "CollectionHandle",
    "QueryDescriptor",
    "is_collection",
]
