"""Model definitions.

A model module exposes a ``model(orm)`` factory returning a Collection
subclass. Subclassing Collection is the marker the loader checks before a
definition is registered with the data layer.

Usage:
    def model(orm):
        return orm.Collection.extend(
            identity="user",
            attributes={"firstName": "string", "lastName": "string"},
            custom_routes={"GET /hello": hello},
            excludes=["DELETE /"],
        )
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any, ClassVar

RouteHandler = Callable[..., Any]
RoutePatternSpec = str | re.Pattern[str]

AUTO_PRIMARY_KEY: dict[str, Any] = {
    "autoIncrement": True,
    "primaryKey": True,
    "type": "integer",
    "unique": True,
}

_DEFINITION_KEYS = frozenset(
    {
        "identity",
        "connection",
        "attributes",
        "auto_pk",
        "auto_created_at",
        "auto_updated_at",
        "custom_routes",
        "includes",
        "excludes",
    }
)


class Collection:
    """Base class for every model definition.

    Attributes:
        identity: Unique model name; also the URL segment routes mount under.
        connection: Name of the configured connection storing the model.
        attributes: Field name to type string or attribute mapping.
        auto_pk: Add an auto-incrementing integer ``id`` when no primary key is declared.
        auto_created_at: Maintain a ``createdAt`` timestamp.
        auto_updated_at: Maintain an ``updatedAt`` timestamp.
        custom_routes: Route key to handler; overrides default routes with the same key.
        includes: Patterns a route key must match to be attached (None means all).
        excludes: Patterns that prevent a route key from being attached.
    """

    identity: ClassVar[str | None] = None
    connection: ClassVar[str] = "default"
    attributes: ClassVar[Mapping[str, Any]] = {}
    auto_pk: ClassVar[bool] = True
    auto_created_at: ClassVar[bool] = True
    auto_updated_at: ClassVar[bool] = True
    custom_routes: ClassVar[Mapping[str, RouteHandler]] = {}
    includes: ClassVar[Sequence[RoutePatternSpec] | None] = None
    excludes: ClassVar[Sequence[RoutePatternSpec] | None] = None

    @classmethod
    def extend(cls, **definition: Any) -> type[Collection]:
        """Create a Collection subclass from keyword definitions.

        Args:
            **definition: Any of the class attributes documented above.

        Returns:
            type[Collection]: The new model definition.

        Raises:
            TypeError: If an unknown definition key is given.
        """
        unknown = set(definition) - _DEFINITION_KEYS
        if unknown:
            raise TypeError(f"Unknown collection definition keys: {sorted(unknown)}")

        identity = str(definition.get("identity") or "collection")
        class_name = "".join(part.title() for part in re.split(r"\W|_", identity) if part)
        return type(class_name or "Collection", (cls,), dict(definition))

    @classmethod
    def schema(cls) -> dict[str, dict[str, Any]]:
        """Normalized attribute definitions, including generated attributes."""
        schema: dict[str, dict[str, Any]] = {}
        for name, definition in cls.attributes.items():
            if isinstance(definition, str):
                schema[name] = {"type": definition}
            elif isinstance(definition, Mapping):
                schema[name] = dict(definition)
            else:
                raise TypeError(f"Invalid definition for attribute '{name}'")

        if cls.auto_pk and not any(a.get("primaryKey") for a in schema.values()):
            schema["id"] = dict(AUTO_PRIMARY_KEY)
        if cls.auto_created_at:
            schema.setdefault("createdAt", {"type": "datetime"})
        if cls.auto_updated_at:
            schema.setdefault("updatedAt", {"type": "datetime"})
        return schema


def is_collection(candidate: Any) -> bool:
    """Return True if candidate is a usable Collection subclass."""
    return (
        isinstance(candidate, type)
        and issubclass(candidate, Collection)
        and candidate is not Collection
        and bool(candidate.identity)
    )


def primary_key_of(schema: Mapping[str, Mapping[str, Any]]) -> str | None:
    """Return the first attribute flagged as primary key."""
    for name, attribute in schema.items():
        if attribute.get("primaryKey"):
            return name
    return None
