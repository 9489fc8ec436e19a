"""Live collection handles.

A CollectionHandle is what route handlers receive as ``model``. It
normalizes criteria, casts values to the declared attribute types,
maintains timestamps and delegates storage to the connection's adapter.
Adapter failures surface as DataLayerError.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping, Sequence
from datetime import UTC, date, datetime
from functools import lru_cache
from typing import TYPE_CHECKING, Any, TypeVar

import pydantic

from oryx.core.errors import DataLayerError, OryxError
from oryx.infrastructure.persistence.collection import Collection, primary_key_of
from oryx.infrastructure.persistence.criteria import (
    COMPARISON_OPERATORS,
    MEMBERSHIP_OPERATORS,
    NEGATION_OPERATORS,
    QueryDescriptor,
    normalize_criteria,
)

if TYPE_CHECKING:
    from oryx.domain.protocols.adapter_protocol import AdapterProtocol

T = TypeVar("T")

# Attribute type name -> Python type validated in pydantic's lax mode
ATTRIBUTE_TYPES: dict[str, Any] = {
    "string": str,
    "text": str,
    "integer": int,
    "float": float,
    "number": float,
    "boolean": bool,
    "date": date,
    "datetime": datetime,
    "json": Any,
    "array": list[Any],
    "binary": bytes,
}

_CAST_CONFIG = pydantic.ConfigDict(coerce_numbers_to_str=True)


class CollectionHandle:
    """Handle bound to one registered collection.

    Attributes:
        identity: Collection identity.
        name: Registry key (set by the model loader, equal to identity).
        attributes: Normalized schema (see ``Collection.schema``).
        primary_key: Primary key attribute name.
        connection: Connection name the collection is stored on.
        custom_routes: Route key to handler overrides.
        includes: Route include patterns, None for all.
        excludes: Route exclude patterns, None for none.
        routes: Active route keys, computed when APIs are mounted.
    """

    def __init__(self, definition: type[Collection], adapter: AdapterProtocol) -> None:
        schema = definition.schema()
        primary_key = primary_key_of(schema)
        if primary_key is None:
            raise DataLayerError(f"Collection '{definition.identity}' has no primary key")

        self.definition = definition
        self.identity: str = str(definition.identity)
        self.name: str = self.identity
        self.attributes = schema
        self.primary_key = primary_key
        self.connection = definition.connection
        self.custom_routes = dict(definition.custom_routes)
        self.includes = definition.includes
        self.excludes = definition.excludes
        self.routes: list[str] = []
        self._adapter = adapter
        self._validators = {
            name: attribute_adapter(attribute.get("type", "")) for name, attribute in schema.items()
        }

    def __repr__(self) -> str:
        return f"CollectionHandle(identity={self.identity!r}, connection={self.connection!r})"

    async def find(self, criteria: Any = None) -> list[dict[str, Any]]:
        """Return records matching criteria."""
        query = self._query(criteria)
        return await self._call(self._adapter.find(self.identity, query))

    async def find_one(self, criteria: Any) -> dict[str, Any] | None:
        """Return the first matching record, or None."""
        query = self._query(criteria)
        query.limit = 1
        records = await self._call(self._adapter.find(self.identity, query))
        return records[0] if records else None

    async def create(
        self, values: Mapping[str, Any] | Sequence[Mapping[str, Any]]
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Create one record from a mapping, or several from a list of mappings."""
        if isinstance(values, Mapping):
            return await self._create_one(values)
        if isinstance(values, (list, tuple)):
            return [await self._create_one(item) for item in values]
        raise DataLayerError("Records must be an object or a list of objects")

    async def update(self, criteria: Any, values: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Apply values to every matching record and return the updated records."""
        if not isinstance(values, Mapping):
            raise DataLayerError("Update values must be an object")
        query = self._query(criteria)
        changes = self._cast_values(values)
        if self.definition.auto_updated_at:
            changes["updatedAt"] = _now()
        return await self._call(self._adapter.update(self.identity, query, changes))

    async def destroy(self, criteria: Any = None) -> list[dict[str, Any]]:
        """Delete every matching record and return the deleted records."""
        query = self._query(criteria)
        return await self._call(self._adapter.destroy(self.identity, query))

    async def count(self, criteria: Any = None) -> int:
        """Count matching records."""
        query = self._query(criteria)
        return await self._call(self._adapter.count(self.identity, query))

    async def find_or_create(
        self, criteria: Any, values: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Return the first match, creating a record from values when none exists."""
        found = await self.find_one(criteria)
        if found is not None:
            return found

        if values is None:
            where = self._query(criteria).where
            values = {
                k: v for k, v in where.items() if k in self.attributes and not _is_clause(v)
            }
        return await self._create_one(values)

    async def _create_one(self, values: Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(values, Mapping):
            raise DataLayerError("Records must be an object or a list of objects")
        record = self._cast_values(values)
        now = _now()
        if self.definition.auto_created_at:
            record.setdefault("createdAt", now)
        if self.definition.auto_updated_at:
            record.setdefault("updatedAt", now)
        return await self._call(self._adapter.create(self.identity, record))

    def _query(self, criteria: Any) -> QueryDescriptor:
        query = normalize_criteria(criteria, self.primary_key)
        query.where = self._cast_where(query.where)
        return query

    def _cast_values(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return {name: self._cast(name, value) for name, value in values.items()}

    def _cast_where(self, where: Mapping[str, Any]) -> dict[str, Any]:
        cast: dict[str, Any] = {}
        for key, condition in where.items():
            if key in ("or", "and") and isinstance(condition, (list, tuple)):
                cast[key] = [
                    self._cast_where(c) if isinstance(c, Mapping) else c for c in condition
                ]
            elif isinstance(condition, Mapping):
                cast[key] = {
                    op: self._cast_operand(key, op, operand) for op, operand in condition.items()
                }
            elif isinstance(condition, (list, tuple)):
                cast[key] = [self._cast(key, item) for item in condition]
            else:
                cast[key] = self._cast(key, condition)
        return cast

    def _cast_operand(self, name: str, operator: str, operand: Any) -> Any:
        if operator in NEGATION_OPERATORS or operator in MEMBERSHIP_OPERATORS:
            if isinstance(operand, (list, tuple)):
                return [self._cast(name, item) for item in operand]
            return self._cast(name, operand)
        if operator in COMPARISON_OPERATORS:
            return self._cast(name, operand)
        return operand

    def _cast(self, name: str, value: Any) -> Any:
        validator = self._validators.get(name)
        if validator is None or value is None:
            return value
        try:
            return validator.validate_python(value)
        except pydantic.ValidationError as e:
            type_name = self.attributes[name].get("type")
            raise DataLayerError(
                f"Invalid value {value!r} for attribute '{name}' of type '{type_name}'",
                {"cause": e},
            ) from e

    async def _call(self, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except OryxError:
            raise
        except Exception as e:
            raise DataLayerError(str(e) or type(e).__name__, {"cause": e}) from e


def attribute_adapter(type_name: str) -> pydantic.TypeAdapter[Any]:
    """Return the validator for an attribute type; unknown types pass through."""
    return _attribute_adapter(str(type_name).lower())


@lru_cache(maxsize=None)
def _attribute_adapter(type_name: str) -> pydantic.TypeAdapter[Any]:
    return pydantic.TypeAdapter(ATTRIBUTE_TYPES.get(type_name, Any), config=_CAST_CONFIG)


def cast_value(value: Any, type_name: str) -> Any:
    """Cast a value to an attribute type; None is never cast.

    Raises:
        pydantic.ValidationError: If the value cannot represent the type.
    """
    if value is None:
        return None
    return attribute_adapter(type_name).validate_python(value)


def _is_clause(condition: Any) -> bool:
    return isinstance(condition, (Mapping, list, tuple))


def _now() -> datetime:
    return datetime.now(UTC)
