"""AdapterProtocol definition for data-layer storage backends.

Collection handles delegate storage to an adapter bound to a named
connection. Handles hand adapters already-normalized input: a
QueryDescriptor whose ``where`` is a mapping with values cast to the schema
types, and value mappings with timestamps applied.

Implementations:
    - SqlAdapter: SQLAlchemy async engine (in-memory SQLite by default)

Usage:
    adapter = SqlAdapter(url="sqlite+aiosqlite:///:memory:")
    await adapter.connect()
    await adapter.define("user", schema, "id")
    record = await adapter.create("user", {"firstName": "Bob"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from oryx.infrastructure.persistence.criteria import QueryDescriptor


class AdapterProtocol(Protocol):
    """Protocol for storage adapters.

    Every method is async. Records are plain dicts; returned dicts are
    copies the caller may mutate.
    """

    async def connect(self) -> None:
        """Open any underlying resources."""
        ...

    async def define(
        self, identity: str, schema: dict[str, dict[str, Any]], primary_key: str
    ) -> None:
        """Register (or create) storage for a collection.

        Args:
            identity: Collection name.
            schema: Normalized attribute definitions.
            primary_key: Primary key attribute name.
        """
        ...

    async def find(self, identity: str, query: QueryDescriptor) -> list[dict[str, Any]]:
        """Return matching records after sort, skip, limit and select."""
        ...

    async def create(self, identity: str, values: dict[str, Any]) -> dict[str, Any]:
        """Insert one record and return it as stored."""
        ...

    async def update(
        self, identity: str, query: QueryDescriptor, values: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Apply values to matching records and return the updated records."""
        ...

    async def destroy(
        self, identity: str, query: QueryDescriptor
    ) -> list[dict[str, Any]]:
        """Delete matching records and return them."""
        ...

    async def count(self, identity: str, query: QueryDescriptor) -> int:
        """Count matching records (skip and limit applied)."""
        ...

    async def teardown(self) -> None:
        """Release resources held by the adapter."""
        ...
