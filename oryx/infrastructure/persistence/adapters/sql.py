"""SQL storage adapter built on SQLAlchemy's async engine.

One table is created per collection from its normalized schema, and the
shared criteria language is compiled into SQLAlchemy Core expressions.
Without a url the adapter opens a private in-memory SQLite database; this is
what the fallback ``default`` connection uses.

Configuration:
    orm:
      adapters:
        sql: oryx.infrastructure.persistence.adapters.sql:SqlAdapter
      connections:
        default:
          adapter: sql
          url: sqlite+aiosqlite:///app.db
          echo: false

Implementation intentionally does NOT inherit from AdapterProtocol (PEP 544
structural subtyping).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    and_,
    delete,
    false,
    func,
    insert,
    or_,
    select,
    true,
    update,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import TypeEngine

from oryx.core.errors import DataLayerError
from oryx.infrastructure.persistence.criteria import (
    COMPARISON_OPERATORS,
    NEGATION_OPERATORS,
    QueryDescriptor,
    is_operator_mapping,
    normalize_sort,
)

_COLUMN_TYPES: dict[str, TypeEngine[Any]] = {
    "string": String(),
    "text": Text(),
    "integer": Integer(),
    "float": Float(),
    "number": Float(),
    "boolean": Boolean(),
    "date": Date(),
    "datetime": DateTime(timezone=True),
    "json": JSON(),
    "array": JSON(),
    "binary": LargeBinary(),
}


class SqlAdapter:
    """Adapter storing collections as tables of a SQL database.

    Usage:
        adapter = SqlAdapter(url="sqlite+aiosqlite:///:memory:")
        await adapter.define("user", schema, "id")
        async with adapter.get_session() as session:
            ...
    """

    def __init__(
        self,
        url: str = "sqlite+aiosqlite:///:memory:",
        echo: bool = False,
        **engine_options: Any,
    ) -> None:
        """Create the engine; no connection is opened until first use.

        Args:
            url: SQLAlchemy database URL with an async driver.
            echo: If True, log all SQL statements.
            **engine_options: Extra keyword arguments for create_async_engine.
        """
        if url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
            # every session must see the same in-memory database
            engine_options.setdefault("poolclass", StaticPool)
        else:
            engine_options.setdefault("pool_pre_ping", True)

        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_options)
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.metadata = MetaData()
        self._tables: dict[str, Table] = {}
        self._primary_keys: dict[str, str] = {}

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional session: commit on success, roll back on error."""
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def connect(self) -> None:
        return None

    async def define(
        self, identity: str, schema: dict[str, dict[str, Any]], primary_key: str
    ) -> None:
        columns = [
            _build_column(name, attribute, name == primary_key)
            for name, attribute in schema.items()
        ]
        table = Table(identity, self.metadata, *columns, extend_existing=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(table.create, checkfirst=True)

        self._tables[identity] = table
        self._primary_keys[identity] = primary_key

    async def find(self, identity: str, query: QueryDescriptor) -> list[dict[str, Any]]:
        table = self._table(identity)
        if query.select is not None:
            columns = [table.c[name] for name in query.select if name in table.c]
        else:
            columns = list(table.c)

        statement = self._paged(table, select(*columns), query)
        async with self.get_session() as session:
            result = await session.execute(statement)
            return [dict(row._mapping) for row in result]

    async def create(self, identity: str, values: dict[str, Any]) -> dict[str, Any]:
        table = self._table(identity)
        primary_key = table.c[self._primary_keys[identity]]
        row = {name: value for name, value in values.items() if name in table.c}

        async with self.get_session() as session:
            result = await session.execute(insert(table).values(**row))
            key = result.inserted_primary_key[0]
            created = await session.execute(select(table).where(primary_key == key))
            return dict(created.one()._mapping)

    async def update(
        self, identity: str, query: QueryDescriptor, values: dict[str, Any]
    ) -> list[dict[str, Any]]:
        table = self._table(identity)
        primary_key = table.c[self._primary_keys[identity]]
        row = {name: value for name, value in values.items() if name in table.c}

        async with self.get_session() as session:
            keys = list(
                (await session.execute(self._paged(table, select(primary_key), query)))
                .scalars()
                .all()
            )
            if not keys:
                return []
            if row:
                await session.execute(
                    update(table).where(primary_key.in_(keys)).values(**row)
                )
            result = await session.execute(select(table).where(primary_key.in_(keys)))
            return [dict(r._mapping) for r in result]

    async def destroy(
        self, identity: str, query: QueryDescriptor
    ) -> list[dict[str, Any]]:
        table = self._table(identity)
        primary_key = table.c[self._primary_keys[identity]]

        async with self.get_session() as session:
            result = await session.execute(self._paged(table, select(table), query))
            removed = [dict(r._mapping) for r in result]
            if removed:
                keys = [record[primary_key.name] for record in removed]
                await session.execute(delete(table).where(primary_key.in_(keys)))
            return removed

    async def count(self, identity: str, query: QueryDescriptor) -> int:
        table = self._table(identity)
        primary_key = table.c[self._primary_keys[identity]]
        matching = self._paged(table, select(primary_key), query).subquery()

        async with self.get_session() as session:
            result = await session.execute(select(func.count()).select_from(matching))
            return int(result.scalar_one())

    async def teardown(self) -> None:
        """Dispose of the engine's connection pool and forget every collection."""
        await self.engine.dispose()
        self._tables.clear()
        self._primary_keys.clear()
        self.metadata = MetaData()

    def _table(self, identity: str) -> Table:
        try:
            return self._tables[identity]
        except KeyError as e:
            raise DataLayerError(f"Unknown collection: '{identity}'", {"cause": e}) from e

    def _paged(self, table: Table, statement: Any, query: QueryDescriptor) -> Any:
        where = query.where if isinstance(query.where, Mapping) else {}
        statement = statement.where(compile_where(table, where))
        for clause in normalize_sort(query.sort):
            column = _column(table, clause.field)
            statement = statement.order_by(column.desc() if clause.descending else column.asc())
        # insertion order for unsorted queries and ties
        statement = statement.order_by(table.c[self._primary_keys[table.name]].asc())
        if query.skip:
            statement = statement.offset(query.skip)
        if query.limit is not None:
            statement = statement.limit(query.limit)
        return statement


def _build_column(name: str, attribute: Mapping[str, Any], is_primary: bool) -> Column[Any]:
    type_name = str(attribute.get("type", "string")).lower()
    try:
        column_type = _COLUMN_TYPES[type_name]
    except KeyError as e:
        raise DataLayerError(
            f"Unsupported attribute type '{type_name}' for '{name}'", {"cause": e}
        ) from e

    return Column(
        name,
        column_type,
        primary_key=is_primary,
        autoincrement=bool(attribute.get("autoIncrement")) if is_primary else False,
        unique=bool(attribute.get("unique")) and not is_primary,
        nullable=not (is_primary or attribute.get("required")),
    )


def _column(table: Table, name: str) -> Column[Any]:
    try:
        return table.c[name]
    except KeyError as e:
        raise DataLayerError(
            f"Unknown attribute '{name}' for '{table.name}'", {"cause": e}
        ) from e


def compile_where(table: Table, where: Mapping[str, Any]) -> ColumnElement[bool]:
    """Compile a where clause into a SQL boolean expression."""
    clauses: list[ColumnElement[bool]] = []
    for key, condition in where.items():
        if key in ("or", "and"):
            if not isinstance(condition, (list, tuple)) or not all(
                isinstance(c, Mapping) for c in condition
            ):
                raise DataLayerError(f"'{key}' expects a list of where clauses")
            parts = [compile_where(table, c) for c in condition]
            if key == "or":
                clauses.append(or_(false(), *parts))
            else:
                clauses.append(and_(true(), *parts))
        else:
            clauses.append(_compile_condition(_column(table, key), condition))
    return and_(true(), *clauses)


def _compile_condition(column: Column[Any], condition: Any) -> ColumnElement[bool]:
    if is_operator_mapping(condition):
        return and_(
            true(),
            *(_compile_operator(column, op, operand) for op, operand in condition.items()),
        )
    if isinstance(condition, (list, tuple)):
        return column.in_(list(condition))
    if condition is None:
        return column.is_(None)
    return column == condition


def _compile_operator(column: Column[Any], operator: str, operand: Any) -> ColumnElement[bool]:
    if operator in NEGATION_OPERATORS:
        if isinstance(operand, (list, tuple)):
            return column.not_in(list(operand))
        if operand is None:
            return column.is_not(None)
        return or_(column != operand, column.is_(None))

    if operator in ("in", "nin"):
        if not isinstance(operand, (list, tuple)):
            raise DataLayerError(f"'{operator}' expects a list")
        return column.in_(list(operand)) if operator == "in" else column.not_in(list(operand))

    match COMPARISON_OPERATORS.get(operator, operator):
        case "<":
            return column < operand
        case "<=":
            return column <= operand
        case ">":
            return column > operand
        case ">=":
            return column >= operand
        case "startsWith":
            return column.istartswith(str(operand), autoescape=True)
        case "endsWith":
            return column.iendswith(str(operand), autoescape=True)
        case "contains":
            return column.icontains(str(operand), autoescape=True)
        case _:
            return column.ilike(str(operand))
