"""Query criteria shared by every adapter.

Criteria come in several shapes and are normalized into a QueryDescriptor
before reaching an adapter:

    5                        -> where {pk: 5}
    [1, 2]                   -> where {pk: [1, 2]}
    {"firstName": "Bob"}     -> where {"firstName": "Bob"}
    {"where": {...}, "limit": 3, "sort": "firstName DESC"}

Where clauses support equality, list membership, ``or``/``and`` lists and
operator mappings such as ``{"age": {">=": 21}}``; the SQL adapter compiles
them into SQLAlchemy expressions.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from oryx.core.errors import DataLayerError

QUERY_KEYS = ("where", "limit", "skip", "sort", "select")

NEGATION_OPERATORS = frozenset({"!", "not", "!="})
COMPARISON_OPERATORS = {
    "<": "<",
    "lessThan": "<",
    "<=": "<=",
    "lessThanOrEqual": "<=",
    ">": ">",
    "greaterThan": ">",
    ">=": ">=",
    "greaterThanOrEqual": ">=",
}
STRING_OPERATORS = frozenset({"startsWith", "endsWith", "contains", "like"})
MEMBERSHIP_OPERATORS = frozenset({"in", "nin"})

OPERATORS = (
    NEGATION_OPERATORS
    | set(COMPARISON_OPERATORS)
    | STRING_OPERATORS
    | MEMBERSHIP_OPERATORS
)


@dataclass(slots=True, kw_only=True)
class QueryDescriptor:
    """Canonical query passed to collection handles and adapters.

    Attributes:
        where: Filter clause (mapping, or list of primary keys).
        sort: Mapping of field to direction, or a ``"field DESC"`` string.
        limit: Maximum number of records; None means unlimited.
        skip: Number of matching records to skip.
        select: Fields to project; None returns whole records.
    """

    where: dict[str, Any] | list[Any] = field(default_factory=dict)
    sort: dict[str, Any] | str = field(default_factory=dict)
    limit: int | None = None
    skip: int = 0
    select: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the descriptor as a plain mapping, omitting an unset select."""
        data: dict[str, Any] = {
            "where": self.where,
            "sort": self.sort,
            "limit": self.limit,
            "skip": self.skip,
        }
        if self.select is not None:
            data["select"] = self.select
        return data


@dataclass(frozen=True, slots=True)
class SortClause:
    """A single sort instruction."""

    field: str
    descending: bool = False


def normalize_criteria(criteria: Any, primary_key: str) -> QueryDescriptor:
    """Convert any accepted criteria shape into a QueryDescriptor.

    Args:
        criteria: Scalar primary key, list of keys, where mapping, query
            mapping or QueryDescriptor.
        primary_key: Primary key attribute of the target collection.

    Returns:
        QueryDescriptor: A new descriptor; the input is never mutated.

    Raises:
        DataLayerError: If limit/skip are not integers or where is unusable.
    """
    if criteria is None:
        return QueryDescriptor()

    if isinstance(criteria, QueryDescriptor):
        query = QueryDescriptor(
            where=criteria.where,
            sort=criteria.sort,
            limit=criteria.limit,
            skip=criteria.skip,
            select=criteria.select,
        )
    elif isinstance(criteria, Mapping):
        if any(key in criteria for key in QUERY_KEYS):
            query = QueryDescriptor(
                where=criteria.get("where") or {},
                sort=criteria.get("sort") or {},
                limit=criteria.get("limit"),
                skip=criteria.get("skip") or 0,
                select=criteria.get("select"),
            )
        else:
            query = QueryDescriptor(where=dict(criteria))
    elif isinstance(criteria, (list, tuple)):
        query = QueryDescriptor(where={primary_key: list(criteria)})
    else:
        query = QueryDescriptor(where={primary_key: criteria})

    if isinstance(query.where, (list, tuple)):
        query.where = {primary_key: list(query.where)}
    elif isinstance(query.where, Mapping):
        query.where = dict(query.where)
    else:
        raise DataLayerError(f"Invalid where clause: {query.where!r}")

    query.limit = None if query.limit is None else _as_int(query.limit, "limit")
    query.skip = _as_int(query.skip, "skip")
    if query.select is not None:
        if isinstance(query.select, str):
            query.select = [query.select]
        query.select = [str(name) for name in query.select]
    return query


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise DataLayerError(f"'{name}' must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise DataLayerError(f"'{name}' must be an integer", {"cause": e}) from e
    if number < 0:
        raise DataLayerError(f"'{name}' must not be negative")
    return number


def normalize_sort(sort: Any) -> list[SortClause]:
    """Parse a sort specification.

    Accepts ``"firstName DESC, lastName"``, ``{"firstName": "DESC"}``,
    ``{"age": -1}`` or a list of strings.
    """
    if not sort:
        return []

    if isinstance(sort, str):
        clauses = []
        for part in sort.split(","):
            tokens = part.split()
            if not tokens:
                continue
            if len(tokens) > 2:
                raise DataLayerError(f"Invalid sort clause: {part.strip()!r}")
            direction = tokens[1] if len(tokens) == 2 else "ASC"
            clauses.append(SortClause(tokens[0], _is_descending(direction)))
        return clauses

    if isinstance(sort, Mapping):
        return [SortClause(str(name), _is_descending(d)) for name, d in sort.items()]

    if isinstance(sort, (list, tuple)):
        return [clause for item in sort for clause in normalize_sort(item)]

    raise DataLayerError(f"Invalid sort specification: {sort!r}")


def _is_descending(direction: Any) -> bool:
    if isinstance(direction, bool):
        raise DataLayerError(f"Invalid sort direction: {direction!r}")
    if direction in (1, "1"):
        return False
    if direction in (-1, "-1"):
        return True
    if isinstance(direction, str) and direction.upper() in ("ASC", "DESC"):
        return direction.upper() == "DESC"
    raise DataLayerError(f"Invalid sort direction: {direction!r}")


def is_operator_mapping(condition: Any) -> bool:
    """Return True for a non-empty mapping of query operators.

    Raises:
        DataLayerError: If a mapping mixes in unknown operators.
    """
    if not isinstance(condition, Mapping) or not condition:
        return False
    unknown = [key for key in condition if key not in OPERATORS]
    if unknown:
        raise DataLayerError(f"Unknown query modifier: {unknown[0]!r}")
    return True
