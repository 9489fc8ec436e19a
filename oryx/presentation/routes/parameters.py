"""Request query normalization.

Turns a request's query string into the QueryDescriptor passed to
collection handles. Values are JSON-decoded opportunistically, so both
``?limit=5&firstName=Bob`` and ``?where={"firstName":"Bob"}`` work, and
bracket syntax (``where[lastName][!]=Loblaw``, ``select[]=id``) builds
nested values.

Usage:
    from oryx.presentation.routes.parameters import normalize, parse_query

    query = normalize(parse_query(request.query_params.multi_items()))
    records = await model.find(query)
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

from oryx.core.errors import InvalidQueryError
from oryx.infrastructure.persistence.criteria import QUERY_KEYS, QueryDescriptor

DEFAULT_LIMIT = 10

_BRACKET = re.compile(r"\[([^\[\]]*)\]")


def parse_query(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Decode raw query items into nested data.

    ``a=1&a=2`` and ``a[]=1&a[]=2`` give lists; ``a[b][c]=v`` gives nested
    mappings.

    Args:
        items: Key/value pairs in request order (e.g. ``multi_items()``).

    Returns:
        dict[str, Any]: Decoded query; values stay strings.
    """
    decoded: dict[str, Any] = {}
    for key, value in items:
        base, path = _split_key(key)
        _assign(decoded, base, path, value)
    return decoded


def _split_key(key: str) -> tuple[str, list[str]]:
    start = key.find("[")
    if start <= 0 or not key.endswith("]"):
        return key, []

    suffix = key[start:]
    parts = _BRACKET.findall(suffix)
    if "".join(f"[{part}]" for part in parts) != suffix:
        return key, []
    return key[:start], parts


def _assign(container: dict[str, Any], key: str, path: list[str], value: Any) -> None:
    if not path:
        if key not in container:
            container[key] = value
        elif isinstance(container[key], list):
            container[key].append(value)
        else:
            container[key] = [container[key], value]
        return

    head, tail = path[0], path[1:]
    if head == "":
        existing = container.get(key)
        if not isinstance(existing, list):
            existing = [] if key not in container else [existing]
            container[key] = existing
        if tail:
            nested: dict[str, Any] = {}
            _assign(nested, tail[0], tail[1:], value)
            existing.append(nested)
        else:
            existing.append(value)
        return

    child = container.get(key)
    if not isinstance(child, dict):
        child = container[key] = {}
    _assign(child, head, tail, value)


def parse_value(value: Any) -> Any:
    """JSON-decode strings where possible, falling back to the raw value."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    if isinstance(value, list):
        return [parse_value(item) for item in value]
    return value


def normalize(
    query: Mapping[str, Any],
    *,
    where: Any = None,
    defaults: Mapping[str, Any] | None = None,
) -> QueryDescriptor:
    """Build a QueryDescriptor from decoded query data.

    Args:
        query: Decoded query mapping (see ``parse_query``).
        where: Optional where clause supplied by the caller (e.g. from a body);
            a ``where`` query entry replaces it.
        defaults: Overrides of the base defaults, e.g. ``{"limit": None}``
            for unlimited endpoints or ``{"select": [field]}``.

    Returns:
        QueryDescriptor: A new descriptor for this request.

    Raises:
        InvalidQueryError: If the resolved ``where`` is not a mapping or list.
    """
    params: dict[str, Any] = {"limit": DEFAULT_LIMIT, "skip": 0, "sort": {}, "where": {}}
    if defaults:
        params.update(defaults)
    if where is not None:
        params["where"] = where
    if "where" in query:
        params["where"] = parse_value(query["where"])

    if isinstance(params["where"], Mapping):
        params["where"] = dict(params["where"])

    for key, raw in query.items():
        if key == "where":
            continue
        value = parse_value(raw)
        if key in QUERY_KEYS:
            if key == "select" and not isinstance(value, list):
                value = [value]
            params[key] = value
        elif isinstance(params["where"], dict):
            params["where"][key] = value

    if not isinstance(params["where"], (dict, list)):
        raise InvalidQueryError("Invalid 'where' parameter specified!")

    return QueryDescriptor(**params)
