"""Route generator for model route tables.

Merges a model's custom routes over the default table, filters the result
with the model's include/exclude patterns and attaches each surviving
handler to the application with ``app.add_api_route()``.

Functions:
    build_table: Overlay custom routes on the default table
    filter_routes: Keep well-formed, included and not excluded route keys
    model_routes: Merged and filtered table for one model
    attach_model_routes: Attach a model's table beneath an API prefix
    bind_handler: Wrap a ``(model, request, context)`` handler as an endpoint

Usage:
    from oryx.presentation.routes.generator import attach_model_routes

    attach_model_routes(app, "/api/v1", handle, context)
    handle.routes  # ["GET /", "POST /", ...]
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.responses import Response

from oryx.core.errors import ValidationError
from oryx.presentation.responses import ResponseBuilder
from oryx.presentation.routes.metadata import (
    RouteHandler,
    as_pattern,
    is_route_key,
    matches,
    parse_route_key,
    to_fastapi_path,
)
from oryx.presentation.routes.registry import DEFAULT_ROUTES

if TYPE_CHECKING:
    import re

    from oryx.infrastructure.persistence.handle import CollectionHandle
    from oryx.presentation.routes.context import BindingContext


def build_table(
    default_routes: Mapping[str, RouteHandler],
    custom_routes: Mapping[str, RouteHandler] | None,
) -> dict[str, RouteHandler]:
    """Overlay custom routes on the defaults.

    Custom entries replace same-key defaults in place; custom-only keys are
    appended in their own order.
    """
    table = dict(default_routes)
    table.update(custom_routes or {})
    return table


def filter_routes(
    keys: Iterable[str],
    includes: Sequence[str | re.Pattern[str]] | None,
    excludes: Sequence[str | re.Pattern[str]] | None,
) -> list[str]:
    """Select the route keys to attach, preserving candidate order.

    Args:
        keys: Candidate route keys.
        includes: Patterns of which at least one must match; None includes
            everything, an empty sequence includes nothing.
        excludes: Patterns of which none may match; excludes win over includes.

    Returns:
        list[str]: Well-formed keys that survived both filters.
    """
    include_patterns = None if includes is None else [as_pattern(p) for p in includes]
    exclude_patterns = [as_pattern(p) for p in excludes or ()]

    selected = []
    for key in keys:
        if not is_route_key(key):
            continue
        if include_patterns is not None and not any(
            matches(pattern, key) for pattern in include_patterns
        ):
            continue
        if any(matches(pattern, key) for pattern in exclude_patterns):
            continue
        selected.append(key)
    return selected


def model_routes(handle: CollectionHandle) -> dict[str, RouteHandler]:
    """Merged and filtered route table for one model."""
    table = build_table(DEFAULT_ROUTES, handle.custom_routes)
    return {key: table[key] for key in filter_routes(table, handle.includes, handle.excludes)}


def attach_model_routes(
    app: FastAPI,
    prefix: str,
    handle: CollectionHandle,
    context: BindingContext,
) -> list[str]:
    """Attach a model's route table beneath ``prefix``.

    Stores the active keys on ``handle.routes``. Static paths are attached
    before parameterized ones so ``/count`` is never captured by ``/{id}``.

    Args:
        app: Host application.
        prefix: API prefix without trailing slash (e.g. "/api/v1").
        handle: Model to expose.
        context: Binding context passed to every handler.

    Returns:
        list[str]: The attached route keys in table order.
    """
    table = model_routes(handle)
    handle.routes = list(table)

    for key in sorted(table, key=lambda k: ":" in k):
        method, suffix = parse_route_key(key)
        path = f"{prefix}/{handle.name}{to_fastapi_path(suffix)}".rstrip("/")
        app.add_api_route(
            path,
            bind_handler(table[key], handle, context),
            methods=[method.value],
            name=f"{handle.name}:{key}",
        )

    return handle.routes


def bind_handler(
    handler: RouteHandler, model: CollectionHandle, context: BindingContext
) -> Any:
    """Wrap a route handler as a FastAPI endpoint.

    The endpoint parses the body as JSON into ``request.state.body``, calls
    ``handler(model, request, context)`` and reports any failure as a 400
    error envelope. Handlers may be sync or async; a return value that is
    not a Response is wrapped in a 200 success envelope.
    """

    async def endpoint(request: Request) -> Response:
        try:
            request.state.body = await read_json_body(request)
            result = handler(model, request, context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            context.logger.debug(
                "Model route failed",
                model=model.name,
                path=request.url.path,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return ResponseBuilder.from_exception(e)

        if isinstance(result, Response):
            return result
        return ResponseBuilder.from_body(200, result)

    endpoint.__name__ = getattr(handler, "__name__", "endpoint")
    return endpoint


async def read_json_body(request: Request) -> Any:
    """Parse the request body as JSON regardless of content type.

    Returns:
        Any: Decoded body, or ``{}`` for an empty body.

    Raises:
        ValidationError: If the body is not valid JSON.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ValidationError("Invalid JSON body", {"cause": e}) from e
