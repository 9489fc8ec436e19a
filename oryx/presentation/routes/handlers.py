"""Default model route handlers.

Every handler takes ``(model, request, context)`` and returns a Response.
The parsed JSON body is available as ``request.state.body``. Errors are
left to propagate; the endpoint wrapper in ``generator`` reports them as
400 error envelopes.

Handlers:
    find_records           GET /
    create_records         POST /
    update_records         PUT /
    destroy_records        DELETE /
    count_records          GET /count
    describe_model         GET /info
    distinct_values        GET /distinct/:field
    find_record            GET /:id
    find_or_create_record  POST /:id
    update_record          PUT /:id
    destroy_record         DELETE /:id
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from oryx.core.errors import OryxError
from oryx.presentation.responses import ResponseBuilder
from oryx.presentation.routes.parameters import normalize, parse_query

if TYPE_CHECKING:
    from oryx.infrastructure.persistence.criteria import QueryDescriptor
    from oryx.infrastructure.persistence.handle import CollectionHandle
    from oryx.presentation.routes.context import BindingContext

_UNLIMITED: dict[str, Any] = {"limit": None}


def _body(request: Request) -> Any:
    return getattr(request.state, "body", {})


def _parameters(request: Request, **defaults: Any) -> QueryDescriptor:
    """Normalize the request query; a body ``where`` seeds the filter."""
    body = _body(request)
    where = body.get("where") if isinstance(body, Mapping) else None
    query = parse_query(request.query_params.multi_items())
    return normalize(query, where=where, defaults=defaults)


async def find_records(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    """List records matching the query, 10 at a time unless a limit is given."""
    records = await model.find(_parameters(request))
    return ResponseBuilder.from_body(status.HTTP_200_OK, records)


async def create_records(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    """Create one record, or several when the body is a list."""
    created = await model.create(_body(request))
    return ResponseBuilder.from_body(status.HTTP_201_CREATED, created)


async def update_records(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    """Apply the body to every matching record.

    Returns a count rather than the records to keep the payload small.
    """
    body = _body(request)
    if not isinstance(body, Mapping) or not body:
        raise OryxError("No body provided!")

    query = normalize(parse_query(request.query_params.multi_items()), defaults=_UNLIMITED)
    updated = await model.update(query, body)
    return ResponseBuilder.from_body(status.HTTP_200_OK, {"docs_updated": len(updated)})


async def destroy_records(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    removed = await model.destroy(_parameters(request, **_UNLIMITED))
    return ResponseBuilder.from_body(status.HTTP_200_OK, {"docs_removed": len(removed)})


async def count_records(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    count = await model.count(_parameters(request, **_UNLIMITED))
    return ResponseBuilder.from_body(status.HTTP_200_OK, {"doc_count": count})


def describe_model(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    """Model name, schema and active routes; never touches the data layer."""
    return ResponseBuilder.from_body(
        status.HTTP_200_OK,
        {"name": model.name, "schema": model.attributes, "routes": list(model.routes)},
    )


async def distinct_values(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    """Unique values of one field across matching records, first-seen order."""
    field = request.path_params["field"]
    records = await model.find(_parameters(request, limit=None, select=[field]))

    values: list[Any] = []
    for record in records:
        value = record.get(field)
        if value not in values:
            values.append(value)
    return ResponseBuilder.from_body(status.HTTP_200_OK, values)


async def find_record(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    record = await model.find_one(request.path_params["id"])
    if record is None:
        return ResponseBuilder.from_body(status.HTTP_404_NOT_FOUND, {})
    return ResponseBuilder.from_body(status.HTTP_200_OK, record)


async def find_or_create_record(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    """Return the record with this id, creating it from the body if missing."""
    key = request.path_params["id"]
    body = _body(request)
    values = dict(body) if isinstance(body, Mapping) else {}
    values[model.primary_key] = key

    record = await model.find_or_create(key, values)
    return ResponseBuilder.from_body(status.HTTP_200_OK, record)


async def update_record(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    updated = await model.update(request.path_params["id"], _body(request))
    if not updated:
        return ResponseBuilder.from_body(status.HTTP_404_NOT_FOUND, {})
    return ResponseBuilder.from_body(status.HTTP_200_OK, updated[0])


async def destroy_record(
    model: CollectionHandle, request: Request, context: BindingContext
) -> JSONResponse:
    removed = await model.destroy(request.path_params["id"])
    if not removed:
        return ResponseBuilder.from_body(status.HTTP_404_NOT_FOUND, {"docs_removed": 0})
    return ResponseBuilder.from_body(status.HTTP_200_OK, {"docs_removed": len(removed)})
