"""Default route table - the CRUD surface attached to every model.

Order matters: it is the order of ``handle.routes`` (and of ``GET /info``)
before any custom-only routes are appended.

Usage:
    from oryx.presentation.routes.registry import DEFAULT_ROUTES
    from oryx.presentation.routes.generator import build_table

    table = build_table(DEFAULT_ROUTES, handle.custom_routes)
"""

from types import MappingProxyType

from oryx.presentation.routes import handlers
from oryx.presentation.routes.metadata import RouteHandler

DEFAULT_ROUTES: MappingProxyType[str, RouteHandler] = MappingProxyType(
    {
        "GET /": handlers.find_records,
        "POST /": handlers.create_records,
        "PUT /": handlers.update_records,
        "DELETE /": handlers.destroy_records,
        "GET /count": handlers.count_records,
        "GET /info": handlers.describe_model,
        "GET /distinct/:field": handlers.distinct_values,
        "GET /:id": handlers.find_record,
        "POST /:id": handlers.find_or_create_record,
        "PUT /:id": handlers.update_record,
        "DELETE /:id": handlers.destroy_record,
    }
)
