"""Model route tables.

Exports:
    DEFAULT_ROUTES: Default CRUD route table
    BindingContext: State passed to every route handler
    attach_model_routes: Attach a model's routes to the application
"""

from oryx.presentation.routes.context import BindingContext
from oryx.presentation.routes.generator import attach_model_routes
from oryx.presentation.routes.registry import DEFAULT_ROUTES

__all__ = ["DEFAULT_ROUTES", "BindingContext", "attach_model_routes"]
