"""HTTP middleware."""

from oryx.presentation.middleware.powered_by import PoweredByMiddleware

__all__ = ["PoweredByMiddleware"]
