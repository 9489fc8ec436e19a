"""Powered-by middleware.

- Adds an X-Powered-By response header to every response
"""

from __future__ import annotations

from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

POWERED_BY = "Oryx & FastAPI"


class PoweredByMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that advertises Oryx on each response."""

    def __init__(self, app: ASGIApp, value: str = POWERED_BY) -> None:
        super().__init__(app)
        self.value = value

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Add the X-Powered-By header to the downstream response.

        Args:
            request (Request): Incoming request.
            call_next (Callable[[Request], Awaitable[Response]]): Next handler.

        Returns:
            Response: Response with X-Powered-By header set.
        """
        response = await call_next(request)
        response.headers["X-Powered-By"] = self.value
        return response
