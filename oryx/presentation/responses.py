"""JSON response builders for generated model routes.

Exports:
    ResponseBuilder: Builds success and error envelopes as JSONResponses
"""

from __future__ import annotations

from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from oryx.core.errors import DataLayerError, OryxError
from oryx.core.response import OryxResponse


class ResponseBuilder:
    """Build Oryx JSON envelopes.

    Success:
        {"success": true, "result": ...}
    Failure:
        {"success": false, "statusCode": 400, "error": {"name": ..., "message": ...}}

    Example:
        >>> response = ResponseBuilder.from_body(201, record)
        >>> response = ResponseBuilder.from_error(400, OryxError("No body provided!"))
    """

    @staticmethod
    def from_body(code: int, body: Any = None) -> JSONResponse:
        """Wrap a body in the success envelope.

        Args:
            code: HTTP status code; 2xx and 3xx mark the envelope successful.
            body: Response payload; strings become ``{"message": body}``.

        Returns:
            JSONResponse with the encoded envelope.
        """
        return JSONResponse(
            status_code=code,
            content=jsonable_encoder(OryxResponse(code, body).to_dict()),
        )

    @staticmethod
    def from_error(code: int, error: OryxError) -> JSONResponse:
        """Wrap an error in the failure envelope.

        Args:
            code: HTTP status code.
            error: Error to report.

        Returns:
            JSONResponse with ``{success: false, statusCode, error}``.
        """
        return JSONResponse(
            status_code=code,
            content={"success": False, "statusCode": code, "error": error.to_dict()},
        )

    @staticmethod
    def from_exception(exc: Exception) -> JSONResponse:
        """Report any handler failure as a 400 error envelope.

        Non-Oryx exceptions are wrapped in DataLayerError first.
        """
        if not isinstance(exc, OryxError):
            exc = DataLayerError(str(exc) or type(exc).__name__, {"cause": exc})
        return ResponseBuilder.from_error(status.HTTP_400_BAD_REQUEST, exc)
