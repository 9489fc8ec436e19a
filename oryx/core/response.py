"""Response envelope shared by every generated model route.

Exported so that custom route handlers can produce the same shape as the
built-in CRUD routes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_SUCCESS_CODE = re.compile(r"^[23]\d{2}$")


@dataclass(slots=True, init=False)
class OryxResponse:
    """Success envelope ``{success, result}``.

    A 2xx or 3xx status code marks the response as successful. String bodies
    are wrapped as ``{"message": body}`` and a missing body becomes ``{}``.

    Attributes:
        success: Whether the status code denotes success.
        result: Response payload (mapping or list).

    Example:
        >>> OryxResponse(404, None).to_dict()
        {'success': False, 'result': {}}
    """

    success: bool
    result: Any

    def __init__(self, code: int | str, body: Any = None) -> None:
        self.success = bool(_SUCCESS_CODE.match(str(code).strip()))
        if isinstance(body, str):
            self.result = {"message": body}
        elif body is None:
            self.result = {}
        else:
            self.result = body

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "result": self.result}
