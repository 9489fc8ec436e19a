"""Route key types and pattern matching.

A route key names one endpoint of a model's route table:

    "GET /"              list records
    "GET /distinct/:field"
    "DELETE /:id"

Keys are matched by include/exclude patterns. A pattern is a tagged variant:
plain strings become Glob patterns and compiled regular expressions become
Regex patterns (tested with ``search``). Globs follow filesystem rules: ``*``
stops at ``/``, ``**`` crosses it and ``{a,b}`` expands.

Usage:
    from oryx.presentation.routes.metadata import as_pattern, matches

    matches(as_pattern("PUT {/,/:id}"), "PUT /:id")        # True
    matches(as_pattern(re.compile(r"DELETE /$")), "DELETE /")  # True
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from wcmatch import glob

from oryx.core.enums import HTTPMethod

GLOB_FLAGS = glob.BRACE | glob.GLOBSTAR | glob.FORCEUNIX

ROUTE_KEY = re.compile(
    r"^(" + "|".join(m.value for m in HTTPMethod) + r") /\S*$",
    re.IGNORECASE,
)

_PATH_PARAMETER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

# Route handler signature: (model, request, context) -> Response
RouteHandler = Callable[..., Awaitable[Any] | Any]


@dataclass(frozen=True, slots=True)
class Glob:
    """Filesystem-style glob matched against the whole route key."""

    pattern: str


@dataclass(frozen=True, slots=True)
class Regex:
    """Regular expression searched within the route key."""

    pattern: re.Pattern[str]


RoutePattern = Glob | Regex


def as_pattern(spec: str | re.Pattern[str] | RoutePattern) -> RoutePattern:
    """Wrap a model's include/exclude entry in its tagged variant.

    Raises:
        TypeError: If spec is neither a string nor a compiled pattern.
    """
    match spec:
        case Glob() | Regex():
            return spec
        case str():
            return Glob(spec)
        case re.Pattern():
            return Regex(spec)
        case _:
            raise TypeError(f"Route patterns must be strings or compiled regexes: {spec!r}")


def matches(pattern: RoutePattern, key: str) -> bool:
    """Return True if the route key matches the pattern."""
    match pattern:
        case Glob(text):
            return glob.globmatch(key, text, flags=GLOB_FLAGS)
        case Regex(regex):
            return regex.search(key) is not None


def is_route_key(key: Any) -> bool:
    """Return True for a well-formed ``METHOD /path`` key."""
    return isinstance(key, str) and ROUTE_KEY.match(key) is not None


def parse_route_key(key: str) -> tuple[HTTPMethod, str]:
    """Split a route key into its method and path suffix.

    Raises:
        ValueError: If the key is malformed.
    """
    if not is_route_key(key):
        raise ValueError(f"Malformed route key: {key!r}")
    method, _, path = key.partition(" ")
    return HTTPMethod(method.upper()), path


def to_fastapi_path(path: str) -> str:
    """Translate ``:name`` segments to FastAPI ``{name}`` segments."""
    return _PATH_PARAMETER.sub(r"{\1}", path)
