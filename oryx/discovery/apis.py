"""API discovery and mounting.

An API is a package directory whose ``__init__.py`` exports an APIRouter
named ``router``. Each API is mounted at ``<root><base>`` and every loaded
model's route table is attached beneath it:

    routes/api/v1/__init__.py     ->  /api/v1/...
                                      /api/v1/<model>/...

By default ``<app_root>/routes/api`` is scanned for ``v<digits>``
directories. Explicit descriptors may point anywhere.
"""

from __future__ import annotations

import asyncio
import os
import re
import stat
import traceback
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI

from oryx.core.errors import DirectoryError, OryxError
from oryx.discovery.importer import import_path
from oryx.presentation.routes.generator import attach_model_routes

if TYPE_CHECKING:
    from oryx.domain.protocols.logger_protocol import LoggerProtocol
    from oryx.infrastructure.persistence.handle import CollectionHandle
    from oryx.presentation.routes.context import BindingContext

API_VERSION = re.compile(r"v\d+")
DEFAULT_API_DIRECTORY = "routes/api"
ROUTER_ATTRIBUTE = "router"


@dataclass(frozen=True, slots=True)
class ApiDescriptor:
    """Location of one API package.

    Attributes:
        path: Package directory (relative paths resolve against the app root).
        base: URL segment the API is mounted under, used verbatim.
        version: ``v<digits>`` segment; descriptors with any other version
            are dropped.
    """

    path: str | os.PathLike[str]
    base: str | None = None
    version: str | None = None


ApiSpec = ApiDescriptor | Mapping[str, Any]


async def mount_apis(
    app: FastAPI,
    models: Mapping[str, CollectionHandle],
    context: BindingContext,
    logger: LoggerProtocol,
    app_root: str | os.PathLike[str],
    apis: ApiSpec | Sequence[ApiSpec] | None = None,
    *,
    path: str | os.PathLike[str] | None = None,
    root: str = "/api",
) -> list[str]:
    """Mount API packages and attach every model's routes beneath them.

    Args:
        app: Host application.
        models: Live model handles keyed by name.
        context: Binding context handed to route handlers.
        logger: Logger for skipped APIs.
        app_root: Root that relative paths resolve against.
        apis: Explicit descriptor(s); when None the API directory is scanned.
        path: Directory to scan instead of ``routes/api``.
        root: URL prefix for every API.

    Returns:
        list[str]: Bases of the mounted APIs, failed ones omitted.

    Raises:
        DirectoryError: If the scanned API directory cannot be read.
    """
    api_root = root if root.endswith("/") else f"{root}/"

    if apis is not None:
        descriptors = explicit_descriptors(app_root, apis)
    else:
        directory = Path(app_root, path or DEFAULT_API_DIRECTORY).resolve()
        descriptors = await scan_descriptors(directory)

    results = await asyncio.gather(
        *(
            _mount_api(app, descriptor, models, context, logger, api_root)
            for descriptor in descriptors
        )
    )

    mounted = [base for base in results if base is not None]
    if mounted:
        logger.debug("Loaded APIs", apis=mounted)
    else:
        logger.debug("No APIs found to load")
    return mounted


def explicit_descriptors(
    app_root: str | os.PathLike[str], apis: ApiSpec | Sequence[ApiSpec]
) -> list[ApiDescriptor]:
    """Resolve explicit descriptors, dropping those with an invalid version.

    Raises:
        OryxError: If a descriptor has no path.
    """
    entries = [apis] if isinstance(apis, (ApiDescriptor, Mapping)) else list(apis)

    descriptors = []
    for entry in entries:
        if isinstance(entry, Mapping):
            if "path" not in entry:
                raise OryxError("API descriptors require a 'path'")
            entry = ApiDescriptor(
                path=entry["path"], base=entry.get("base"), version=entry.get("version")
            )

        location = Path(app_root, entry.path).resolve()
        if entry.base is not None:
            descriptors.append(ApiDescriptor(path=location, base=entry.base))
        elif entry.version is not None:
            if API_VERSION.fullmatch(entry.version):
                descriptors.append(ApiDescriptor(path=location, base=entry.version))
        else:
            descriptors.append(ApiDescriptor(path=location))
    return descriptors


async def scan_descriptors(directory: Path) -> list[ApiDescriptor]:
    """Versioned API packages of a directory, in sorted order.

    Raises:
        DirectoryError: If the directory cannot be listed.
    """
    try:
        entries = await asyncio.to_thread(os.listdir, directory)
    except OSError as e:
        raise DirectoryError(
            f"Unable to read API directory: {directory}", {"cause": e}
        ) from e

    return [
        ApiDescriptor(path=directory / entry, base=entry)
        for entry in sorted(entries)
        if API_VERSION.fullmatch(entry)
    ]


async def _mount_api(
    app: FastAPI,
    descriptor: ApiDescriptor,
    models: Mapping[str, CollectionHandle],
    context: BindingContext,
    logger: LoggerProtocol,
    api_root: str,
) -> str | None:
    location = Path(descriptor.path)
    log = logger.bind(path=str(location))
    try:
        await _require_directory(location)
        base = descriptor.base or location.name

        module = import_path(location, "oryx_api")
        router = getattr(module, ROUTER_ATTRIBUTE, None)
        if not isinstance(router, APIRouter):
            raise OryxError(f"API package does not export an APIRouter 'router': {location}")

        prefix = f"{api_root}{base}"
        app.include_router(router, prefix=prefix)
        for handle in models.values():
            attach_model_routes(app, prefix, handle, context)
    except Exception as e:
        log.warning(
            "Unable to mount API",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        log.debug("API mount failure detail", detail=traceback.format_exc())
        return None

    return base


async def _require_directory(location: Path) -> None:
    try:
        info = await asyncio.to_thread(os.stat, location)
        if not stat.S_ISDIR(info.st_mode):
            raise NotADirectoryError(f"Path resolves to a non-directory: {location}")
    except OSError as e:
        raise DirectoryError(
            f"Unable to read API directory: {location}", {"cause": e}
        ) from e
