"""Model discovery.

Every non-dunder ``.py`` file in a model directory is imported and its
``model(orm)`` factory called with the data-layer package. Factories
returning a Collection subclass are registered; anything else is skipped
with a warning. Once all directories are processed the registry is
initialized a single time.

Layout:
    <app_root>/models/user.py

        def model(orm):
            return orm.Collection.extend(identity="user", attributes={...})
"""

from __future__ import annotations

import asyncio
import os
import stat
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from oryx.core.errors import DirectoryError
from oryx.discovery.importer import import_path
from oryx.infrastructure import persistence
from oryx.infrastructure.persistence.collection import Collection, is_collection

if TYPE_CHECKING:
    from oryx.core.config_loader import OrmConfig
    from oryx.domain.protocols.logger_protocol import LoggerProtocol
    from oryx.infrastructure.persistence.registry import ORM

DEFAULT_MODEL_DIRECTORY = "models"
MODEL_FACTORY = "model"

PathSpec = str | os.PathLike[str] | Sequence[str | os.PathLike[str]]


async def load_models(
    orm: ORM,
    config: OrmConfig,
    logger: LoggerProtocol,
    app_root: str | os.PathLike[str],
    path: PathSpec | None = None,
) -> list[str]:
    """Load every model definition found in the model directories.

    Args:
        orm: Registry receiving the definitions.
        config: ``orm`` configuration section used to initialize the registry.
        logger: Logger for skipped files and loaded models.
        app_root: Root that relative directories resolve against.
        path: Directory or directories; defaults to ``models``.

    Returns:
        list[str]: Names of the live models, in load order. The handles are
            available from ``orm.collections``.

    Raises:
        DirectoryError: If a directory is missing or not a directory.
        DataLayerError: If the registry fails to initialize.
    """
    for directory in resolve_directories(app_root, path):
        for file in await list_model_files(directory):
            definition = load_definition(file, logger)
            if definition is not None:
                orm.load_collection(definition)

    handles = await orm.initialize(config)
    for name, handle in handles.items():
        handle.name = name

    names = list(handles)
    if names:
        logger.debug("Loaded models", models=names)
    else:
        logger.debug("No models found to load")
    return names


def resolve_directories(
    app_root: str | os.PathLike[str], path: PathSpec | None
) -> list[Path]:
    """Absolute model directories in the order given."""
    if path is None:
        paths: Sequence[str | os.PathLike[str]] = [DEFAULT_MODEL_DIRECTORY]
    elif isinstance(path, (str, os.PathLike)):
        paths = [path]
    else:
        paths = list(path)
    return [Path(app_root, p).resolve() for p in paths]


async def list_model_files(directory: Path) -> list[Path]:
    """Sorted model files of a directory, listed off the event loop.

    Raises:
        DirectoryError: If the directory cannot be read or is not a directory.
    """
    try:
        info = await asyncio.to_thread(os.stat, directory)
        if not stat.S_ISDIR(info.st_mode):
            raise NotADirectoryError(f"Path resolves to a non-directory: {directory}")
        entries = await asyncio.to_thread(os.listdir, directory)
    except OSError as e:
        raise DirectoryError(
            f"Unable to read model directory: {directory}", {"cause": e}
        ) from e

    return [
        directory / entry
        for entry in sorted(entries)
        if entry.endswith(".py") and not entry.startswith("__")
    ]


def load_definition(file: Path, logger: LoggerProtocol) -> type[Collection] | None:
    """Import a model file and return its definition, or None if unusable."""
    log = logger.bind(path=str(file))
    try:
        module = import_path(file, "oryx_model")
    except Exception as e:
        log.warning(
            "Unable to load model",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        return None

    factory = getattr(module, MODEL_FACTORY, None)
    if not callable(factory):
        log.warning("Unable to load model", reason="no model factory")
        return None

    try:
        definition = factory(persistence)
    except Exception as e:
        log.warning(
            "Unable to load model",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        return None

    if not is_collection(definition):
        log.warning(
            "Unable to load model",
            reason="factory did not return a Collection",
        )
        return None
    return definition
