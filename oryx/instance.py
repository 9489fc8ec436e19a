"""The Oryx instance.

Wires a FastAPI application from the conventional directory layout:

    app_root/
        config/default.yml          merged with config/<profile>.yml
        models/*.py                 model(orm) factories
        routes/api/v1/__init__.py   module-level ``router = APIRouter()``

Usage:
    from contextlib import asynccontextmanager

    from fastapi import FastAPI
    from oryx import Oryx

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        oryx = Oryx(app, app_root="/srv/app", log_level="INFO", powered_by=False)
        await oryx.autowire()
        yield
        await oryx.close()

    app = FastAPI(lifespan=lifespan)

Middleware cannot be added once the application has started, so an
instance created inside a lifespan must disable ``powered_by`` (or add
PoweredByMiddleware up front).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Any

from fastapi import FastAPI

from oryx.core.config import OryxSettings
from oryx.core.config_loader import OryxConfig, load_config
from oryx.core.errors import OryxError
from oryx.discovery import apis as api_discovery
from oryx.discovery import models as model_discovery
from oryx.domain.protocols.logger_protocol import LoggerProtocol
from oryx.infrastructure.logging.console_adapter import ConsoleAdapter
from oryx.infrastructure.persistence.handle import CollectionHandle
from oryx.infrastructure.persistence.registry import ORM
from oryx.presentation.middleware.powered_by import PoweredByMiddleware
from oryx.presentation.routes.context import BindingContext


class Oryx:
    """Auto-wiring for one FastAPI application.

    Construction loads the configuration, creates the logger and data-layer
    registry, and installs the X-Powered-By middleware unless disabled.
    Discovery is async and runs when ``load_models``/``mount_apis`` (or
    ``autowire``) are awaited.

    Args:
        app: The application to wire.
        logger: Optional logger; defaults to a structlog console adapter.
        **options: Any OryxSettings field (app_root, config_root, profile,
            log_level, log_json, api_root, powered_by, memory_fallback).

    Raises:
        OryxError: If app is not a FastAPI application.
        ConfigLoadError: If a requested profile cannot be loaded.
    """

    def __init__(
        self, app: FastAPI, *, logger: LoggerProtocol | None = None, **options: Any
    ) -> None:
        if not isinstance(app, FastAPI):
            raise OryxError("Invalid app passed to Oryx!")

        settings = OryxSettings(**options)

        self._app = app
        self._settings = settings
        self._config = load_config(
            settings.app_root,
            settings.config_root,
            settings.profile,
            memory_fallback=settings.memory_fallback,
        )
        self._logger: LoggerProtocol = logger or ConsoleAdapter(
            level=settings.log_level, use_json=settings.log_json
        )
        self._orm = ORM()
        self._models: dict[str, CollectionHandle] = {}

        if settings.powered_by:
            app.add_middleware(PoweredByMiddleware)

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def app_root(self) -> Path:
        return self._settings.app_root

    @property
    def config(self) -> OryxConfig:
        return self._config

    @property
    def logger(self) -> LoggerProtocol:
        return self._logger

    @property
    def orm(self) -> ORM:
        return self._orm

    @property
    def profile(self) -> str:
        return self._settings.profile

    @property
    def settings(self) -> OryxSettings:
        return self._settings

    @property
    def models(self) -> Mapping[str, CollectionHandle]:
        """Live model handles from the last ``load_models`` call (read-only)."""
        return MappingProxyType(self._models)

    async def load_models(
        self, path: model_discovery.PathSpec | None = None
    ) -> list[str]:
        """Discover and register models.

        Args:
            path: Model directory or directories relative to app_root;
                defaults to ``models``.

        Returns:
            list[str]: Loaded model names in load order.

        Raises:
            DirectoryError: If a model directory is missing or not a directory.
        """
        names = await model_discovery.load_models(
            self._orm, self._config.orm, self._logger, self.app_root, path
        )
        self._models = self._orm.collections
        return names

    async def mount_apis(
        self,
        apis: api_discovery.ApiSpec | Sequence[api_discovery.ApiSpec] | None = None,
        *,
        path: str | None = None,
        root: str | None = None,
    ) -> list[str]:
        """Mount API packages and attach the loaded models' routes.

        Call after ``load_models`` so the models are known.

        Args:
            apis: Explicit API descriptor(s); scans ``routes/api`` when None.
            path: Directory to scan instead of ``routes/api``.
            root: URL prefix; defaults to the ``api_root`` setting.

        Returns:
            list[str]: Bases of the mounted APIs.

        Raises:
            DirectoryError: If the scanned API directory cannot be read.
        """
        context = BindingContext(
            config=self._config,
            logger=self._logger,
            models=MappingProxyType(dict(self._models)),
        )
        return await api_discovery.mount_apis(
            self._app,
            self._models,
            context,
            self._logger,
            self.app_root,
            apis,
            path=path,
            root=root or self._settings.api_root,
        )

    async def autowire(
        self,
        models: Mapping[str, Any] | None = None,
        routes: Mapping[str, Any] | None = None,
    ) -> tuple[list[str], list[str]]:
        """Load models, then mount APIs.

        Args:
            models: Keyword options for ``load_models`` (e.g. ``{"path": "models"}``).
            routes: Keyword options for ``mount_apis`` (``apis``, ``path``, ``root``).

        Returns:
            tuple[list[str], list[str]]: Model names and mounted API bases.
        """
        names = await self.load_models(**dict(models or {}))
        apis = await self.mount_apis(**dict(routes or {}))
        self._logger.info("Autowired application", models=names, apis=apis)
        return names, apis

    async def close(self) -> None:
        """Release data-layer connections."""
        await self._orm.teardown()
