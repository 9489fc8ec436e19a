"""Pytest configuration.

Async tests run under pytest-asyncio in auto mode (see pyproject.toml), so
``async def`` tests and fixtures need no explicit marker.

Shared fixtures:
- resources: Path of the application tree used by discovery tests
- app: Fresh FastAPI application
- mock_logger: MagicMock standing in for LoggerProtocol
- make_oryx: Factory building an Oryx instance rooted at resources/
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI

from oryx import Oryx

RESOURCES = Path(__file__).parent / "resources"


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line(
        "markers", "integration: Integration tests with a real SQL database"
    )
    config.addinivalue_line("markers", "api: HTTP tests through FastAPI TestClient")


@pytest.fixture
def resources() -> Path:
    """Root of the fixture application tree."""
    return RESOURCES


@pytest.fixture
def app() -> FastAPI:
    """A fresh FastAPI application."""
    return FastAPI()


@pytest.fixture
def mock_logger() -> MagicMock:
    """Logger double recording every call.

    ``bind`` returns the same mock so bound loggers record to it as well.
    """
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger


@pytest.fixture
def make_oryx(app: FastAPI, monkeypatch: pytest.MonkeyPatch) -> Callable[..., Oryx]:
    """Factory for Oryx instances rooted at the fixture tree.

    ORYX_* variables from the environment are cleared so settings only come
    from the options given.
    """
    for name in ("ORYX_PROFILE", "ORYX_LOG_LEVEL", "ORYX_APP_ROOT", "ORYX_POWERED_BY"):
        monkeypatch.delenv(name, raising=False)

    def _make(target: FastAPI | None = None, **options: Any) -> Oryx:
        options.setdefault("app_root", RESOURCES)
        options.setdefault("log_level", "ERROR")
        return Oryx(target if target is not None else app, **options)

    return _make
