"""Configuration file loading.

A basic profile loader: ``<config_dir>/default.yml`` is always read (a missing
or unreadable default silently becomes an empty mapping), then
``<config_dir>/<profile>.yml`` is merged over it for any non-default profile.
A profile file that fails to load raises ConfigLoadError so an application
never starts against the wrong settings.

The ``orm`` section is passed to the data layer:

    orm:
      adapters:
        memory: oryx.infrastructure.persistence.adapters.sql:SqlAdapter
      connections:
        default:
          adapter: memory

Usage:
    from oryx.core.config_loader import load_config

    config = load_config(app_root, "config", "production")
    config.orm.connections["default"].adapter
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from oryx.core.errors import ConfigLoadError

# SqlAdapter without a url opens a private in-memory SQLite database
MEMORY_ADAPTER = "oryx.infrastructure.persistence.adapters.sql:SqlAdapter"

_EXTENSIONS = (".yml", ".yaml")


class ConnectionConfig(BaseModel):
    """A named data-layer connection.

    Attributes:
        adapter: Name of an entry in ``orm.adapters``.

    Any other keys (``url``, ``echo``...) are passed to the adapter.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    adapter: str

    def options(self) -> dict[str, Any]:
        """Adapter options, i.e. everything except the adapter name."""
        return dict(self.model_extra or {})


class OrmConfig(BaseModel):
    """Data-layer configuration.

    Attributes:
        adapters: Adapter name to ``"pkg.module:ClassName"`` reference, class, or instance.
        connections: Connection name to connection settings.
    """

    model_config = ConfigDict(frozen=True, extra="allow", arbitrary_types_allowed=True)

    adapters: dict[str, Any] = Field(default_factory=dict)
    connections: dict[str, ConnectionConfig] = Field(default_factory=dict)


class OryxConfig(BaseModel):
    """Merged, immutable configuration for one Oryx instance.

    Keys other than ``orm`` are kept as extra attributes, so a file holding
    ``feature_flag: 5`` is readable as ``config.feature_flag``.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    orm: OrmConfig = Field(default_factory=OrmConfig)


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` over ``base`` into a new dict.

    Nested mappings are merged key by key; any other value in ``override``
    replaces the value in ``base``.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(
    root: str | Path,
    directory: str | Path,
    profile: str | None,
    *,
    memory_fallback: bool = True,
) -> OryxConfig:
    """Load and merge the default and profile configuration files.

    Args:
        root: Application root.
        directory: Configuration directory, relative to root.
        profile: Profile to merge over the defaults; None or "default" skips it.
        memory_fallback: Ensure an in-memory "default" connection exists.

    Returns:
        OryxConfig: Frozen merged configuration.

    Raises:
        ConfigLoadError: If a non-default profile cannot be loaded or the
            merged configuration is malformed.
    """
    config_dir = Path(root, directory).resolve()

    try:
        config = _read_file(config_dir, "default")
    except (OSError, yaml.YAMLError, ConfigLoadError):
        config = {}

    if profile is not None and profile != "default":
        try:
            config = deep_merge(config, _read_file(config_dir, profile))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigLoadError(
                f"Unable to load configuration profile: {config_dir / profile}",
                {"cause": e},
            ) from e

    return _ensure(config, memory_fallback)


def _read_file(config_dir: Path, name: str) -> dict[str, Any]:
    for extension in _EXTENSIONS:
        candidate = config_dir / f"{name}{extension}"
        if candidate.is_file():
            break
    else:
        raise FileNotFoundError(f"No such configuration file: {config_dir / name}")

    data = yaml.safe_load(candidate.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Configuration root must be a mapping: {candidate}")
    return data


def _ensure(config: Mapping[str, Any], memory_fallback: bool) -> OryxConfig:
    if memory_fallback:
        config = deep_merge(
            {
                "orm": {
                    "adapters": {"memory": MEMORY_ADAPTER},
                    "connections": {"default": {"adapter": "memory"}},
                }
            },
            config,
        )

    try:
        return OryxConfig.model_validate(config)
    except PydanticValidationError as e:
        raise ConfigLoadError(f"Invalid configuration: {e}", {"cause": e}) from e
