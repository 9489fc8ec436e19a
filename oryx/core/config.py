"""
Instance settings using Pydantic Settings.

Every option accepted by ``Oryx(app, **options)`` is declared here. Explicit
keyword options win over ``ORYX_*`` environment variables, which win over
the defaults below.

Usage:
    from oryx.core.config import OryxSettings

    settings = OryxSettings(app_root="/srv/app", log_level="ERROR")
    settings.profile  # "default" unless ORYX_PROFILE is set
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oryx.core.enums import LogLevel


class OryxSettings(BaseSettings):
    """
    Options for a single Oryx instance (flat structure).

    Configuration precedence:
        1. Keyword options passed to Oryx
        2. Environment variables prefixed with ORYX_
        3. Default values
    """

    app_root: Path = Field(
        default_factory=Path.cwd,
        description="Application root that discovery paths resolve against",
    )
    config_root: str = Field(
        default="config",
        description="Configuration directory, relative to app_root",
    )
    profile: str = Field(
        default="default",
        description="Configuration profile merged over default.yml",
    )
    log_level: LogLevel = Field(
        default=LogLevel.DEBUG,
        description="Minimum level emitted by the instance logger",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of the colored console format",
    )
    api_root: str = Field(
        default="/api",
        description="URL prefix every API version is mounted beneath",
    )
    powered_by: bool = Field(
        default=True,
        description="Add an X-Powered-By header to every response",
    )
    memory_fallback: bool = Field(
        default=True,
        description="Provide an in-memory 'default' connection when none is configured",
    )

    model_config = SettingsConfigDict(
        env_prefix="ORYX_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """
        Accept log levels in any case.

        Args:
            v: Raw log level value.

        Returns:
            object: Upper-cased level when given a string.
        """
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("profile", mode="before")
    @classmethod
    def default_empty_profile(cls, v: object) -> object:
        """Treat an empty or missing profile as the default profile."""
        if v is None or v == "":
            return "default"
        return v
