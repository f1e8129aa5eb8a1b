"""
Validated settings for a migration run.

Manifesto:
    A migration tool that starts with a half-valid configuration is worse
    than one that refuses to start. :class:`MigrateSettings` validates
    every key up front (required credentials, port range, log level) and
    the loader turns any validation failure into a ``ConfigError``.

Values come from the YAML config file (passed as init kwargs, so they
win) and from ``SCHEMA_SPINE_*`` environment variables, with ``__`` as the
nested delimiter (``SCHEMA_SPINE_DATABASE__PASSWORD``).

Tags:
    schema-spine, configuration, settings, pydantic, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

DEFAULT_DRIVER = "postgresql+psycopg"

# Level names accepted from older configs and their stdlib equivalents.
_LEVEL_ALIASES = {
    "WARN": "WARNING",
    "FATAL": "CRITICAL",
    "PANIC": "CRITICAL",
    "TRACE": "DEBUG",
}


class LogLevel(str, Enum):
    """Log levels matching Python logging."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseSettings(BaseModel):
    """Connection parameters for the target database."""

    name: str = Field(..., min_length=1, description="Database name")
    host: str = Field(..., min_length=1, description="Database host")
    port: int = Field(..., ge=1, le=65535, description="Database port")
    user: str = Field(..., min_length=1, description="Database user")
    password: SecretStr = Field(..., description="Database password")

    driver: str = Field(default=DEFAULT_DRIVER, description="SQLAlchemy driver name")
    url: str | None = Field(
        default=None,
        description="Full SQLAlchemy URL; overrides the composed one when set",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")

    @field_validator("password")
    @classmethod
    def _password_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("password must not be empty")
        return v

    def connection_url(self) -> URL:
        """Return the URL used to connect to the target database."""
        if self.url:
            return make_url(self.url)
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password.get_secret_value(),
            host=self.host,
            port=self.port,
            database=self.name,
        )

    def safe_url(self) -> str:
        """URL rendered for logs, password masked."""
        return self.connection_url().render_as_string(hide_password=True)


class MigrateSettings(BaseSettings):
    """Settings for one ``schema-spine`` invocation."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMA_SPINE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: LogLevel = Field(..., description="Minimum log level")
    log_format: Literal["console", "json"] = Field(default="console")
    migrations_dir: str | None = Field(
        default=None,
        description="Directory of *.sql migrations, relative to the config file",
    )
    database: DatabaseSettings

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            upper = v.strip().upper()
            return _LEVEL_ALIASES.get(upper, upper)
        return v
