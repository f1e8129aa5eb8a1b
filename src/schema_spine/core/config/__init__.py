"""
Configuration for schema-spine.

Modules
-------
settings    MigrateSettings / DatabaseSettings (pydantic-settings)
loader      YAML config file loading and validation

Tags:
    schema-spine, configuration, yaml, pydantic

Doc-Types:
    package-overview
"""

from schema_spine.core.config.loader import DEFAULT_CONFIG_PATH, load_settings, parse_settings
from schema_spine.core.config.settings import DatabaseSettings, LogLevel, MigrateSettings

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseSettings",
    "LogLevel",
    "MigrateSettings",
    "load_settings",
    "parse_settings",
]
