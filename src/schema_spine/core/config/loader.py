"""
Configuration file loading.

Reads the YAML config file, validates it into :class:`MigrateSettings`,
and resolves ``migrations_dir`` against the directory holding the file.
Every failure (unreadable file, malformed YAML, failed validation) is
raised as :class:`~schema_spine.core.errors.ConfigError`.

Tags:
    schema-spine, configuration, yaml, loader

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from schema_spine.core.config.settings import MigrateSettings
from schema_spine.core.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config.yaml")


def _describe_errors(exc: ValidationError) -> list[str]:
    """Flatten pydantic errors into ``"database.port: ..."`` strings."""
    described = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        described.append(f"{location}: {err['msg']}")
    return described


def parse_settings(content: str, *, base_dir: Path | None = None) -> MigrateSettings:
    """Validate YAML text into settings.

    Parameters
    ----------
    content
        Raw YAML document.
    base_dir
        Directory that a relative ``migrations_dir`` is resolved against.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"can't decode config file: {exc}", cause=exc) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a mapping at the top level")

    try:
        settings = MigrateSettings(**data)
    except ValidationError as exc:
        errors = _describe_errors(exc)
        raise ConfigError(
            "config validation failed: " + "; ".join(errors),
            context={"errors": errors},
            cause=exc,
        ) from exc

    if settings.migrations_dir and base_dir is not None:
        directory = Path(settings.migrations_dir)
        if not directory.is_absolute():
            settings = settings.model_copy(
                update={"migrations_dir": str((base_dir / directory).resolve())}
            )
    return settings


def load_settings(path: Path | str | None = None) -> MigrateSettings:
    """Load and validate the config file at *path* (default ``./config.yaml``)."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"can't read config file {config_path}",
            context={"path": str(config_path)},
            cause=exc,
        ) from exc

    try:
        return parse_settings(content, base_dir=config_path.resolve().parent)
    except ConfigError as exc:
        exc.with_context(path=str(config_path))
        raise
