"""
CLI utility helpers: config loading, context construction and output.

This is the one place that turns a failed :class:`OperationResult` or a
``ConfigError`` into a non-zero exit.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.text import Text
from sqlalchemy.exc import SQLAlchemyError

from schema_spine.core.config import MigrateSettings, load_settings
from schema_spine.core.errors import ConfigError
from schema_spine.core.logging import make_logger
from schema_spine.core.migrations import DirectorySource, PackageSource, SqlAlchemyMigrationStore
from schema_spine.core.orm import create_migrate_engine
from schema_spine.core.protocols import MigrationSource
from schema_spine.ops.context import OperationContext
from schema_spine.ops.result import OperationResult

console = Console()
err_console = Console(stderr=True)

DEFAULT_MIGRATIONS_DIR = Path("migrations")


# ── Config / source / context ────────────────────────────────────────────


def load_config(path: Path | None) -> MigrateSettings:
    """Load settings, exiting with status 1 on any configuration error."""
    try:
        return load_settings(path)
    except ConfigError as exc:
        _exit_on_config_error(exc)


def build_source(
    settings: MigrateSettings,
    *,
    migrations_dir: Path | None = None,
    package: str | None = None,
) -> MigrationSource:
    """Pick the migration source: ``--package``, ``--migrations``, config, then ``./migrations``."""
    if package:
        return PackageSource(package)
    if migrations_dir is not None:
        return DirectorySource(migrations_dir)
    if settings.migrations_dir:
        return DirectorySource(settings.migrations_dir)
    return DirectorySource(DEFAULT_MIGRATIONS_DIR)


@contextmanager
def make_context(
    settings: MigrateSettings,
    *,
    dry_run: bool = False,
) -> Iterator[OperationContext]:
    """Create an ``OperationContext`` for one CLI command; disposes the engine afterwards."""
    database = settings.database
    logger = make_logger(
        settings.log_level.value,
        json_format=settings.log_format == "json",
        database=database.name,
    )
    try:
        engine = create_migrate_engine(database.connection_url(), echo=database.echo)
    except SQLAlchemyError as exc:
        _exit_on_config_error(
            ConfigError(f"invalid database url: {exc}", context={"database": database.name}, cause=exc)
        )
    logger.debug("engine_created", url=database.safe_url())
    try:
        store = SqlAlchemyMigrationStore(engine, logger=logger)
        yield OperationContext(store=store, logger=logger, caller="cli", dry_run=dry_run)
    finally:
        engine.dispose()


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> Any:
    """Convert dataclass / dict to plain JSON-ready data."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, dict):
        return {k: _to_dict(v) for k, v in obj.items()}
    return obj


def output_result(
    result: OperationResult,
    render: Callable[[Any], None],
    *,
    as_json: bool = False,
) -> None:
    """Render an ``OperationResult``; exit with status 1 when it failed."""
    if as_json:
        payload = result.to_dict()
        if "data" in payload:
            payload["data"] = _to_dict(payload["data"])
        console.print_json(json.dumps(payload, default=str))
        if not result.success:
            raise typer.Exit(code=1)
        return

    if not result.success:
        err = result.error
        code = err.code if err else "ERROR"
        msg = err.message if err else "Unknown error"
        _print_error(code, msg)
        if err is not None:
            _print_failure_details(err.details)
        raise typer.Exit(code=1)

    render(result.data)


def print_lines(lines: list[str]) -> None:
    """Print plain status lines to stdout (no markup, no wrapping)."""
    for line in lines:
        console.print(line, markup=False, highlight=False, soft_wrap=True)


# ── Private helpers ──────────────────────────────────────────────────────


def _exit_on_config_error(exc: ConfigError) -> NoReturn:
    make_logger("ERROR").error(exc.code.lower(), **exc.to_dict())
    _print_error(exc.code, exc.message)
    raise typer.Exit(code=1) from exc


def _print_failure_details(details: dict[str, Any]) -> None:
    diff = details.get("diff")
    if diff:
        err_console.print("[cyan]diff[/cyan]:")
        err_console.print(diff, markup=False, highlight=False, soft_wrap=True)
    applied = details.get("applied")
    if applied:
        err_console.print("[cyan]applied before failure[/cyan]:")
        for name in applied:
            err_console.print(f" - {name}", markup=False, highlight=False)


def _print_error(code: str, message: str) -> None:
    err_console.print(
        Text.assemble(("Error", "bold red"), f" ({code}): {message}"),
        highlight=False,
        soft_wrap=True,
    )
