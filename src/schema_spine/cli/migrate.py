"""
CLI: ``schema-spine migrate`` / ``schema-spine status``.
"""

from __future__ import annotations

from pathlib import Path

import typer

from schema_spine.cli.utils import (
    build_source,
    load_config,
    make_context,
    output_result,
    print_lines,
)
from schema_spine.core.config import DEFAULT_CONFIG_PATH
from schema_spine.ops.migrations import apply_migrations, migration_status
from schema_spine.ops.responses import MigrateResult, MigrationStatus

UP_TO_DATE = "No new migrations found, your database is up to date."


def _render_migrate(data: MigrateResult) -> None:
    if data.dry_run:
        if not data.pending:
            print_lines([UP_TO_DATE])
            return
        print_lines(["Pending migrations:", *(f" - {name}" for name in data.pending)])
        return

    if not data.applied:
        print_lines([UP_TO_DATE])
        return
    print_lines(["Applied migrations:", *(f" - {name}" for name in data.applied)])


def _render_status(data: MigrationStatus) -> None:
    lines = [f"Applied: {len(data.applied)}", f"Pending: {len(data.pending)}"]
    lines.extend(f" - {name}" for name in data.pending)
    if data.up_to_date:
        lines.append(UP_TO_DATE)
    print_lines(lines)


def migrate(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Config file"),
    migrations: Path | None = typer.Option(
        None, "--migrations", "-m", help="Directory of *.sql migrations"
    ),
    package: str | None = typer.Option(
        None, "--package", help="Python package bundling a migrations/ directory"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Verify and list pending, apply nothing"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Verify applied migrations and apply pending ones in order."""
    settings = load_config(config)
    source = build_source(settings, migrations_dir=migrations, package=package)
    with make_context(settings, dry_run=dry_run) as ctx:
        result = apply_migrations(ctx, source)
    output_result(result, _render_migrate, as_json=json_out)


def status(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Config file"),
    migrations: Path | None = typer.Option(
        None, "--migrations", "-m", help="Directory of *.sql migrations"
    ),
    package: str | None = typer.Option(
        None, "--package", help="Python package bundling a migrations/ directory"
    ),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Check for drift and show applied/pending migrations."""
    settings = load_config(config)
    source = build_source(settings, migrations_dir=migrations, package=package)
    with make_context(settings) as ctx:
        result = migration_status(ctx, source)
    output_result(result, _render_status, as_json=json_out)
