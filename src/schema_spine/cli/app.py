"""
Root Typer application for the schema-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from schema_spine.cli import migrate as migrate_cmds

app = Typer(
    name="schema-spine",
    help="Apply SQL migrations exactly once and halt on drift.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("schema-spine")
        except PackageNotFoundError:
            from schema_spine import __version__ as v
        typer.echo(f"schema-spine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """schema-spine CLI: verify and apply database migrations."""


app.command("migrate")(migrate_cmds.migrate)
app.command("status")(migrate_cmds.status)
