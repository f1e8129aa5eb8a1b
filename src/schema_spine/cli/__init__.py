"""
CLI layer for schema-spine.

Provides a Typer application whose commands delegate to the operations
layer (``schema_spine.ops``). This package handles only terminal
transport: argument parsing, output, and the process exit status.

Entry point::

    schema-spine --help
"""

from schema_spine.cli.app import app

__all__ = ["app"]
