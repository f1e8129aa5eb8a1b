"""
Protocols the reconciler depends on.

The reconciler only needs two capabilities: something that lists the
source migrations in order, and something that reads and writes applied
records. Both are expressed as protocols so the algorithm can be
exercised against in-memory fakes, a SQLite file, or PostgreSQL without
modification.

Architecture:
    ::

        MigrationSource:
        ┌────────────────────────────────────────────────────────┐
        │ load() → list[SourceMigration]   sorted by name        │
        └────────────────────────────────────────────────────────┘

        MigrationStore:
        ┌────────────────────────────────────────────────────────┐
        │ check_connection()             reachability probe      │
        │ ensure_table()                 create record table     │
        │ load_applied() → records       sorted by name          │
        │ apply(migration) → record      one transaction         │
        └────────────────────────────────────────────────────────┘

Tags:
    protocol, migrations, source-provider, store
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from schema_spine.core.migrations.models import MigrationRecord, SourceMigration


@runtime_checkable
class MigrationSource(Protocol):
    """Supplies the ordered list of source migrations."""

    def load(self) -> list[SourceMigration]:
        """Return every source migration, sorted by name."""
        ...


@runtime_checkable
class MigrationStore(Protocol):
    """Persists applied migration records next to the schema they changed."""

    def check_connection(self) -> None:
        """Raise ``ConnectivityError`` if the database cannot be reached."""
        ...

    def ensure_table(self) -> bool:
        """Create the record table if absent. Returns ``True`` if created."""
        ...

    def load_applied(self) -> list[MigrationRecord]:
        """Return applied records sorted by name."""
        ...

    def apply(self, migration: SourceMigration) -> MigrationRecord:
        """Insert the record and execute the body in a single transaction."""
        ...
