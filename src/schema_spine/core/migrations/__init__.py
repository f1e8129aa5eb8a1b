"""Migration reconciliation for schema-spine.

Manifesto:
    A migration that already ran is a fact about the database. If its
    source later disappears or changes, the history can no longer be
    trusted, and the only safe move is to stop. The reconciler verifies
    that the applied history is a prefix of the source before it touches
    anything, then applies the rest one transaction per file.

Modules
-------
models      SourceMigration, MigrationRecord, MigrationPlan, MigrationReport
sources     DirectorySource, PackageSource, StaticSource
store       SqlAlchemyMigrationStore (record table in the target database)
diff        normalize_body(), character_diff()
reconciler  verify_prefix(), Reconciler

Tags:
    schema-spine, migrations, drift, reconciliation, transactional

Doc-Types:
    package-overview
"""

from schema_spine.core.migrations.diff import character_diff, normalize_body
from schema_spine.core.migrations.models import (
    MigrationPlan,
    MigrationRecord,
    MigrationReport,
    ReconcileState,
    SourceMigration,
)
from schema_spine.core.migrations.reconciler import Reconciler, verify_prefix
from schema_spine.core.migrations.sources import DirectorySource, PackageSource, StaticSource
from schema_spine.core.migrations.store import SqlAlchemyMigrationStore, split_statements

__all__ = [
    "DirectorySource",
    "MigrationPlan",
    "MigrationRecord",
    "MigrationReport",
    "PackageSource",
    "ReconcileState",
    "Reconciler",
    "SourceMigration",
    "SqlAlchemyMigrationStore",
    "StaticSource",
    "character_diff",
    "normalize_body",
    "split_statements",
    "verify_prefix",
]
