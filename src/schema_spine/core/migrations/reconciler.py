"""Migration reconciliation.

Compares the applied history against the source and applies the
difference:

1. **loading** - ensure the record table exists, read applied records
   and source migrations (both sorted by name)
2. **verifying** - the applied records must be a prefix of the source:
   same name at the same position, same body after line-ending
   normalization
3. **applying** - every remaining source migration runs in its own
   transaction, strictly in order, stopping at the first failure
4. **done**

Any failure moves the run to **failed** and the typed error propagates to
the caller. Migrations committed before a failure stay committed; there
is no rollback across files.

Example::

    from schema_spine.core.migrations import DirectorySource, Reconciler

    reconciler = Reconciler(store, DirectorySource("migrations"), logger=log)
    report = reconciler.reconcile()
    print(report.applied)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from schema_spine.core.errors import (
    MigrationChangedError,
    MigrationOrderError,
    MigrationRemovedError,
    SchemaSpineError,
)
from schema_spine.core.logging import get_logger
from schema_spine.core.migrations.diff import character_diff, normalize_body
from schema_spine.core.migrations.models import (
    MigrationPlan,
    MigrationRecord,
    MigrationReport,
    ReconcileState,
    SourceMigration,
)

if TYPE_CHECKING:
    from schema_spine.core.protocols import MigrationSource, MigrationStore


def verify_prefix(
    applied: Sequence[MigrationRecord],
    sources: Sequence[SourceMigration],
) -> list[SourceMigration]:
    """Check that *applied* is a prefix of *sources* and return the pending rest.

    Raises
    ------
    MigrationRemovedError
        An applied migration no longer exists in the source.
    MigrationOrderError
        A source migration that was never applied sorts before one that was.
    MigrationChangedError
        An applied migration's body differs from its source.
    """
    positions = {m.name: i for i, m in enumerate(sources)}

    for i, record in enumerate(applied):
        if i >= len(sources) or record.name not in positions:
            raise MigrationRemovedError(
                f"migration {record.name} was removed",
                migration=record.name,
            )

        source = sources[i]
        if source.name != record.name:
            raise MigrationOrderError(
                f"migration {source.name} sorts before already applied {record.name}",
                migration=source.name,
                context={"applied_migration": record.name},
            )

        recorded = normalize_body(record.body)
        current = normalize_body(source.body)
        if recorded != current:
            raise MigrationChangedError(
                f"migration {record.name} was changed",
                migration=record.name,
                diff=character_diff(recorded, current),
            )

    return list(sources[len(applied):])


class Reconciler:
    """Brings a database's applied history up to date with a migration source.

    Parameters
    ----------
    store
        Where applied records live and pending migrations are executed.
    source
        Supplies the ordered source migrations.
    logger
        Structured logger handle for this run.
    """

    def __init__(
        self,
        store: MigrationStore,
        source: MigrationSource,
        *,
        logger: Any = None,
    ) -> None:
        self._store = store
        self._source = source
        self._log = logger or get_logger(__name__)
        self._state = ReconcileState.LOADING

    @property
    def state(self) -> ReconcileState:
        return self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(self) -> MigrationPlan:
        """Load and verify the history without applying anything."""
        self._transition(ReconcileState.LOADING)
        try:
            self._store.ensure_table()
            applied = self._store.load_applied()
            sources = self._source.load()

            self._transition(
                ReconcileState.VERIFYING,
                applied=len(applied),
                sources=len(sources),
            )
            pending = verify_prefix(applied, sources)
        except SchemaSpineError as exc:
            self._fail(exc)
            raise

        return MigrationPlan(applied=list(applied), pending=pending)

    def reconcile(self) -> MigrationReport:
        """Verify the history, then apply every pending migration in order."""
        plan = self.plan()

        if plan.up_to_date:
            self._transition(ReconcileState.DONE)
            self._log.info("database_up_to_date", applied=len(plan.applied))
            return MigrationReport(applied=[], already_applied=len(plan.applied))

        self._transition(ReconcileState.APPLYING, pending=len(plan.pending))
        newly_applied: list[str] = []
        for migration in plan.pending:
            self._log.info("applying_migration", migration=migration.name)
            try:
                self._store.apply(migration)
            except SchemaSpineError as exc:
                exc.with_context(applied=list(newly_applied))
                self._fail(exc)
                raise
            newly_applied.append(migration.name)
            self._log.info("migration_applied", migration=migration.name)

        self._transition(ReconcileState.DONE, applied=len(newly_applied))
        return MigrationReport(applied=newly_applied, already_applied=len(plan.applied))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, state: ReconcileState, **fields: Any) -> None:
        self._state = state
        self._log.debug("reconcile_state", state=state.value, **fields)

    def _fail(self, exc: SchemaSpineError) -> None:
        self._state = ReconcileState.FAILED
        self._log.error(exc.code.lower(), **exc.to_dict())
