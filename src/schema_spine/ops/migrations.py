"""
Migration operations.

Thin wrappers around :class:`~schema_spine.core.migrations.Reconciler`
that turn typed errors into :class:`OperationResult` failures. Nothing
here exits the process.
"""

from __future__ import annotations

from typing import Any

from schema_spine.core.errors import SchemaSpineError
from schema_spine.core.migrations import Reconciler
from schema_spine.core.protocols import MigrationSource
from schema_spine.ops.context import OperationContext
from schema_spine.ops.responses import MigrateResult, MigrationStatus
from schema_spine.ops.result import OperationResult, start_timer


def _connect(ctx: OperationContext, log: Any) -> SchemaSpineError | None:
    try:
        ctx.store.check_connection()
    except SchemaSpineError as exc:
        log.error(exc.code.lower(), **exc.to_dict())
        return exc
    return None


def apply_migrations(
    ctx: OperationContext,
    source: MigrationSource,
) -> OperationResult[MigrateResult]:
    """Verify the applied history and apply pending migrations.

    With ``ctx.dry_run`` the history is verified and the pending names are
    reported, but nothing is applied.

    On failure part-way through, ``error.details["applied"]`` lists the
    migrations committed before the failing one.
    """
    timer = start_timer()
    log = ctx.bound_logger()

    if (error := _connect(ctx, log)) is not None:
        return OperationResult.from_error(error, elapsed_ms=timer.elapsed_ms)

    reconciler = Reconciler(ctx.store, source, logger=log)
    try:
        if ctx.dry_run:
            plan = reconciler.plan()
            data = MigrateResult(
                pending=plan.pending_names,
                already_applied=len(plan.applied),
                dry_run=True,
            )
        else:
            report = reconciler.reconcile()
            data = MigrateResult(
                applied=report.applied,
                already_applied=report.already_applied,
            )
    except SchemaSpineError as exc:
        return OperationResult.from_error(
            exc,
            elapsed_ms=timer.elapsed_ms,
            metadata={"state": reconciler.state.value},
        )

    log.info(
        "migrate_finished",
        applied=len(data.applied),
        pending=len(data.pending),
        dry_run=data.dry_run,
        elapsed_ms=round(timer.elapsed_ms, 2),
    )
    return OperationResult.ok(data, elapsed_ms=timer.elapsed_ms)


def migration_status(
    ctx: OperationContext,
    source: MigrationSource,
) -> OperationResult[MigrationStatus]:
    """Report applied and pending migrations, failing on drift."""
    timer = start_timer()
    log = ctx.bound_logger()

    if (error := _connect(ctx, log)) is not None:
        return OperationResult.from_error(error, elapsed_ms=timer.elapsed_ms)

    reconciler = Reconciler(ctx.store, source, logger=log)
    try:
        plan = reconciler.plan()
    except SchemaSpineError as exc:
        return OperationResult.from_error(
            exc,
            elapsed_ms=timer.elapsed_ms,
            metadata={"state": reconciler.state.value},
        )

    return OperationResult.ok(
        MigrationStatus(
            applied=[record.name for record in plan.applied],
            pending=plan.pending_names,
        ),
        elapsed_ms=timer.elapsed_ms,
    )
