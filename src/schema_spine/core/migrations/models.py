"""Value objects exchanged between sources, the store, and the reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True, slots=True)
class SourceMigration:
    """A migration as it exists in the source: file name and SQL text."""

    name: str
    body: str


@dataclass(frozen=True, slots=True)
class MigrationRecord:
    """Record of a single applied migration.

    ``body`` is the exact text that was executed. It is the checksum the
    next run compares the source against, so it is never rewritten.
    """

    id: int
    created_at: datetime | None
    name: str
    body: str


@dataclass(frozen=True, slots=True)
class MigrationPlan:
    """Verified history plus the migrations still to run."""

    applied: list[MigrationRecord] = field(default_factory=list)
    pending: list[SourceMigration] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return not self.pending

    @property
    def pending_names(self) -> list[str]:
        return [m.name for m in self.pending]


@dataclass(frozen=True, slots=True)
class MigrationReport:
    """Outcome of a successful reconcile run."""

    applied: list[str] = field(default_factory=list)
    already_applied: int = 0

    @property
    def up_to_date(self) -> bool:
        return not self.applied


class ReconcileState(str, Enum):
    """Linear run states. Any failure jumps straight to ``FAILED``."""

    LOADING = "loading"
    VERIFYING = "verifying"
    APPLYING = "applying"
    DONE = "done"
    FAILED = "failed"
