"""
Typed response objects for operations.

Each dataclass is the payload of a successful :class:`OperationResult`.
Responses carry only domain data, no CLI formatting.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class MigrateResult:
    """Result payload for :func:`schema_spine.ops.migrations.apply_migrations`."""

    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    already_applied: int = 0
    dry_run: bool = False

    @property
    def up_to_date(self) -> bool:
        return not self.applied and not self.pending


@dataclass(frozen=True, slots=True)
class MigrationStatus:
    """Result payload for :func:`schema_spine.ops.migrations.migration_status`."""

    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return not self.pending
