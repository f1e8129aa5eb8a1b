"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument. The context carries the migration store, the run's logger handle,
caller identity, and the dry-run flag.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from schema_spine.core.protocols import MigrationStore


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        store: Migration store satisfying :class:`schema_spine.core.protocols.MigrationStore`.
        logger: structlog logger handle for this run.
        request_id: Unique ID for this operation invocation (auto-generated).
        caller: Origin of the request, ``"cli"`` or ``"sdk"``.
        dry_run: When ``True``, operations verify and report without applying.
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    store: MigrationStore
    logger: Any
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    dry_run: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def bound_logger(self) -> Any:
        """Logger with the request identity bound."""
        return self.logger.bind(request_id=self.request_id, caller=self.caller, **self.metadata)
