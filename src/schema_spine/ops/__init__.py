"""
Operations layer for schema-spine.

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise for expected failures)
- All functions are transport-agnostic (no CLI knowledge)
- ``dry_run`` verifies without applying

Usage::

    from schema_spine.ops import OperationContext
    from schema_spine.ops.migrations import apply_migrations

    ctx = OperationContext(store=store, logger=log)
    result = apply_migrations(ctx, DirectorySource("migrations"))
    assert result.success
"""

from schema_spine.ops.context import OperationContext
from schema_spine.ops.result import OperationError, OperationResult

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
]
