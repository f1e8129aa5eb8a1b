"""
Structured error types for schema-spine.

Every failure a migration run can hit is represented by a typed error that
carries a category, a machine-readable code, structured context, and the
underlying cause. Nothing below the CLI terminates the process: errors are
raised by the core, converted to result values by the ops layer, and
rendered once at the top.

Manifesto:
    - **Typed hierarchy:** one class per failure mode in the run
    - **Fatal by default:** no error is retryable; a corrupted history
      must never be worked around
    - **Rich context:** errors carry migration names, diffs, and URLs
      (without passwords) for logging
    - **Error chaining:** the driver exception is preserved as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      SchemaSpineError                         │
        │               (category, code, context, cause)                │
        ├──────────────────────────────────────────────────────────────┤
        │  ConfigError        SourceError        DatabaseError          │
        │  (CONFIG)           (SOURCE)           (DATABASE)             │
        │                                             │                 │
        │                         ConnectivityError  StoreError         │
        │                         MigrationRecordError  CommitError     │
        │                                                               │
        │  DriftError                          MigrationExecutionError  │
        │  (DRIFT)                             (EXECUTION)              │
        │     │                                                         │
        │  MigrationRemovedError                                        │
        │  MigrationChangedError                                        │
        │  MigrationOrderError                                          │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> err = MigrationRemovedError(
    ...     "migration 001_init.sql was removed", migration="001_init.sql"
    ... )
    >>> err.code
    'MIGRATION_REMOVED'
    >>> err.with_context(applied=3).to_dict()["context"]
    {'migration': '001_init.sql', 'applied': 3}

Tags:
    error-handling, exception-hierarchy, drift, migrations, schema-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories for classification and routing.

    Attributes:
        CONFIG: Missing or invalid configuration
        SOURCE: Migration files cannot be read
        DATABASE: Connection, store read, record insert, commit
        DRIFT: Applied history disagrees with the source
        EXECUTION: A migration body failed to execute
        INTERNAL: Bugs, unexpected state
    """

    CONFIG = "CONFIG"
    SOURCE = "SOURCE"
    DATABASE = "DATABASE"
    DRIFT = "DRIFT"
    EXECUTION = "EXECUTION"
    INTERNAL = "INTERNAL"


class SchemaSpineError(Exception):
    """
    Base exception for all schema-spine errors.

    Subclasses set ``default_category`` and ``code``; instances carry a
    free-form ``context`` dict that ends up in structured logs and in the
    ``details`` of a failed operation result.

    Examples:
        >>> err = SchemaSpineError("boom")
        >>> err.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> err.to_dict()["error_type"]
        'SchemaSpineError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    code: str = "INTERNAL"

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    # Every error in a migration run is fatal.
    @property
    def retryable(self) -> bool:
        return False

    def with_context(self, **kwargs: Any) -> SchemaSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceError("cannot read").with_context(path="migrations/")
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, code={self.code})"


# =============================================================================
# CONFIGURATION / SOURCE
# =============================================================================


class ConfigError(SchemaSpineError):
    """Configuration file missing, malformed, or failing validation."""

    default_category = ErrorCategory.CONFIG
    code = "CONFIG_INVALID"


class SourceError(SchemaSpineError):
    """Migration source cannot be read (missing directory, bad file, duplicates)."""

    default_category = ErrorCategory.SOURCE
    code = "SOURCE_UNREADABLE"


# =============================================================================
# DATABASE
# =============================================================================


class DatabaseError(SchemaSpineError):
    """Base for failures talking to the target database."""

    default_category = ErrorCategory.DATABASE
    code = "DATABASE_ERROR"


class ConnectivityError(DatabaseError):
    """The target database cannot be reached."""

    code = "DATABASE_UNREACHABLE"


class StoreError(DatabaseError):
    """The migration record table cannot be created or read."""

    code = "STORE_UNREADABLE"


class MigrationRecordError(DatabaseError):
    """Inserting the record for a pending migration failed."""

    code = "RECORD_FAILED"


class CommitError(DatabaseError):
    """The transaction of an executed migration failed to commit."""

    code = "COMMIT_FAILED"


# =============================================================================
# DRIFT
# =============================================================================


class DriftError(SchemaSpineError):
    """
    Applied history and source disagree.

    Raised before any migration is applied, so a drift failure never
    leaves writes behind.
    """

    default_category = ErrorCategory.DRIFT
    code = "DRIFT"

    def __init__(self, message: str, *, migration: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.migration = migration
        self.context.setdefault("migration", migration)


class MigrationRemovedError(DriftError):
    """An applied migration is no longer present in the source."""

    code = "MIGRATION_REMOVED"


class MigrationChangedError(DriftError):
    """An applied migration's body was edited after it ran."""

    code = "MIGRATION_CHANGED"

    def __init__(self, message: str, *, migration: str, diff: str, **kwargs: Any):
        super().__init__(message, migration=migration, **kwargs)
        self.diff = diff
        self.context.setdefault("diff", diff)


class MigrationOrderError(DriftError):
    """A new source migration sorts before one that is already applied."""

    code = "MIGRATION_OUT_OF_ORDER"


# =============================================================================
# EXECUTION
# =============================================================================


class MigrationExecutionError(SchemaSpineError):
    """A pending migration's SQL body failed; its transaction was rolled back."""

    default_category = ErrorCategory.EXECUTION
    code = "EXECUTION_FAILED"


__all__ = [
    "ErrorCategory",
    "SchemaSpineError",
    "ConfigError",
    "SourceError",
    "DatabaseError",
    "ConnectivityError",
    "StoreError",
    "MigrationRecordError",
    "CommitError",
    "DriftError",
    "MigrationRemovedError",
    "MigrationChangedError",
    "MigrationOrderError",
    "MigrationExecutionError",
]
