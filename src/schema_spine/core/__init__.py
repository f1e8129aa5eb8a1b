"""
schema-spine core: errors, configuration, logging, ORM, and migrations.

Modules
-------
errors      Typed error hierarchy (SchemaSpineError and subclasses)
logging     Per-run structlog logger handles
protocols   MigrationSource / MigrationStore protocols
config      YAML config loading and pydantic validation
orm         SQLAlchemy engine factory and the migrations table
migrations  Sources, store, and the reconciler
"""

from schema_spine.core.errors import (
    CommitError,
    ConfigError,
    ConnectivityError,
    DatabaseError,
    DriftError,
    ErrorCategory,
    MigrationChangedError,
    MigrationExecutionError,
    MigrationOrderError,
    MigrationRecordError,
    MigrationRemovedError,
    SchemaSpineError,
    SourceError,
    StoreError,
)

__all__ = [
    "CommitError",
    "ConfigError",
    "ConnectivityError",
    "DatabaseError",
    "DriftError",
    "ErrorCategory",
    "MigrationChangedError",
    "MigrationExecutionError",
    "MigrationOrderError",
    "MigrationRecordError",
    "MigrationRemovedError",
    "SchemaSpineError",
    "SourceError",
    "StoreError",
]
