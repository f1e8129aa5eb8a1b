"""SQLAlchemy 2.0 layer for schema-spine.

Modules
-------
base        SchemaSpineBase (declarative base)
session     Engine factory, MigrateSession, session factory
tables      MigrationTable (the ``migrations`` record table)

Tags:
    schema-spine, orm, sqlalchemy, declarative

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from schema_spine.core.orm.base import SchemaSpineBase
from schema_spine.core.orm.session import (
    MigrateSession,
    create_migrate_engine,
    migrate_session_factory,
)
from schema_spine.core.orm.tables import MIGRATIONS_TABLE, MigrationTable

__all__ = [
    "MIGRATIONS_TABLE",
    "MigrateSession",
    "MigrationTable",
    "SchemaSpineBase",
    "create_migrate_engine",
    "migrate_session_factory",
]
