"""Applied-migration store backed by the target database.

Records live in the ``migrations`` table of the database being migrated,
so the history and the schema it describes commit together. Every pending
migration is applied in its own transaction:

1. insert the record ``{name, body}``
2. execute the body
3. commit

A failure at step 1 or 2 rolls the transaction back, so neither the
record nor any statement of the body survives.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from sqlalchemy import inspect, insert, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from schema_spine.core.errors import (
    CommitError,
    ConnectivityError,
    MigrationExecutionError,
    MigrationRecordError,
    StoreError,
)
from schema_spine.core.logging import get_logger
from schema_spine.core.migrations.models import MigrationRecord, SourceMigration
from schema_spine.core.orm.session import migrate_session_factory
from schema_spine.core.orm.tables import MigrationTable

# Bodies go to the driver untouched: no %-interpolation, multi-statement allowed.
_RAW = {"no_parameters": True}


def _is_sql(chunk: str) -> bool:
    """True if *chunk* contains anything besides blank lines, ``--`` comments and ``;``."""
    for line in chunk.splitlines():
        stripped = line.strip()
        if stripped and stripped != ";" and not stripped.startswith("--"):
            return True
    return False


def split_statements(body: str) -> list[str]:
    """Split a SQL script into individual statements.

    Uses :func:`sqlite3.complete_statement` to find statement boundaries,
    so semicolons inside string literals, comments, and trigger bodies do
    not split. Comment-only chunks are dropped.
    """
    statements = []
    current: list[str] = []
    for ch in body:
        current.append(ch)
        if ch == ";" and sqlite3.complete_statement("".join(current)):
            chunk = "".join(current).strip()
            if _is_sql(chunk):
                statements.append(chunk)
            current = []
    tail = "".join(current).strip()
    if _is_sql(tail):
        statements.append(tail)
    return statements


def _to_record(row: MigrationTable) -> MigrationRecord:
    return MigrationRecord(id=row.id, created_at=row.created_at, name=row.name, body=row.body)


class SqlAlchemyMigrationStore:
    """:class:`~schema_spine.core.protocols.MigrationStore` on a SQLAlchemy engine."""

    def __init__(self, engine: Engine, *, logger: Any = None) -> None:
        self._engine = engine
        self._sessions = migrate_session_factory(engine)
        self._log = logger or get_logger(__name__)

    @property
    def engine(self) -> Engine:
        return self._engine

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_connection(self) -> None:
        """Open and close one connection, raising ``ConnectivityError`` on failure."""
        try:
            with self._engine.connect():
                pass
        except SQLAlchemyError as exc:
            raise ConnectivityError(
                "can't connect to database",
                context={"url": self._safe_url()},
                cause=exc,
            ) from exc

    def ensure_table(self) -> bool:
        """Create the ``migrations`` table if it doesn't exist."""
        try:
            if inspect(self._engine).has_table(MigrationTable.__tablename__):
                return False
            MigrationTable.__table__.create(self._engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise StoreError(
                f"can't create {MigrationTable.__tablename__} table",
                context={"url": self._safe_url()},
                cause=exc,
            ) from exc
        self._log.info("migration_table_created", table=MigrationTable.__tablename__)
        return True

    def load_applied(self) -> list[MigrationRecord]:
        """Return applied records ordered by name."""
        try:
            with self._sessions() as session:
                rows = session.scalars(select(MigrationTable).order_by(MigrationTable.name)).all()
        except SQLAlchemyError as exc:
            raise StoreError(
                "can't read applied migrations",
                context={"url": self._safe_url()},
                cause=exc,
            ) from exc
        # Code-point order, as sources use; the database collation may differ.
        return sorted((_to_record(row) for row in rows), key=lambda r: r.name)

    def apply(self, migration: SourceMigration) -> MigrationRecord:
        """Record and execute *migration* in one transaction."""
        name = migration.name
        try:
            conn = self._engine.connect()
        except SQLAlchemyError as exc:
            raise ConnectivityError(
                "can't connect to database",
                context={"url": self._safe_url(), "migration": name},
                cause=exc,
            ) from exc

        with conn:
            try:
                trans = conn.begin()
            except SQLAlchemyError as exc:
                raise ConnectivityError(
                    f"can't begin transaction for migration {name}",
                    context={"migration": name},
                    cause=exc,
                ) from exc

            try:
                statement = insert(MigrationTable).values(name=name, body=migration.body)
                inserted = conn.execute(statement)
                record_id = inserted.inserted_primary_key[0]
            except SQLAlchemyError as exc:
                self._rollback(trans, name)
                raise MigrationRecordError(
                    f"can't record migration {name}",
                    context={"migration": name},
                    cause=exc,
                ) from exc

            try:
                self._execute_body(conn, migration.body)
            except SQLAlchemyError as exc:
                self._rollback(trans, name)
                raise MigrationExecutionError(
                    f"can't execute migration {name}",
                    context={"migration": name},
                    cause=exc,
                ) from exc

            try:
                trans.commit()
            except SQLAlchemyError as exc:
                raise CommitError(
                    f"can't commit migration {name}",
                    context={"migration": name},
                    cause=exc,
                ) from exc

            # Committed: a failed read-back only loses created_at.
            try:
                return self._fetch(conn, name)
            except StoreError as exc:
                self._log.warning(
                    "record_readback_failed", migration=name, error=str(exc.cause or exc)
                )
                return MigrationRecord(id=record_id, created_at=None, name=name, body=migration.body)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _execute_body(self, conn: Connection, body: str) -> None:
        if conn.dialect.name == "sqlite":
            # pysqlite runs one statement per call.
            for statement in split_statements(body):
                conn.exec_driver_sql(statement, execution_options=_RAW)
            return
        if _is_sql(body):
            conn.exec_driver_sql(body, execution_options=_RAW)

    def _fetch(self, conn: Connection, name: str) -> MigrationRecord:
        try:
            row = conn.execute(
                select(MigrationTable.id, MigrationTable.created_at, MigrationTable.body).where(
                    MigrationTable.name == name
                )
            ).one()
        except SQLAlchemyError as exc:
            raise StoreError(
                f"can't read back record of migration {name}",
                context={"migration": name},
                cause=exc,
            ) from exc
        return MigrationRecord(id=row.id, created_at=row.created_at, name=name, body=row.body)

    def _rollback(self, trans: Any, name: str) -> None:
        try:
            trans.rollback()
        except SQLAlchemyError as exc:
            self._log.error("rollback_failed", migration=name, error=str(exc))

    def _safe_url(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)

    def __repr__(self) -> str:
        return f"SqlAlchemyMigrationStore({self._safe_url()!r})"
