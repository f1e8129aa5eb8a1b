from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker


def create_migrate_engine(
    url: str | URL,
    *,
    echo: bool = False,
    **kwargs: Any,
) -> Engine:
    """Create the SQLAlchemy engine a migration run talks through.

    Parameters
    ----------
    url:
        Database URL (``postgresql+psycopg://…``, ``sqlite:///…``).
    echo:
        If ``True``, log all SQL to stdout.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.

    SQLite engines get explicit ``BEGIN`` handling: pysqlite otherwise
    defers the transaction until the first DML statement, which would leave
    DDL in a migration body outside the migration's transaction.
    """
    if make_url(url).get_backend_name() == "sqlite":
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            # Hand transaction control to SQLAlchemy.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _do_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

        return engine

    kwargs.setdefault("pool_pre_ping", True)
    return _sa_create_engine(url, echo=echo, **kwargs)


class MigrateSession(Session):
    """Session with ``expire_on_commit=False`` so records stay readable after commit."""

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def migrate_session_factory(engine: Engine) -> sessionmaker[MigrateSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``MigrateSession`` instances."""
    return sessionmaker(bind=engine, class_=MigrateSession)
