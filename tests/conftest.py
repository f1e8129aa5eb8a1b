"""
Shared pytest fixtures and configuration for schema-spine tests.

This module provides:
- File-backed SQLite engines and migration stores
- Captured structured loggers
- Temporary migration directories and config files

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments (pytest injects them automatically).

    def test_something(store, migrations_dir):
        ...
"""

import io
import json
import sys
import textwrap
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Ensure schema_spine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import Engine, inspect, text

from schema_spine.core.logging import make_logger
from schema_spine.core.migrations import SqlAlchemyMigrationStore
from schema_spine.core.orm import create_migrate_engine


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.path).relative_to(Path(__file__).parent)

        # CLI tests drive the whole stack end to end
        if "cli" in test_path.parts:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Logging
# =============================================================================


class LogCapture:
    """JSON log lines written by a ``make_logger`` handle."""

    def __init__(self) -> None:
        self.stream = io.StringIO()

    @property
    def events(self) -> list[dict]:
        return [json.loads(line) for line in self.stream.getvalue().splitlines() if line.strip()]

    def names(self) -> list[str]:
        return [event["event"] for event in self.events]


@pytest.fixture
def log_capture() -> LogCapture:
    return LogCapture()


@pytest.fixture
def logger(log_capture: LogCapture):
    """DEBUG-level JSON logger writing into ``log_capture``."""
    return make_logger("DEBUG", json_format=True, stream=log_capture.stream)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "target.db"


@pytest.fixture
def db_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


@pytest.fixture
def engine(db_url: str) -> Generator[Engine, None, None]:
    """File-backed SQLite engine with transactional DDL."""
    eng = create_migrate_engine(db_url)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine: Engine, logger) -> SqlAlchemyMigrationStore:
    return SqlAlchemyMigrationStore(engine, logger=logger)


@pytest.fixture
def table_names(engine: Engine) -> Callable[[], set[str]]:
    """Return the current table names of the test database."""

    def _names() -> set[str]:
        return set(inspect(engine).get_table_names())

    return _names


@pytest.fixture
def scalar(engine: Engine) -> Callable[[str], object]:
    """Run a read-only query and return the first column of the first row."""

    def _scalar(sql: str) -> object:
        with engine.connect() as conn:
            return conn.execute(text(sql)).scalar()

    return _scalar


# =============================================================================
# Migration files / config
# =============================================================================


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    d = tmp_path / "migrations"
    d.mkdir()
    return d


@pytest.fixture
def write_migration(migrations_dir: Path) -> Callable[[str, str], Path]:
    """Write ``name`` with ``body`` into the migrations directory (raw bytes, no newline translation)."""

    def _write(name: str, body: str) -> Path:
        path = migrations_dir / name
        path.write_bytes(body.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def config_file(tmp_path: Path, db_url: str) -> Path:
    """Config file pointing at the SQLite test database and ``./migrations``."""
    path = tmp_path / "config.yaml"
    path.write_text(
        textwrap.dedent(f"""\
            log_level: error
            log_format: json
            migrations_dir: migrations
            database:
              name: app
              host: localhost
              port: 5432
              user: app
              password: secret
              url: {db_url}
        """),
        encoding="utf-8",
    )
    return path
