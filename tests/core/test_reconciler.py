"""Tests for migration reconciliation: prefix verification, drift, and ordered apply."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from schema_spine.core.errors import (
    CommitError,
    ConnectivityError,
    MigrationChangedError,
    MigrationExecutionError,
    MigrationOrderError,
    MigrationRemovedError,
    SourceError,
)
from schema_spine.core.migrations import (
    DirectorySource,
    MigrationRecord,
    ReconcileState,
    Reconciler,
    SourceMigration,
    StaticSource,
    verify_prefix,
)

INIT = ("001_init.sql", "CREATE TABLE t(x int);")
ADD = ("002_add.sql", "ALTER TABLE t ADD y int;")
SEED = ("003_seed.sql", "INSERT INTO t (x, y) VALUES (1, 2);")


def _record(i: int, name: str, body: str) -> MigrationRecord:
    return MigrationRecord(id=i, created_at=datetime.now(timezone.utc), name=name, body=body)


def _src(name: str, body: str) -> SourceMigration:
    return SourceMigration(name, body)


class RecordingStore:
    """In-memory store that can be told to fail on a given migration."""

    def __init__(self, applied=(), *, fail_on: str | None = None, error=None):
        self.records = [_record(i + 1, n, b) for i, (n, b) in enumerate(applied)]
        self.attempted: list[str] = []
        self.fail_on = fail_on
        self.error = error or MigrationExecutionError("boom", context={"migration": fail_on})

    def check_connection(self) -> None:
        pass

    def ensure_table(self) -> bool:
        return False

    def load_applied(self) -> list[MigrationRecord]:
        return sorted(self.records, key=lambda r: r.name)

    def apply(self, migration: SourceMigration) -> MigrationRecord:
        self.attempted.append(migration.name)
        if migration.name == self.fail_on:
            raise self.error
        record = _record(len(self.records) + 1, migration.name, migration.body)
        self.records.append(record)
        return record


# ── verify_prefix ────────────────────────────────────────────────────


class TestVerifyPrefix:
    def test_empty_history(self):
        sources = [_src(*INIT), _src(*ADD)]
        assert verify_prefix([], sources) == sources

    def test_returns_remainder(self):
        pending = verify_prefix([_record(1, *INIT)], [_src(*INIT), _src(*ADD)])
        assert pending == [_src(*ADD)]

    def test_fully_applied(self):
        assert verify_prefix([_record(1, *INIT)], [_src(*INIT)]) == []

    def test_removed_past_end(self):
        with pytest.raises(MigrationRemovedError) as exc_info:
            verify_prefix([_record(1, *INIT), _record(2, *ADD)], [_src(*INIT)])
        assert exc_info.value.migration == "002_add.sql"
        assert exc_info.value.code == "MIGRATION_REMOVED"

    def test_removed_from_middle(self):
        with pytest.raises(MigrationRemovedError) as exc_info:
            verify_prefix([_record(1, *INIT), _record(2, *ADD)], [_src(*INIT), _src(*SEED)])
        assert exc_info.value.migration == "002_add.sql"

    def test_new_file_sorted_before_applied(self):
        early = ("000_early.sql", "SELECT 1;")
        with pytest.raises(MigrationOrderError) as exc_info:
            verify_prefix([_record(1, *INIT)], [_src(*early), _src(*INIT)])
        assert exc_info.value.migration == "000_early.sql"
        assert exc_info.value.context["applied_migration"] == "001_init.sql"

    def test_changed_body(self):
        with pytest.raises(MigrationChangedError) as exc_info:
            verify_prefix([_record(1, *INIT)], [_src("001_init.sql", "CREATE TABLE t(y int);")])
        err = exc_info.value
        assert err.migration == "001_init.sql"
        assert err.diff == "CREATE TABLE t((~~x~~)(++y++) int);"
        assert err.context["diff"] == err.diff

    def test_crlf_is_not_drift(self):
        recorded = _record(1, "001_init.sql", "CREATE TABLE t(x int);\r\nSELECT 1;\r\n")
        source = _src("001_init.sql", "CREATE TABLE t(x int);\nSELECT 1;\n")
        assert verify_prefix([recorded], [source]) == []

    def test_trailing_whitespace_is_drift(self):
        with pytest.raises(MigrationChangedError):
            verify_prefix([_record(1, *INIT)], [_src(INIT[0], INIT[1] + "\n")])


# ── Reconciler against a real database ──────────────────────────────


class TestReconcile:
    def test_fresh_database_applies_everything(self, store, table_names):
        report = Reconciler(store, StaticSource([INIT, ADD])).reconcile()

        assert report.applied == ["001_init.sql", "002_add.sql"]
        assert report.already_applied == 0
        assert "t" in table_names()
        assert [r.name for r in store.load_applied()] == ["001_init.sql", "002_add.sql"]

    def test_applies_only_new_suffix(self, store):
        Reconciler(store, StaticSource([INIT])).reconcile()
        before = store.load_applied()

        report = Reconciler(store, StaticSource([INIT, ADD])).reconcile()

        assert report.applied == ["002_add.sql"]
        assert report.already_applied == 1
        after = store.load_applied()
        assert after[0] == before[0]
        assert [r.name for r in after] == ["001_init.sql", "002_add.sql"]

    def test_second_run_is_idempotent(self, store, log_capture, logger):
        Reconciler(store, StaticSource([INIT, ADD]), logger=logger).reconcile()
        records = store.load_applied()

        report = Reconciler(store, StaticSource([INIT, ADD]), logger=logger).reconcile()

        assert report.applied == []
        assert report.up_to_date
        assert store.load_applied() == records
        assert "database_up_to_date" in log_capture.names()

    def test_empty_source_on_empty_database(self, store):
        report = Reconciler(store, StaticSource([])).reconcile()
        assert report.applied == []

    def test_reads_directory_source(self, store, write_migration, migrations_dir):
        write_migration("002_add.sql", ADD[1])
        write_migration("001_init.sql", INIT[1])
        report = Reconciler(store, DirectorySource(migrations_dir)).reconcile()
        assert report.applied == ["001_init.sql", "002_add.sql"]

    def test_crlf_source_after_lf_apply(self, store, write_migration, migrations_dir):
        write_migration("001_init.sql", "CREATE TABLE t(x int);\nSELECT 1;\n")
        Reconciler(store, DirectorySource(migrations_dir)).reconcile()

        write_migration("001_init.sql", "CREATE TABLE t(x int);\r\nSELECT 1;\r\n")
        report = Reconciler(store, DirectorySource(migrations_dir)).reconcile()

        assert report.applied == []
        # the stored body is the one that was executed, not the current file
        assert store.load_applied()[0].body == "CREATE TABLE t(x int);\nSELECT 1;\n"


class TestDriftLeavesNoWrites:
    def _snapshot(self, store, table_names):
        return store.load_applied(), table_names()

    def test_changed(self, store, table_names):
        Reconciler(store, StaticSource([INIT])).reconcile()
        before = self._snapshot(store, table_names)

        reconciler = Reconciler(
            store, StaticSource([("001_init.sql", "CREATE TABLE t(y int);"), ADD])
        )
        with pytest.raises(MigrationChangedError) as exc_info:
            reconciler.reconcile()

        assert exc_info.value.diff == "CREATE TABLE t((~~x~~)(++y++) int);"
        assert reconciler.state is ReconcileState.FAILED
        assert self._snapshot(store, table_names) == before

    def test_removed(self, store, table_names):
        Reconciler(store, StaticSource([INIT, ADD])).reconcile()
        before = self._snapshot(store, table_names)

        with pytest.raises(MigrationRemovedError):
            Reconciler(store, StaticSource([ADD, SEED])).reconcile()

        assert self._snapshot(store, table_names) == before

    def test_out_of_order(self, store, table_names):
        Reconciler(store, StaticSource([INIT])).reconcile()
        before = self._snapshot(store, table_names)

        with pytest.raises(MigrationOrderError):
            early = ("000_first.sql", "CREATE TABLE z(a int);")
            Reconciler(store, StaticSource([early, INIT])).reconcile()

        assert "z" not in table_names()
        assert self._snapshot(store, table_names) == before

    def test_drift_logged_with_code(self, store, logger, log_capture):
        Reconciler(store, StaticSource([INIT]), logger=logger).reconcile()
        with pytest.raises(MigrationChangedError):
            Reconciler(
                store, StaticSource([("001_init.sql", "CREATE TABLE t(y int);")]), logger=logger
            ).reconcile()

        (event,) = [e for e in log_capture.events if e["event"] == "migration_changed"]
        assert event["log.level"] == "error"
        assert event["context"]["diff"] == "CREATE TABLE t((~~x~~)(++y++) int);"


class TestAtomicity:
    def test_failure_stops_the_run(self, store, table_names):
        bad = ("002_bad.sql", "CREATE TABLE half(x int);\nINSERT INTO nowhere VALUES (1);")
        reconciler = Reconciler(store, StaticSource([INIT, bad, SEED]))

        with pytest.raises(MigrationExecutionError) as exc_info:
            reconciler.reconcile()

        assert exc_info.value.context["migration"] == "002_bad.sql"
        assert exc_info.value.context["applied"] == ["001_init.sql"]
        assert reconciler.state is ReconcileState.FAILED
        # earlier migration stays committed, failing one leaves nothing behind
        assert [r.name for r in store.load_applied()] == ["001_init.sql"]
        assert "t" in table_names()
        assert "half" not in table_names()

    def test_rerun_after_fix(self, store):
        bad = ("002_add.sql", "ALTER TABLE nowhere ADD y int;")
        with pytest.raises(MigrationExecutionError):
            Reconciler(store, StaticSource([INIT, bad])).reconcile()

        report = Reconciler(store, StaticSource([INIT, ADD])).reconcile()
        assert report.applied == ["002_add.sql"]

    def test_nothing_after_failure_attempted(self):
        store = RecordingStore([INIT], fail_on="002_add.sql")
        with pytest.raises(MigrationExecutionError):
            Reconciler(store, StaticSource([INIT, ADD, SEED])).reconcile()
        assert store.attempted == ["002_add.sql"]

    def test_commit_failure_propagates(self):
        error = CommitError("can't commit migration 001_init.sql")
        store = RecordingStore(fail_on="001_init.sql", error=error)
        with pytest.raises(CommitError) as exc_info:
            Reconciler(store, StaticSource([INIT, ADD])).reconcile()
        assert exc_info.value.context["applied"] == []
        assert store.attempted == ["001_init.sql"]


class TestStates:
    def test_successful_run_ends_done(self, store, logger, log_capture):
        reconciler = Reconciler(store, StaticSource([INIT]), logger=logger)
        assert reconciler.state is ReconcileState.LOADING

        reconciler.reconcile()

        assert reconciler.state is ReconcileState.DONE
        states = [e["state"] for e in log_capture.events if e["event"] == "reconcile_state"]
        assert states == ["loading", "verifying", "applying", "done"]

    def test_up_to_date_skips_applying(self, store, logger, log_capture):
        Reconciler(store, StaticSource([INIT])).reconcile()
        Reconciler(store, StaticSource([INIT]), logger=logger).reconcile()
        states = [e["state"] for e in log_capture.events if e["event"] == "reconcile_state"]
        assert states == ["loading", "verifying", "done"]

    def test_source_error_fails_while_loading(self, store, tmp_path):
        reconciler = Reconciler(store, DirectorySource(tmp_path / "absent"))
        with pytest.raises(SourceError):
            reconciler.reconcile()
        assert reconciler.state is ReconcileState.FAILED

    def test_store_error_propagates(self):
        class DownStore(RecordingStore):
            def ensure_table(self) -> bool:
                raise ConnectivityError("can't connect to database")

        reconciler = Reconciler(DownStore(), StaticSource([INIT]))
        with pytest.raises(ConnectivityError):
            reconciler.reconcile()
        assert reconciler.state is ReconcileState.FAILED


class TestPlan:
    def test_plan_does_not_apply(self, store, table_names):
        Reconciler(store, StaticSource([INIT])).reconcile()

        plan = Reconciler(store, StaticSource([INIT, ADD, SEED])).plan()

        assert plan.pending_names == ["002_add.sql", "003_seed.sql"]
        assert [r.name for r in plan.applied] == ["001_init.sql"]
        assert not plan.up_to_date
        assert [r.name for r in store.load_applied()] == ["001_init.sql"]

    def test_plan_detects_drift(self, store):
        Reconciler(store, StaticSource([INIT])).reconcile()
        with pytest.raises(MigrationChangedError):
            Reconciler(store, StaticSource([("001_init.sql", "SELECT 1;")])).plan()
