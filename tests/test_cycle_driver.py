import logging
import sqlite3
import threading
import time

import pytest

import src.dao as dao_mod
import src.iotest.driver as driver_mod
from src.iotest.config import RunConfig, RunContext
from src.iotest.driver import CycleDriver, CycleState, SetupError


def make_driver(tmp_path, **overrides):
    params = dict(
        db_path=str(tmp_path / "sqlite-database.db"),
        insert_count=5,
        insert_wait_ms=0,
        sleep_wait_s=0,
        workers=4,
    )
    params.update(overrides)
    return CycleDriver(RunContext(RunConfig(**params)))


def test_single_cycle_issues_one_fewer_insert(tmp_path):
    driver = make_driver(tmp_path)

    assert driver.run(max_cycles=1) == 1

    snap = driver.context.tracker.snapshot()
    assert snap["pass"] == 4
    assert snap["fail"] == 0
    assert snap["failureReasons"] == {}
    assert driver.state == CycleState.TORN_DOWN


def test_exact_insert_count(tmp_path):
    driver = make_driver(tmp_path, exact_insert_count=True)
    driver.run(max_cycles=1)
    assert driver.context.tracker.snapshot()["pass"] == 5


def test_counters_accumulate_across_cycles(tmp_path):
    driver = make_driver(tmp_path, insert_count=3)
    assert driver.run(max_cycles=3) == 3
    assert driver.context.tracker.snapshot()["pass"] == 6


def test_table_is_dropped_after_cycle(tmp_path):
    driver = make_driver(tmp_path, cleanup=False)
    driver.run(max_cycles=1)

    conn = sqlite3.connect(driver.config.db_path)
    tables = conn.execute("SELECT name FROM sqlite_master WHERE name = 'testdata'").fetchall()
    conn.close()
    assert tables == []


def test_sample_rows_are_logged(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="src.iotest.driver")
    driver = make_driver(tmp_path, insert_count=13)
    driver.run(max_cycles=1)

    sample_lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("test: ")]
    assert len(sample_lines) == 10


def test_injected_failures_collapse_to_one_key(tmp_path, monkeypatch):
    def broken_insert(conn, text1, text2):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(driver_mod, "insert_test_row", broken_insert)
    driver = make_driver(tmp_path, insert_count=9)
    driver.run(max_cycles=1)

    snap = driver.context.tracker.snapshot()
    assert snap["pass"] == 0
    assert snap["fail"] == 8
    assert snap["failureReasons"] == {"disk I/O error": 8}


def test_driver_waits_for_slow_inserts(tmp_path, monkeypatch):
    real_insert = driver_mod.insert_test_row

    def slow_insert(conn, text1, text2):
        time.sleep(0.2)
        return real_insert(conn, text1, text2)

    monkeypatch.setattr(driver_mod, "insert_test_row", slow_insert)
    driver = make_driver(tmp_path, insert_count=7, workers=2)
    driver.run(max_cycles=1)

    snap = driver.context.tracker.snapshot()
    assert snap["pass"] + snap["fail"] == 6
    assert snap["fail"] == 0


def test_schema_failure_is_fatal(tmp_path, monkeypatch):
    def no_schema(conn):
        raise sqlite3.OperationalError("table testdata already exists")

    monkeypatch.setattr(driver_mod, "create_table", no_schema)
    driver = make_driver(tmp_path)

    with pytest.raises(SetupError) as info:
        driver.run(max_cycles=1)
    assert "create table failed" in str(info.value)
    assert isinstance(info.value.__cause__, sqlite3.OperationalError)
    assert driver.cycles_completed == 0


def test_unwritable_database_path_is_fatal(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    driver = make_driver(tmp_path, db_path=str(blocker / "db.sqlite"))

    with pytest.raises(SetupError):
        driver.run(max_cycles=1)


def test_recovery_and_cleanup_delete_existing_file(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="src.dao")
    driver = make_driver(tmp_path, insert_count=1)

    driver.run(max_cycles=1)

    # nothing to remove at start: once for recovery, once for cleanup
    assert caplog.text.count("no database file present.") == 2


def test_stop_before_run_skips_cycles(tmp_path):
    driver = make_driver(tmp_path)
    driver.stop()
    assert driver.run() == 0


def test_stop_during_settle_ends_after_current_cycle(tmp_path):
    driver = make_driver(tmp_path, sleep_wait_s=30)
    timer = threading.Timer(0.5, driver.stop)
    timer.start()
    started = time.monotonic()
    try:
        cycles = driver.run()
    finally:
        timer.cancel()

    assert cycles == 1
    assert time.monotonic() - started < 10
    assert driver.context.tracker.snapshot()["pass"] == 4


def test_stop_during_pacing_cuts_inserts_short(tmp_path):
    driver = make_driver(tmp_path, insert_count=1000, insert_wait_ms=100)
    timer = threading.Timer(0.5, driver.stop)
    timer.start()
    try:
        cycles = driver.run()
    finally:
        timer.cancel()

    snap = driver.context.tracker.snapshot()
    assert cycles == 1
    assert 0 < snap["pass"] < 999
    assert snap["fail"] == 0


def test_unexpected_insert_exception_counts_as_failure(tmp_path, monkeypatch):
    def bad_insert(conn, text1, text2):
        raise ValueError("bad")

    monkeypatch.setattr(driver_mod, "insert_test_row", bad_insert)
    driver = make_driver(tmp_path, insert_count=4)
    driver.run(max_cycles=1)

    snap = driver.context.tracker.snapshot()
    assert snap["pass"] == 0
    assert snap["fail"] == 3
    assert snap["failureReasons"] == {"ValueError('bad')": 3}


def test_removal_errors_are_not_fatal(tmp_path, monkeypatch, caplog):
    caplog.set_level(logging.WARNING, logger="src.dao")

    def denied(path):
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr(dao_mod.os, "remove", denied)
    driver = make_driver(tmp_path)

    assert driver.run(max_cycles=1) == 1
    assert driver.context.tracker.snapshot()["pass"] == 4
    assert "could not remove database file" in caplog.text
