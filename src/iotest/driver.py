"""Create / load / sample / drop cycle against a throwaway SQLite database.

One cycle walks the states in CycleState order. Setup steps (file, schema,
sample, drop) raise SetupError; individual insert failures are only counted
in the tracker.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import List, Optional

from ..dao import (
    create_db_file,
    create_table,
    drop_table,
    fetch_sample,
    get_connection,
    insert_test_row,
    remove_db_file,
)
from .config import RunContext

logger = logging.getLogger(__name__)

SAMPLE_LIMIT = 10


class CycleState(Enum):
    INITIALIZING = "initializing"
    SCHEMA_READY = "schema_ready"
    INSERTING = "inserting"
    SETTLING = "settling"
    SAMPLING = "sampling"
    TORN_DOWN = "torn_down"


class SetupError(Exception):
    """Raised when the database cannot be prepared, sampled or torn down"""


class CycleDriver:
    def __init__(self, context: RunContext):
        self.context = context
        self.state = CycleState.INITIALIZING
        self.cycles_completed = 0
        self._stop = threading.Event()

    @property
    def config(self):
        return self.context.config

    def stop(self) -> None:
        """Interrupt any pause and end the loop after the current cycle."""
        self._stop.set()

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Run cycles until stopped or until max_cycles have completed.

        Returns the number of completed cycles.
        """
        if self.config.recovery:
            remove_db_file(self.config.db_path)
        while not self._stop.is_set():
            self.run_cycle()
            if max_cycles and self.cycles_completed >= max_cycles:
                break
        return self.cycles_completed

    def run_cycle(self) -> None:
        self._enter(CycleState.INITIALIZING)
        conn = self._open_database()
        try:
            self._enter(CycleState.SCHEMA_READY)
            self._setup_step("create table", create_table, conn)

            self._enter(CycleState.INSERTING)
            pending = self._launch_inserts(conn)

            self._enter(CycleState.SETTLING)
            self._settle(pending)

            self._enter(CycleState.SAMPLING)
            logger.info("Display")
            rows = self._setup_step("sample query", fetch_sample, conn, SAMPLE_LIMIT)
            for row_id, text1, text2 in rows:
                logger.info("test: %s %s %s", row_id, text1, text2)

            self._enter(CycleState.TORN_DOWN)
            self._setup_step("drop table", drop_table, conn)
        finally:
            conn.close()
        self.context.tracker.report()
        self.cycles_completed += 1

    def insert_attempt(self, conn: sqlite3.Connection) -> None:
        """One insert of two fresh uuids; the outcome lands in the tracker."""
        tracker = self.context.tracker
        try:
            insert_test_row(conn, str(uuid.uuid4()), str(uuid.uuid4()))
        except sqlite3.Error as e:
            tracker.record_failure(str(e))
            return
        tracker.record_pass()

    def _enter(self, state: CycleState) -> None:
        self.state = state
        logger.debug("cycle %d -> %s", self.cycles_completed + 1, state.value)

    def _open_database(self) -> sqlite3.Connection:
        db_path = self.config.db_path
        if self.config.cleanup:
            remove_db_file(db_path)
        try:
            create_db_file(db_path)
            return get_connection(db_path)
        except (OSError, sqlite3.Error) as e:
            raise SetupError(f"cannot create database {db_path}: {e}") from e

    def _setup_step(self, what: str, func, *args):
        try:
            return func(*args)
        except sqlite3.Error as e:
            raise SetupError(f"{what} failed: {e}") from e

    def _launch_inserts(self, conn: sqlite3.Connection) -> List[Future]:
        attempts = self.config.attempts_per_cycle
        pause = self.config.insert_wait_ms / 1000.0
        logger.info("Starting inserts.")
        pending: List[Future] = []
        executor = ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix="insert")
        try:
            for _ in range(attempts):
                pending.append(executor.submit(self.insert_attempt, conn))
                if pause and self._stop.wait(pause):
                    break
        finally:
            # queued attempts still run; the futures are the completion barrier
            executor.shutdown(wait=False)
        return pending

    def _settle(self, pending: List[Future]) -> None:
        logger.info("Starting sleep.")
        self._stop.wait(self.config.sleep_wait_s)
        done, not_done = wait(pending, timeout=0)
        if not_done:
            logger.warning("%d inserts still running after settle time; waiting for them", len(not_done))
            wait(not_done)
        for fut in done | not_done:
            # insert_attempt only swallows sqlite3.Error
            exc = fut.exception()
            if exc is not None:
                logger.error("insert attempt crashed: %r", exc)
                self.context.tracker.record_failure(repr(exc))
