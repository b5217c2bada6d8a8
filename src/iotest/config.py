from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .tracker import TestTracker

DEFAULT_DB_PATH = os.environ.get("IOTEST_DB_PATH", "sqlite-database.db")
DEFAULT_LOG_LEVEL = os.environ.get("IOTEST_LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class RunConfig:
    recovery: bool = True
    cleanup: bool = True
    insert_wait_ms: int = 10
    sleep_wait_s: int = 10
    insert_count: int = 10000
    metrics_address: str = ":8080"
    db_path: str = DEFAULT_DB_PATH
    workers: int = 16
    cycles: int = 0  # 0 runs forever
    exact_insert_count: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def attempts_per_cycle(self) -> int:
        # Historical behaviour issues one insert fewer than requested.
        if self.exact_insert_count:
            return max(self.insert_count, 0)
        return max(self.insert_count - 1, 0)


@dataclass
class RunContext:
    """Everything a running harness shares: the frozen config and the tracker."""

    config: RunConfig
    tracker: TestTracker = field(default_factory=TestTracker)


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` into its parts; an empty host means all interfaces.

    >>> parse_listen_address(":8080")
    ('0.0.0.0', 8080)
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        host, port = "", address
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"invalid metrics address {address!r}") from None
    if not 0 <= port_num <= 65535:
        raise ValueError(f"metrics port out of range: {port_num}")
    return host or "0.0.0.0", port_num


def _non_negative(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Repeatedly create, load, sample and drop a SQLite table while exporting pass/fail metrics."
    )
    parser.add_argument("--recovery", action=argparse.BooleanOptionalAction, default=True,
                        help="remove database file before run.")
    parser.add_argument("--cleanup", action=argparse.BooleanOptionalAction, default=True,
                        help="cleanup database between insert sample")
    parser.add_argument("--insert-wait", "--insertWait", dest="insert_wait_ms", type=_non_negative, default=10,
                        help="wait time between inserts in millisecond.")
    parser.add_argument("--sleep-wait", "--sleepWait", dest="sleep_wait_s", type=_non_negative, default=10,
                        help="wait time for inserts to complete in seconds.")
    parser.add_argument("--insert-count", "--insertCount", dest="insert_count", type=_non_negative, default=10000,
                        help="how many uuids to insert into the SQLite database.")
    parser.add_argument("--metrics-port", "--metricsPort", dest="metrics_address", default=":8080",
                        help="TCP address for metrics server to run from (host:port).")
    parser.add_argument("--db-path", default=DEFAULT_DB_PATH,
                        help="database file path (env IOTEST_DB_PATH).")
    parser.add_argument("--workers", type=int, default=16,
                        help="insert worker threads.")
    parser.add_argument("--cycles", type=_non_negative, default=0,
                        help="stop after this many cycles; 0 runs forever.")
    parser.add_argument("--exact-insert-count", action="store_true",
                        help="issue exactly --insert-count inserts per cycle instead of one fewer.")
    parser.add_argument("--log-level", default=DEFAULT_LOG_LEVEL,
                        help="logging level (env IOTEST_LOG_LEVEL).")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> RunConfig:
    parser = build_parser()
    ns = parser.parse_args(argv)
    if ns.workers < 1:
        parser.error("--workers must be >= 1")
    try:
        parse_listen_address(ns.metrics_address)
    except ValueError as e:
        parser.error(str(e))
    return RunConfig(
        recovery=ns.recovery,
        cleanup=ns.cleanup,
        insert_wait_ms=ns.insert_wait_ms,
        sleep_wait_s=ns.sleep_wait_s,
        insert_count=ns.insert_count,
        metrics_address=ns.metrics_address,
        db_path=ns.db_path,
        workers=ns.workers,
        cycles=ns.cycles,
        exact_insert_count=ns.exact_insert_count,
        log_level=ns.log_level.upper(),
    )
