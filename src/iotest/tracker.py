from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict

from .counter import AtomicCounter

logger = logging.getLogger(__name__)

METRIC_PREFIX = "iometrics_sqllite"


class TestTracker:
    """Aggregates the outcome of insert attempts.

    Many insert threads write into one tracker. Counters are individually
    thread-safe; the failure-message mapping and the counter swap done by
    reset() share a single lock.

    The mapping keeps one entry per distinct error text for the life of the
    process, so it grows without bound if error messages carry unique data.
    """

    __test__ = False  # not a pytest test class

    def __init__(self):
        self.lock = Lock()
        self.passed = AtomicCounter()
        self.failed = AtomicCounter()
        self.first_failure_seen = 0
        self.failure_messages: Dict[str, int] = {}
        self.reset_count = 0

    def record_pass(self) -> None:
        self.passed.increment()

    def record_failure(self, message: str) -> None:
        with self.lock:
            self.failure_messages[message] = self.failure_messages.get(message, 0) + 1
            self.failed.increment()

    def reset(self) -> int:
        """Zero both counters and forget all failure messages.

        Returns the new reset count.
        """
        with self.lock:
            self.passed = AtomicCounter()
            self.failed = AtomicCounter()
            self.failure_messages = {}
            self.reset_count += 1
            logger.info("tracker reset (reset count %d)", self.reset_count)
            return self.reset_count

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "pass": self.passed.get(),
                "fail": self.failed.get(),
                "firstFailure": self.first_failure_seen,
                "resetCount": self.reset_count,
                "failureReasons": dict(self.failure_messages),
            }

    def report(self) -> None:
        snap = self.snapshot()
        logger.info("pass %d", snap["pass"])
        logger.info("fail %d", snap["fail"])
        logger.info("first failure %d", snap["firstFailure"])
        logger.info("failure reasons %s", snap["failureReasons"])

    def render_metric(self, insert_count: int, insert_wait: int, sleep_wait: int) -> str:
        """Render pass/fail counts as Prometheus text exposition lines.

        Both lines carry the run parameters as labels, e.g.::

            iometrics_sqllite_pass{insertCount="10000",insertWait="10",sleepWait="10"} 42
        """
        labels = f'insertCount="{insert_count}",insertWait="{insert_wait}",sleepWait="{sleep_wait}"'
        with self.lock:
            passed, failed = self.passed.get(), self.failed.get()
        return (
            f"{METRIC_PREFIX}_pass{{{labels}}} {passed}\n"
            f"{METRIC_PREFIX}_fail{{{labels}}} {failed}\n"
        )
