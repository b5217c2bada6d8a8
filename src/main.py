"""Run the SQLite insert smoke test.

Run:
  python -m src.main --insertCount 1000 --sleepWait 2
"""
from __future__ import annotations

import logging
import signal
import sys
from typing import Optional, Sequence

from .iotest import CycleDriver, MetricsServer, RunContext, SetupError, parse_args
from .observability import configure_logging

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = parse_args(argv)
    configure_logging(getattr(logging, config.log_level, logging.INFO))

    context = RunContext(config)
    server = MetricsServer(context)
    if not server.start():
        logger.error("continuing without metrics endpoint")

    driver = CycleDriver(context)

    def _terminate(signum, frame):
        logger.info("signal %s received; stopping after current cycle", signum)
        driver.stop()

    previous = None
    try:
        previous = signal.signal(signal.SIGTERM, _terminate)
    except ValueError:
        # signal handlers can only be installed from the main thread
        pass

    try:
        driver.run(max_cycles=config.cycles or None)
    except SetupError:
        logger.exception("fatal setup error")
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
    finally:
        server.stop()
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
    return 0


if __name__ == "__main__":
    sys.exit(main())
