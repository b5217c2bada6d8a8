"""SQLite insert smoke test - counters, cycle driver and metrics endpoint"""

from .counter import AtomicCounter
from .tracker import TestTracker
from .config import RunConfig, RunContext, parse_args
from .driver import CycleDriver, CycleState, SetupError
from .metrics_server import MetricsServer, create_app

__all__ = [
    'AtomicCounter',
    'TestTracker',
    'RunConfig',
    'RunContext',
    'parse_args',
    'CycleDriver',
    'CycleState',
    'SetupError',
    'MetricsServer',
    'create_app',
]
