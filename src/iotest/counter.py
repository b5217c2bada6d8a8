from threading import Lock


class AtomicCounter:
    """Monotonically increasing counter safe for concurrent callers"""

    def __init__(self):
        self._value = 0
        self._lock = Lock()

    def increment(self) -> int:
        """Add one and return the new value"""
        with self._lock:
            self._value += 1
            return self._value

    def get(self) -> int:
        with self._lock:
            return self._value
