"""
Progress Tracking

- ProgressCounter: monotonic, thread-safe count of completed ports
- ProgressReporter: background thread polling the counter at a fixed interval
"""

import threading
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class ProgressCounter:
    """Completed-port counter shared by all workers of a scan."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        return self._value


def log_progress(done: int, total: int) -> None:
    pct = done * 100.0 / total if total else 100.0
    logger.info(f"Progress: {done}/{total} ({pct:.1f}%)")


class ProgressReporter:
    """Reports scan progress from a daemon thread.

    Only reads the counter; it never takes a lock the workers use.
    """

    def __init__(self, total: int, counter: ProgressCounter, interval: float = 0.5,
                 callback: Optional[Callable[[int, int], None]] = None):
        self.total = total
        self.counter = counter
        self.interval = interval
        self.callback = callback or log_progress
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "ProgressReporter":
        self._thread = threading.Thread(target=self._run, name="progress-reporter", daemon=True)
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop.is_set():
            done = self.counter.value
            self.callback(done, self.total)
            if done >= self.total:
                return
            self._stop.wait(self.interval)

    def stop(self) -> None:
        """Stop polling and emit one final update."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self.callback(self.counter.value, self.total)

    def __enter__(self) -> "ProgressReporter":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
