"""Fixed-window rate limiter — in-memory, per client key.

Not persisted. Resets on restart. Thread-safe via lock, since FastAPI
runs sync endpoints in a thread pool.
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock

log = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    started_at: float


class RateLimiter:
    """Allow `limit` requests per key within each `window_seconds` window."""

    def __init__(self, name: str, limit: int, window_seconds: float = 60.0, clock=time.monotonic):
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._windows: dict[str, _Window] = {}

    def try_acquire(self, key: str) -> bool:
        """Count one request for key. Returns False once the window is full."""
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                self._windows[key] = _Window(1, now)
                return True
            if window.count >= self.limit:
                log.info("Rate limit [%s] hit for %s", self.name, key)
                return False
            window.count += 1
            return True

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
