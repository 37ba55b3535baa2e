# chat/ratelimit.py
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window request counter per client key.

    Handlers run on a thread pool, so the map is guarded by a lock. Expired
    windows are dropped once the map grows past ``max_keys``.
    """

    def __init__(self, limit: int, window_seconds: float, max_keys: int = 10000,
                 clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> bool:
        """Count a request for ``key``; False means it must be refused."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                if window is None and len(self._windows) >= self.max_keys:
                    self._prune(now)
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return True
            if window.count >= self.limit:
                return False
            window.count += 1
            return True

    def prune(self) -> int:
        """Drop expired windows; returns how many were removed."""
        with self._lock:
            return self._prune(self._clock())

    def _prune(self, now: float) -> int:
        stale = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in stale:
            del self._windows[key]
        if stale:
            logger.info(f"Pruned {len(stale)} expired rate limit windows")
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)
