"""Fixed-window, in-memory rate limiter keyed by an arbitrary string (usually client IP)."""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    expires_at: float


class RateLimiter:
    """
    Counts calls per key in a fixed window that starts at the first call.

    The clock is injectable so tests can move time forward.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int = 5, window_seconds: float = 60.0) -> bool:
        """Record one call for `key`; return False once `limit` calls were made in the window."""
        now = self._clock()
        with self._lock:
            record = self._windows.get(key)
            if record is None or record.expires_at < now:
                self._windows[key] = _Window(count=1, expires_at=now + window_seconds)
                return True
            if record.count >= limit:
                return False
            record.count += 1
            return True

    def sweep(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, w in self._windows.items() if w.expires_at < now]
            for key in expired:
                del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Sweep forever every `interval_seconds`; cancel the task to stop."""
        while True:
            await asyncio.sleep(interval_seconds)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limiter sweep", extra={"removed": removed})


login_limiter = RateLimiter()
