from __future__ import annotations

import threading
import time
from typing import Callable


class FixedWindowRateLimiter:
    """Counts hits per key inside fixed windows of `window_s` seconds."""

    def __init__(
        self,
        max_requests: int,
        window_s: float,
        clock: Callable[[], float] = time.monotonic,
        *,
        prune_threshold: int = 10_000,
    ) -> None:
        self.max_requests = max_requests
        self.window_s = window_s
        self.prune_threshold = prune_threshold
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_prune = clock()
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Record one request for `key`; False once the window's budget is spent."""
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_s:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            # full scans are bounded to one per window
            if len(self._windows) > self.prune_threshold and now - self._last_prune >= self.window_s:
                self._prune(now)
            return count <= self.max_requests

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_prune = self._clock()

    def _prune(self, now: float) -> None:
        self._last_prune = now
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_s]
        for key in expired:
            del self._windows[key]
