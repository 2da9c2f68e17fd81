#!filepath: lendrelay/relay/rate_limit.py
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict


class RateLimiter:
    """
    Sliding-window limiter keyed by caller origin.

    ``limit`` requests per ``window`` seconds; the request that would be
    number limit+1 inside the window is refused. Origins with nothing left
    inside the window are dropped once per window.
    """

    def __init__(self, limit: int = 100, window: int = 15 * 60, clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window = window
        self.clock = clock
        self._records: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def allow(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(now)
            bucket = self._records.setdefault(key, deque())
            while bucket and now - bucket[0] >= self.window:
                bucket.popleft()
            if len(bucket) >= self.limit:
                return False
            bucket.append(now)
            return True

    def retry_after(self, key: str) -> int:
        with self._lock:
            bucket = self._records.get(key)
            if not bucket:
                return 0
            return max(0, int(bucket[0] + self.window - self.clock()) + 1)

    def tracked(self) -> int:
        with self._lock:
            return len(self._records)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    def _sweep(self, now: float) -> None:
        # newest entry already left the window
        stale = [key for key, bucket in self._records.items() if not bucket or now - bucket[-1] >= self.window]
        for key in stale:
            del self._records[key]
        self._last_sweep = now
