"""Simple in-memory rate limiting utilities."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict


@dataclass
class _Bucket:
    timestamps: Deque[float]


class InMemoryRateLimiter:
    """Sliding-window rate limiter suitable for single-node deployments."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buckets: Dict[str, _Bucket] = {}
        self._last_eviction = 0.0

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _prune(self, key: str, cutoff: float) -> Deque[float]:
        bucket = self._buckets.get(key)
        if bucket is None:
            return deque()
        while bucket.timestamps and bucket.timestamps[0] < cutoff:
            bucket.timestamps.popleft()
        if not bucket.timestamps:
            del self._buckets[key]
        return bucket.timestamps

    def _evict_idle(self, now: float, window_seconds: int) -> None:
        # At most one full scan per window; drops keys with no hits left in it.
        if now - self._last_eviction < window_seconds:
            return
        self._last_eviction = now
        cutoff = now - window_seconds
        for key in [k for k, b in self._buckets.items() if not b.timestamps or b.timestamps[-1] < cutoff]:
            del self._buckets[key]

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = time.time()

        with self._lock:
            self._evict_idle(now, window_seconds)
            timestamps = self._prune(key, now - window_seconds)
            if len(timestamps) >= limit:
                return False

            bucket = self._buckets.setdefault(key, _Bucket(timestamps=timestamps))
            bucket.timestamps.append(now)
            return True

    def remaining(self, key: str, limit: int, window_seconds: int) -> int:
        now = time.time()
        with self._lock:
            timestamps = self._prune(key, now - window_seconds)
            return max(0, limit - len(timestamps))

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._last_eviction = 0.0


rate_limiter = InMemoryRateLimiter()
