"""Per-caller sliding-window request quota."""

import itertools
import threading
import time
from collections import deque
from typing import Callable


class _Bucket:
    __slots__ = ("lock", "hits", "dead")

    def __init__(self):
        self.lock = threading.Lock()
        self.hits: deque[float] = deque()
        self.dead = False


class SlidingWindowRateLimiter:
    """Allow at most `max_requests` hits per key within any `window_seconds` span.

    Each key has its own lock, so callers never wait on one another; the
    registry lock is only held while a key's bucket is looked up or while
    idle buckets are pruned. Pruning runs every `prune_every` hits and drops
    callers with no hits left in the window.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        prune_every: int = 1000,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prune_every = prune_every
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._registry_lock = threading.Lock()
        self._hit_counter = itertools.count(1)

    def __len__(self) -> int:
        """Number of callers currently tracked."""
        with self._registry_lock:
            return len(self._buckets)

    def _bucket(self, key: str) -> _Bucket:
        with self._registry_lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket()
                self._buckets[key] = bucket
            return bucket

    def _evict(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def hit(self, key: str) -> bool:
        """Record a request for `key`. Returns False if it is over quota (not recorded)."""
        while True:
            bucket = self._bucket(key)
            now = self._clock()
            with bucket.lock:
                # Pruned between lookup and lock; fetch the replacement
                if bucket.dead:
                    continue
                self._evict(bucket.hits, now)
                allowed = len(bucket.hits) < self.max_requests
                if allowed:
                    bucket.hits.append(now)
            break

        if next(self._hit_counter) % self.prune_every == 0:
            self.prune()
        return allowed

    def remaining(self, key: str) -> int:
        with self._registry_lock:
            bucket = self._buckets.get(key)
        if bucket is None:
            return self.max_requests
        with bucket.lock:
            self._evict(bucket.hits, self._clock())
            return max(self.max_requests - len(bucket.hits), 0)

    def prune(self) -> int:
        """Forget callers whose hits have all left the window. Returns how many were dropped."""
        now = self._clock()
        dropped = 0
        with self._registry_lock:
            for key, bucket in list(self._buckets.items()):
                with bucket.lock:
                    self._evict(bucket.hits, now)
                    if bucket.hits:
                        continue
                    bucket.dead = True
                del self._buckets[key]
                dropped += 1
        return dropped
