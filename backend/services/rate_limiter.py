import collections
import math
import threading
import time
from typing import Callable, Deque, Dict, NamedTuple


class RateLimitState(NamedTuple):
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the oldest counted hit leaves the window


class SlidingWindowLimiter:
    """
    Per-key sliding window log.

    Each key keeps the timestamps of its admitted hits inside the trailing
    window. Checking and recording happen under one lock, so concurrent
    bursts from the same client cannot both slip under the limit.
    Rejected hits are not recorded.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = int(limit)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitState:
        with self._lock:
            now = self._clock()
            hits = self._prune(key, now)

            allowed = len(hits) < self.limit
            if allowed:
                hits.append(now)
                self._hits[key] = hits

            reset_after = 0
            if hits:
                reset_after = math.ceil(hits[0] + self.window_seconds - now)

            return RateLimitState(
                allowed=allowed,
                limit=self.limit,
                remaining=max(self.limit - len(hits), 0),
                reset_after=max(reset_after, 0),
            )

    def _prune(self, key: str, now: float) -> Deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return collections.deque()
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            # keep the table from growing with one-off clients
            del self._hits[key]
        return hits

    def __len__(self) -> int:
        return len(self._hits)
