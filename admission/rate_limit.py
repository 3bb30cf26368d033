"""In-process sliding-window request budget, keyed by (scope, client identifier)."""

import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Tuple

from admission.config import RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW_SECONDS
from admission.errors import RateLimitedError

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key.

    Rejected requests are not recorded, so a client that keeps hammering
    does not push its own window further out. Keys whose hits have all aged
    out are dropped, at most once per window.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[Tuple[str, str], Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def hit(self, scope: str, client_id: str) -> None:
        """Record one request or raise RateLimitedError if the budget is spent."""
        key = (scope, client_id)
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            self._sweep(now, cutoff)
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.max_requests:
                retry_after = max(1, math.ceil(hits[0] + self.window_seconds - now))
                logger.warning("Rate limit exceeded for scope=%s client=%s", scope, client_id)
                raise RateLimitedError(retry_after=retry_after)
            hits.append(now)

    def _sweep(self, now: float, cutoff: float) -> None:
        # Caller holds the lock
        if now - self._last_sweep < self.window_seconds:
            return
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = self._clock()


limiter = SlidingWindowRateLimiter()
