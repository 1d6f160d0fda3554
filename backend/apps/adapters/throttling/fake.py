# apps/adapters/throttling/fake.py

"""
In-memory Rate Limiter for testing

Sliding-window log with an injectable clock, so tests can move time
forward without sleeping. Counters live in the process only.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque

from apps.domain.models import RateLimitedError


class FakeRateLimiter:
    """In-process implementation of IRateLimiter"""

    def __init__(
        self,
        max_requests: int = 15,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._accepted: Deque[float] = deque()
        self._lock = threading.Lock()

    def check_and_consume(self) -> None:
        with self._lock:
            now = self._clock()
            self._evict(now)

            if len(self._accepted) >= self.max_requests:
                raise RateLimitedError.after(self._accepted[0] + self.window_seconds - now)

            self._accepted.append(now)

    def remaining(self) -> int:
        with self._lock:
            self._evict(self._clock())
            return self.max_requests - len(self._accepted)

    def reset(self) -> None:
        with self._lock:
            self._accepted.clear()

    def _evict(self, now: float) -> None:
        while self._accepted and now - self._accepted[0] >= self.window_seconds:
            self._accepted.popleft()
