# apps/adapters/throttling/drf_throttle.py

"""
Cache-backed Rate Limiter

Implements IRateLimiter on Django REST Framework's SimpleRateThrottle.
Request history lives in the Django cache under one fixed key, so every
worker process draws from the same assistant budget.
"""

import logging
import threading
from typing import Optional

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle

from apps.domain.models import RateLimitedError
from apps.infrastructure.rate_limit import get_rate_limit_config

logger = logging.getLogger(__name__)


class AssistantRateThrottle(SimpleRateThrottle):
    """
    Throttle for model calls made by the assistant

    The budget is global rather than per client: the cache key does not
    depend on the request.
    """

    scope = "assistant"

    def __init__(self, rate: Optional[str] = None):
        config = get_rate_limit_config(settings.ENVIRONMENT)
        self.rate = rate or config.get("assistant_rate", "15/min")
        super().__init__()

    def get_cache_key(self, request, view):
        return self.cache_format % {"scope": self.scope, "ident": "global"}

    def current_history(self):
        """Accepted request times still inside the window, newest first"""
        now = self.timer()
        history = self.cache.get(self.get_cache_key(None, None), [])
        return [t for t in history if t > now - self.duration]


class CacheRateLimiter:
    """
    IRateLimiter backed by AssistantRateThrottle

    Thread-safe within a process. Across processes the shared cache is
    the source of truth.
    """

    def __init__(self, rate: Optional[str] = None, enabled: bool = True, throttle=None):
        """
        Args:
            rate: Rate string like "15/min" (defaults to assistant_rate)
            enabled: When False every request is allowed
            throttle: Optional preconfigured AssistantRateThrottle
        """
        self._throttle = throttle or AssistantRateThrottle(rate)
        self.enabled = enabled
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._throttle.num_requests

    @property
    def window_seconds(self) -> int:
        return self._throttle.duration

    def check_and_consume(self) -> None:
        if not self.enabled:
            return

        with self._lock:
            if self._throttle.allow_request(None, None):
                return
            retry_after = self._throttle.wait() or 0.0

        logger.warning(
            f"Assistant rate limit reached ({self.max_requests} per "
            f"{self.window_seconds}s), retry in {retry_after:.1f}s"
        )
        raise RateLimitedError.after(retry_after)

    def remaining(self) -> int:
        with self._lock:
            return max(0, self.max_requests - len(self._throttle.current_history()))

    def reset(self) -> None:
        with self._lock:
            self._throttle.cache.delete(self._throttle.get_cache_key(None, None))
