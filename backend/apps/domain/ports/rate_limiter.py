# apps/domain/ports/rate_limiter.py

"""
Rate Limiter Port - Request budget for model calls

The budget is shared by everything talking to the model, so real
implementations keep their counters outside the process.
"""

from typing import Protocol


class IRateLimiter(Protocol):
    """Interface for the assistant's request budget"""

    def check_and_consume(self) -> None:
        """
        Consume one request from the budget

        Raises:
            RateLimitedError: If the budget for the window is spent.
                Rejections never consume.
        """
        ...

    def remaining(self) -> int:
        """Requests still available in the current window"""
        ...
