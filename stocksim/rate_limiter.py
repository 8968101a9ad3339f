"""
Token-bucket rate limiter for low-throughput providers.
"""

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)

# Tolerance for float drift when tokens refill to exactly one
_EPSILON = 1e-9


class RateLimiter:
    """
    Blocks callers so that at most `capacity` calls start in a burst and
    the long-run rate does not exceed `refill_per_second`.
    """

    def __init__(
        self,
        capacity: int,
        refill_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if refill_per_second <= 0:
            raise ValueError(f"refill_per_second must be > 0, got {refill_per_second}")

        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = threading.Lock()

    @classmethod
    def per_minute(cls, calls: int, **kwargs) -> 'RateLimiter':
        """Limiter allowing `calls` requests per minute."""
        return cls(capacity=calls, refill_per_second=calls / 60.0, **kwargs)

    def _refill(self):
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_per_second)
        self._updated = now

    def try_acquire(self) -> bool:
        """Take a token if one is available, without waiting."""
        with self._lock:
            self._refill()
            if self._tokens >= 1 - _EPSILON:
                self._tokens -= 1
                return True
            return False

    def acquire(self):
        """Take a token, sleeping until one becomes available."""
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1 - _EPSILON:
                    self._tokens -= 1
                    return
                wait = (1 - self._tokens) / self.refill_per_second
            logger.debug(f"Rate limit reached, waiting {wait:.2f}s")
            self._sleep(wait)
