"""Token bucket rate limiting for per-source collection budgets."""

import threading
import time
from typing import Callable, Optional

from loguru import logger

from competitive_intel.data_management.schemas import RateLimit


class TokenBucket:
    """
    Token bucket algorithm implementation for rate limiting.

    Tokens refill continuously at a fixed rate. Each collection run consumes
    one token; when the bucket is empty the run must be skipped.

    Attributes:
        capacity: Maximum number of tokens the bucket can hold
        refill_rate: Tokens added per second
        tokens: Current number of tokens available
        last_refill: Clock reading of the last refill
        lock: Thread lock for safe concurrent access
    """

    def __init__(
        self,
        capacity: int,
        refill_rate: float,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize token bucket with capacity and refill rate.

        Args:
            capacity: Maximum tokens
            refill_rate: Tokens per second (e.g. 24 / 3600 for 24 per hour)
            clock: Monotonic seconds source, defaults to time.monotonic
        """
        self.capacity = capacity
        self.refill_rate = refill_rate
        self._clock = clock or time.monotonic
        self.tokens = float(capacity)
        self.last_refill = self._clock()
        self.lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def available(self) -> float:
        """Current token count after refill."""
        with self.lock:
            self._refill()
            return self.tokens

    def acquire(self, tokens: int = 1) -> bool:
        """
        Attempt to acquire tokens from the bucket (thread-safe).

        Returns:
            True if tokens were acquired, False if insufficient tokens available
        """
        with self.lock:
            self._refill()

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True

            return False


class SourceRateLimiter:
    """
    Enforces a source's hourly, burst and daily request budgets.

    The hourly bucket holds at most ``burst_limit`` tokens and refills at
    ``requests_per_hour`` per hour. The daily bucket holds
    ``requests_per_day`` tokens and refills over 24 hours. A run proceeds only
    when both buckets have a token; tokens are consumed from both together.
    """

    def __init__(
        self,
        rate_limit: RateLimit,
        clock: Optional[Callable[[], float]] = None,
    ):
        burst = max(1, rate_limit.burst_limit)
        self.hourly_bucket = TokenBucket(
            capacity=burst,
            refill_rate=rate_limit.requests_per_hour / 3600.0,
            clock=clock,
        )
        self.daily_bucket = TokenBucket(
            capacity=max(1, rate_limit.requests_per_day),
            refill_rate=rate_limit.requests_per_day / 86400.0,
            clock=clock,
        )
        self.rate_limit = rate_limit

    def can_proceed(self) -> bool:
        """
        Check both budgets and consume one token from each when allowed.

        Returns:
            True if the run can proceed, False if rate limited
        """
        with self.hourly_bucket.lock:
            self.hourly_bucket._refill()
            hourly_available = self.hourly_bucket.tokens >= 1

        with self.daily_bucket.lock:
            self.daily_bucket._refill()
            daily_available = self.daily_bucket.tokens >= 1

        if not hourly_available:
            logger.warning(
                f"Hourly budget exhausted ({self.rate_limit.requests_per_hour}/h, "
                f"burst {self.rate_limit.burst_limit})"
            )
            return False

        if not daily_available:
            logger.warning(
                f"Daily budget exhausted ({self.rate_limit.requests_per_day}/day)"
            )
            return False

        self.hourly_bucket.acquire(1)
        self.daily_bucket.acquire(1)
        return True
