"""
==============================================================================
Provider Call Policies
==============================================================================

Wrappers applied to every outbound provider request.

    call ──▶ ProviderRateLimiter ──▶ RetryPolicy ──▶ HTTP request
              (reject when empty)    (2**n s backoff on transient errors)

The rate limiter sits outside the retry loop, so one logical call spends
one token however many attempts it takes.

==============================================================================
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from splitter.core.rate_limit import TokenBucket
from splitter.translation.errors import ProviderRateLimitedError, TransientProviderError


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CALLS_PER_MINUTE = 100
LIBRE_CALLS_PER_MINUTE = 60


class RetryPolicy:
    """
    Exponential backoff for transient provider failures.

    Retry n waits ``2 ** n`` seconds. Non-transient errors propagate at once.

    Example:
        >>> policy = RetryPolicy(max_retries=3, sleep=lambda s: None)
        >>> policy.execute(lambda: "ok")
        'ok'
    """

    def __init__(
        self,
        max_retries: int = 3,
        enabled: bool = True,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        self.max_retries = max_retries
        self.enabled = enabled
        self._sleep = sleep

    def delay_for(self, retry_number: int) -> float:
        return float(2 ** retry_number)

    def execute(self, action: Callable[[], T], label: str = "provider call") -> T:
        attempts = 1 + (self.max_retries if self.enabled else 0)

        for attempt in range(1, attempts + 1):
            try:
                return action()
            except TransientProviderError as e:
                if attempt >= attempts:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(f"Retry {attempt} of {label} after {delay:.0f}s due to {e}")
                self._sleep(delay)

        raise RuntimeError("unreachable")


class ProviderRateLimiter:
    """Token bucket that rejects calls once a provider's quota is spent."""

    def __init__(
        self,
        calls_per_minute: int = DEFAULT_CALLS_PER_MINUTE,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.calls_per_minute = calls_per_minute
        self._bucket = TokenBucket(calls_per_minute, 60, clock)

    def acquire(self, provider_name: str) -> None:
        """
        Raises:
            ProviderRateLimitedError: If no call is left in the window
        """
        if not self._bucket.try_take():
            logger.warning(f"Rate limit exceeded for {provider_name}. Request rejected.")
            raise ProviderRateLimitedError(
                f"{provider_name} rate limit of {self.calls_per_minute} calls/min exceeded"
            )
