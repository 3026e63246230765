"""
==============================================================================
Rate Limiting Module
==============================================================================

Per-client token buckets guarding brute-force sensitive endpoints.

Only OTP verification is limited: a client (by IP) may try
OTP_RATE_LIMIT_CAPACITY codes, refilled proportionally over
OTP_RATE_LIMIT_WINDOW_MINUTES.

    request ──▶ RateLimitMiddleware ──▶ path limited? ──no──▶ app
                                          │ yes
                                          ▼
                               bucket(ip).try_take()
                                 │ ok          │ empty
                                 ▼             ▼
                                app      429 RATE_LIMITED

Buckets live in process memory.

==============================================================================
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Dict, Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from splitter.config import get_settings
from splitter.core.exceptions import rate_limited


logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket with proportional refill.

    A full refill takes `refill_seconds`; partial time adds a matching
    share of `capacity`, rounded down. The refill clock only advances when
    at least one whole token was added.

    Example:
        >>> bucket = TokenBucket(capacity=5, refill_seconds=900)
        >>> all(bucket.try_take() for _ in range(5))
        True
        >>> bucket.try_take()
        False
    """

    def __init__(
        self,
        capacity: int,
        refill_seconds: float,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if refill_seconds <= 0:
            raise ValueError("refill_seconds must be positive")

        self.capacity = capacity
        self.refill_seconds = refill_seconds
        self._clock = clock
        self._tokens = capacity
        self._last_refill = clock()
        self._lock = threading.Lock()

    @property
    def tokens(self) -> int:
        with self._lock:
            self._refill()
            return self._tokens

    def try_take(self) -> bool:
        """Consume one token if available."""
        with self._lock:
            self._refill()
            if self._tokens <= 0:
                return False
            self._tokens -= 1
            return True

    def seconds_until_next_token(self) -> int:
        """Whole seconds until one more token becomes available."""
        with self._lock:
            self._refill()
            if self._tokens > 0:
                return 0
            per_token = self.refill_seconds / self.capacity
            elapsed = self._clock() - self._last_refill
            return max(1, math.ceil(per_token - elapsed))

    @property
    def is_full(self) -> bool:
        return self.tokens >= self.capacity

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        to_add = int(elapsed / self.refill_seconds * self.capacity)
        if to_add > 0:
            self._tokens = min(self.capacity, self._tokens + to_add)
            self._last_refill = now


class RateLimiter:
    """
    Registry of token buckets keyed by client.

    Once `max_tracked` clients are held, buckets that have refilled to
    capacity are dropped before a new one is added. A full bucket carries
    no state a fresh one would not.

    Attributes:
        capacity: Tokens per bucket
        refill_seconds: Time for a full refill
        max_tracked: Bucket count that triggers eviction of idle clients
    """

    def __init__(
        self,
        capacity: int,
        refill_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_tracked: int = 1024
    ) -> None:
        self.capacity = capacity
        self.refill_seconds = refill_seconds
        self.max_tracked = max_tracked
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._buckets)

    def bucket_for(self, key: str) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                if len(self._buckets) >= self.max_tracked:
                    self._evict_idle()
                bucket = TokenBucket(self.capacity, self.refill_seconds, self._clock)
                self._buckets[key] = bucket
            return bucket

    def _evict_idle(self) -> None:
        idle = [key for key, bucket in self._buckets.items() if bucket.is_full]
        for key in idle:
            del self._buckets[key]
        if idle:
            logger.debug(f"Evicted {len(idle)} idle rate limit buckets")

    def try_acquire(self, key: str) -> bool:
        return self.bucket_for(key).try_take()

    def reset(self) -> None:
        """Forget every client."""
        with self._lock:
            self._buckets.clear()


def client_ip(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """
    Address of the connecting peer.

    The first X-Forwarded-For hop replaces it only when the peer itself is
    a listed trusted proxy.
    """
    peer = (request.client.host if request.client else "") or ""
    if peer and peer in trusted_proxies:
        forwarded = (request.headers.get("x-forwarded-for") or "").strip()
        hop = forwarded.split(",")[0].strip() if forwarded else ""
        if hop:
            return hop
    return peer or "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies a RateLimiter to POST requests on selected paths.

    Usage:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=otp_rate_limiter,
            paths=["/api/v1/account/verify-otp"],
            trusted_proxies=["10.0.0.2"],
        )
    """

    def __init__(
        self,
        app,
        limiter: RateLimiter,
        paths: Iterable[str],
        trusted_proxies: Iterable[str] = ()
    ) -> None:
        super().__init__(app)
        self._limiter = limiter
        self._paths = {p.rstrip("/") for p in paths}
        self._trusted_proxies = frozenset(trusted_proxies)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path.rstrip("/")
        if request.method != "POST" or path not in self._paths:
            return await call_next(request)

        ip = client_ip(request, self._trusted_proxies)
        bucket = self._limiter.bucket_for(ip)

        if not bucket.try_take():
            retry_after = bucket.seconds_until_next_token()
            logger.warning(f"Rate limit exceeded for IP: {ip} on {path}")
            error = rate_limited(retry_after)
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_dict(),
                headers=error.headers
            )

        return await call_next(request)


# =============================================================================
# SHARED LIMITERS
# =============================================================================

_otp_rate_limiter: Optional[RateLimiter] = None


def get_otp_rate_limiter() -> RateLimiter:
    """Process-wide limiter for OTP verification."""
    global _otp_rate_limiter
    if _otp_rate_limiter is None:
        settings = get_settings()
        _otp_rate_limiter = RateLimiter(
            capacity=settings.otp_rate_limit_capacity,
            refill_seconds=settings.otp_rate_limit_window_minutes * 60
        )
    return _otp_rate_limiter
