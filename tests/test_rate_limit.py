"""
==============================================================================
Rate Limiting Tests
==============================================================================

Token bucket arithmetic, per-client limiters and the middleware.

==============================================================================
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from splitter.core.rate_limit import RateLimiter, RateLimitMiddleware, TokenBucket


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestTokenBucket:
    """Proportional refill."""

    def test_capacity_and_refill(self):
        clock = FakeClock()
        bucket = TokenBucket(capacity=5, refill_seconds=900, clock=clock)

        assert all(bucket.try_take() for _ in range(5))
        assert not bucket.try_take()
        assert bucket.seconds_until_next_token() == 180

        clock.now += 179
        assert not bucket.try_take()
        assert bucket.seconds_until_next_token() == 1

        clock.now += 1
        assert bucket.try_take()
        assert not bucket.try_take()

    def test_refill_is_capped(self):
        clock = FakeClock()
        bucket = TokenBucket(capacity=3, refill_seconds=60, clock=clock)
        bucket.try_take()

        clock.now += 3600
        assert bucket.tokens == 3

    @pytest.mark.parametrize("capacity, refill", [(0, 60), (5, 0)])
    def test_invalid_arguments(self, capacity, refill):
        with pytest.raises(ValueError):
            TokenBucket(capacity, refill)


class TestRateLimiter:
    """One bucket per client."""

    def test_buckets_are_per_key(self):
        limiter = RateLimiter(capacity=1, refill_seconds=60, clock=FakeClock())

        assert limiter.try_acquire("10.0.0.1")
        assert not limiter.try_acquire("10.0.0.1")
        assert limiter.try_acquire("10.0.0.2")

        limiter.reset()
        assert limiter.try_acquire("10.0.0.1")

    def test_idle_buckets_are_evicted(self):
        clock = FakeClock()
        limiter = RateLimiter(capacity=1, refill_seconds=60, clock=clock, max_tracked=3)

        for i in range(3):
            limiter.try_acquire(f"10.0.0.{i}")
        assert len(limiter) == 3

        clock.now += 60
        assert limiter.try_acquire("10.0.0.1")
        limiter.try_acquire("10.0.0.9")

        assert len(limiter) == 2

    def test_busy_buckets_survive_eviction(self):
        clock = FakeClock()
        limiter = RateLimiter(capacity=1, refill_seconds=60, clock=clock, max_tracked=2)

        limiter.try_acquire("10.0.0.1")
        limiter.try_acquire("10.0.0.2")
        limiter.try_acquire("10.0.0.3")

        assert len(limiter) == 3
        assert not limiter.try_acquire("10.0.0.1")


def build_limited_app(trusted_proxies=()) -> TestClient:
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        limiter=RateLimiter(capacity=2, refill_seconds=60),
        paths=["/limited"],
        trusted_proxies=trusted_proxies
    )

    @app.post("/limited")
    async def limited():
        return {"ok": True}

    @app.get("/limited")
    async def limited_read():
        return {"ok": True}

    @app.post("/open")
    async def open_route():
        return {"ok": True}

    return TestClient(app)


@pytest.fixture
def limited_client() -> TestClient:
    return build_limited_app()


class TestMiddleware:
    """RateLimitMiddleware"""

    def test_rejects_after_capacity(self, limited_client: TestClient):
        assert limited_client.post("/limited").status_code == 200
        assert limited_client.post("/limited").status_code == 200

        response = limited_client.post("/limited")
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        assert response.json()["error"]["code"] == "RATE_LIMITED"

    def test_only_post_on_listed_paths(self, limited_client: TestClient):
        for _ in range(5):
            assert limited_client.get("/limited").status_code == 200
            assert limited_client.post("/open").status_code == 200

    def test_forwarded_for_cannot_dodge_the_limit(self, limited_client: TestClient):
        statuses = [
            limited_client.post("/limited", headers={"X-Forwarded-For": f"10.0.0.{i}"}).status_code
            for i in range(5)
        ]
        assert statuses == [200, 200, 429, 429, 429]

    def test_forwarded_for_from_trusted_proxy(self):
        client = build_limited_app(trusted_proxies=["testclient"])

        for _ in range(2):
            client.post("/limited", headers={"X-Forwarded-For": "203.0.113.5"})

        blocked = client.post("/limited", headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert blocked.status_code == 429

        other = client.post("/limited", headers={"X-Forwarded-For": "198.51.100.7"})
        assert other.status_code == 200
