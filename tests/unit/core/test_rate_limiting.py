"""
Tests for the sliding window limiter and the per-IP middleware.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from core.middleware.rate_limiting import (
    RateLimitMiddleware,
    RateLimitRule,
    SlidingWindowRateLimiter,
    default_rules,
)


def _redis(count=0, oldest=None, error=None):
    """Mock Redis client; pipeline commands queue synchronously, execute is awaited."""
    client = MagicMock()
    pipe = MagicMock()
    if error is not None:
        pipe.execute = AsyncMock(side_effect=error)
    else:
        pipe.execute = AsyncMock(return_value=[0, count, 1, True])
    client.pipeline.return_value = pipe
    client.zrem = AsyncMock(return_value=1)
    client.zrange = AsyncMock(return_value=oldest or [])
    client.delete = AsyncMock(return_value=1)
    return client


class TestRules:

    def test_default_rules_cover_token_links_and_webhooks(self):
        token, webhook = default_rules("/api", 30, 120)

        assert token.matches("/api/candidate/interview/INT_x/answer")
        assert token.matches("/api/screening/verify/SCR_x")
        assert token.matches("/api/drive/register/REG_x")
        assert not token.matches("/api/drive-sessions")
        assert not token.matches("/api/jobs")
        assert webhook.matches("/webhook/brevo")
        assert (token.max_requests, webhook.max_requests) == (30, 120)


class TestSlidingWindowRateLimiter:
    """Counting against a Redis sorted set."""

    @pytest.mark.asyncio
    async def test_first_request_allowed(self):
        limiter = SlidingWindowRateLimiter(_redis(count=0))
        allowed, meta = await limiter.is_allowed("k", max_requests=10)

        assert allowed is True
        assert meta["limit"] == 10
        assert meta["remaining"] == 9
        assert meta["retry_after"] == 0

    @pytest.mark.asyncio
    async def test_last_slot_allowed(self):
        allowed, meta = await SlidingWindowRateLimiter(_redis(count=9)).is_allowed("k", 10)
        assert allowed is True
        assert meta["remaining"] == 0

    @pytest.mark.asyncio
    async def test_over_limit_denied_and_not_recorded(self, monkeypatch):
        monkeypatch.setattr("core.middleware.rate_limiting.time.time", lambda: 1000.0)
        client = _redis(count=10, oldest=[("m", 970.0)])

        allowed, meta = await SlidingWindowRateLimiter(client).is_allowed("k", 10, window_seconds=60)

        assert allowed is False
        assert meta["retry_after"] == 30
        client.zrem.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_down_fails_open(self):
        limiter = SlidingWindowRateLimiter(_redis(error=RedisConnectionError("refused")))
        allowed, meta = await limiter.is_allowed("k", 5)

        assert allowed is True
        assert meta["error"] == "redis_unavailable"

    @pytest.mark.asyncio
    async def test_reset(self):
        client = _redis()
        assert await SlidingWindowRateLimiter(client).reset("k") is True
        client.delete.assert_awaited_once_with("k")


def _app(limiter, enabled=True):
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        redis_url="redis://unused",
        rules=[RateLimitRule(name="token", max_requests=2, paths=["/api/screening"])],
        enabled=enabled,
        limiter=limiter,
    )

    @app.get("/api/screening/verify/{token}")
    async def verify(token: str):
        return {"valid": True}

    @app.get("/api/jobs")
    async def jobs():
        return []

    return app


class TestRateLimitMiddleware:
    """HTTP behaviour of the limiter."""

    def test_allowed_request_has_headers(self):
        limiter = MagicMock()
        limiter.is_allowed = AsyncMock(
            return_value=(True, {"limit": 2, "remaining": 1, "reset": 123, "retry_after": 0})
        )
        response = TestClient(_app(limiter)).get(
            "/api/screening/verify/SCR_x", headers={"x-forwarded-for": "198.51.100.7"}
        )

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Remaining"] == "1"
        key = limiter.is_allowed.await_args.args[0]
        assert key == "ratelimit:token:198.51.100.7"

    def test_denied_request_is_429(self):
        limiter = MagicMock()
        limiter.is_allowed = AsyncMock(
            return_value=(False, {"limit": 2, "remaining": 0, "reset": 123, "retry_after": 17})
        )
        response = TestClient(_app(limiter)).get("/api/screening/verify/SCR_x")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "17"
        assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"

    def test_unmatched_paths_are_not_limited(self):
        limiter = MagicMock()
        limiter.is_allowed = AsyncMock()
        response = TestClient(_app(limiter)).get("/api/jobs")

        assert response.status_code == 200
        limiter.is_allowed.assert_not_awaited()

    def test_disabled(self):
        limiter = MagicMock()
        limiter.is_allowed = AsyncMock()
        response = TestClient(_app(limiter, enabled=False)).get("/api/screening/verify/SCR_x")

        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers
