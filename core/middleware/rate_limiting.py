"""
Redis-based rate limiting for the unauthenticated surfaces.

Candidate links and provider webhooks are reachable without a login, so they
are limited per client IP with a sliding window kept in a Redis sorted set.
If Redis is unreachable the request is let through.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Dict, Any, List

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


@dataclass
class RateLimitRule:
    """Requests allowed per minute for every path starting with one of ``paths``."""
    name: str
    max_requests: int
    paths: List[str]

    def matches(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.paths)


def default_rules(api_prefix: str, token_per_minute: int, webhook_per_minute: int) -> List[RateLimitRule]:
    return [
        RateLimitRule(
            name="token",
            max_requests=token_per_minute,
            paths=[
                f"{api_prefix}/candidate/interview",
                f"{api_prefix}/screening",
                f"{api_prefix}/drive/",
            ],
        ),
        RateLimitRule(name="webhook", max_requests=webhook_per_minute, paths=["/webhook"]),
    ]


class SlidingWindowRateLimiter:
    """
    Sliding window limiter on Redis sorted sets.

    Each request is a member scored by its timestamp; members older than the
    window are trimmed before counting.
    """

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int = WINDOW_SECONDS,
    ) -> tuple[bool, Dict[str, Any]]:
        """
        Check and record one request against ``key``.

        Returns:
            Tuple of (is_allowed, metadata) where metadata carries
            limit, remaining, reset and retry_after
        """
        now = time.time()
        member = f"{now}:{uuid.uuid4().hex[:8]}"

        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(key, 0, now - window_seconds)
            pipe.zcard(key)
            pipe.zadd(key, {member: now})
            pipe.expire(key, window_seconds + 60)
            results = await pipe.execute()
            current = results[1]

            allowed = current < max_requests
            retry_after = 0
            if not allowed:
                await self.redis.zrem(key, member)
                oldest = await self.redis.zrange(key, 0, 0, withscores=True)
                retry_after = int(oldest[0][1] + window_seconds - now) if oldest else window_seconds

            return allowed, {
                "limit": max_requests,
                "remaining": max(0, max_requests - current - 1),
                "reset": int(now + window_seconds),
                "retry_after": max(1, retry_after) if not allowed else 0,
            }
        except (RedisError, OSError) as exc:
            logger.error(f"Redis error in rate limiter, allowing request: {exc}")
            return True, {
                "limit": max_requests,
                "remaining": max_requests,
                "reset": int(now + window_seconds),
                "retry_after": 0,
                "error": "redis_unavailable",
            }

    async def reset(self, key: str) -> bool:
        try:
            await self.redis.delete(key)
            return True
        except RedisError as exc:
            logger.error(f"Failed to reset rate limit for {key}: {exc}")
            return False


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP limits on candidate token links and webhooks.

    Paths that match no rule are never limited. The Redis connection is
    opened lazily on the first limited request.
    """

    def __init__(
        self,
        app: ASGIApp,
        redis_url: str,
        rules: List[RateLimitRule],
        key_prefix: str = "ratelimit",
        enabled: bool = True,
        limiter: Optional[SlidingWindowRateLimiter] = None,
    ):
        """
        Initialize rate limiting middleware.

        Args:
            app: The ASGI application
            redis_url: Redis connection URL
            rules: Rules to apply, first match wins
            key_prefix: Prefix for Redis keys
            enabled: When False every request passes straight through
            limiter: Pre-built limiter, mainly for tests
        """
        super().__init__(app)
        self.redis_url = redis_url
        self.rules = rules
        self.key_prefix = key_prefix
        self.enabled = enabled
        self.redis_client: Optional[Redis] = None
        self.limiter = limiter

    def _get_limiter(self) -> SlidingWindowRateLimiter:
        if self.limiter is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
            )
            self.limiter = SlidingWindowRateLimiter(self.redis_client)
            logger.info("Rate limiter initialized")
        return self.limiter

    def _match(self, path: str) -> Optional[RateLimitRule]:
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rule = self._match(request.url.path) if self.enabled else None
        if rule is None:
            return await call_next(request)

        key = f"{self.key_prefix}:{rule.name}:{self._get_client_ip(request)}"
        allowed, result = await self._get_limiter().is_allowed(key, rule.max_requests)

        if not allowed:
            logger.warning(f"Rate limit exceeded for {rule.name} rule")
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": {
                        "code": "RATE_LIMIT_EXCEEDED",
                        "message": "Too many requests. Please try again later.",
                        "retry_after": result["retry_after"],
                    }
                },
            )
            self._add_rate_limit_headers(response, result, allowed)
            return response

        response = await call_next(request)
        self._add_rate_limit_headers(response, result, allowed)
        return response

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
        return request.client.host if request.client else "unknown"

    def _add_rate_limit_headers(self, response: Response, result: Dict[str, Any], allowed: bool):
        response.headers["X-RateLimit-Limit"] = str(result["limit"])
        response.headers["X-RateLimit-Remaining"] = str(result["remaining"])
        response.headers["X-RateLimit-Reset"] = str(result["reset"])
        if not allowed:
            response.headers["Retry-After"] = str(result["retry_after"])

    async def close(self):
        if self.redis_client is not None:
            await self.redis_client.aclose()
            logger.info("Rate limiter closed")
