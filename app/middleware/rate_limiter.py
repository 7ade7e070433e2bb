"""
GreenPantry API — Sliding window rate limiter for login (Redis-backed)

RATE_LIMIT_MAX_ATTEMPTS login attempts per RATE_LIMIT_WINDOW_SECONDS per
email address, tracked in a sorted set per key
(ZREMRANGEBYSCORE / ZCARD / ZADD) for a true sliding window.
"""
import json
import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import get_settings
from app.core.redis_client import get_redis

settings = get_settings()

RATE_LIMIT_PREFIX = "ratelimit:"
LOGIN_PATHS = ("/api/auth/login", "/api/auth/login/")


def tracking_key(body: bytes, request: Request) -> str:
    """Lower-cased email from the login body; the client address if it has none."""
    fallback = request.client.host if request.client else "unknown"
    try:
        data = json.loads(body)
    except ValueError:
        return fallback
    if not isinstance(data, dict):
        return fallback
    email = data.get("email")
    return email.lower() if isinstance(email, str) and email else fallback


class SlidingWindowRateLimiter(BaseHTTPMiddleware):
    """Applies only to POST /api/auth/login."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method != "POST" or request.url.path not in LOGIN_PATHS:
            return await call_next(request)

        # Starlette caches the body, so the route can still read it
        body = await request.body()
        key = f"{RATE_LIMIT_PREFIX}{tracking_key(body, request)}"

        now = time.time()
        window_start = now - settings.RATE_LIMIT_WINDOW_SECONDS

        redis = get_redis()
        pipe = redis.pipeline()
        pipe.zremrangebyscore(key, "-inf", window_start)
        pipe.zcard(key)
        pipe.zadd(key, {str(now): now})
        pipe.expire(key, settings.RATE_LIMIT_WINDOW_SECONDS + 1)
        results = await pipe.execute()

        attempt_count = results[1]  # count before this attempt
        if attempt_count >= settings.RATE_LIMIT_MAX_ATTEMPTS:
            return JSONResponse(
                status_code=429,
                content={
                    "detail": (
                        f"Too many login attempts. Maximum {settings.RATE_LIMIT_MAX_ATTEMPTS} "
                        f"attempts per {settings.RATE_LIMIT_WINDOW_SECONDS} seconds."
                    ),
                    "retry_after_seconds": settings.RATE_LIMIT_WINDOW_SECONDS,
                },
                headers={"Retry-After": str(settings.RATE_LIMIT_WINDOW_SECONDS)},
            )

        return await call_next(request)
