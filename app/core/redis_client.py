"""
GreenPantry API — Shared Redis connection

Backs the login rate limiter, idempotent order replays and the
order:{id} status channels.
"""
import asyncio

import redis.asyncio as aioredis

from app.core.config import get_settings

settings = get_settings()

_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    return _client


def use_redis(client: aioredis.Redis | None) -> None:
    """Install an explicitly constructed client (or clear it with None)."""
    global _client
    _client = client


async def ping_redis() -> None:
    await asyncio.wait_for(get_redis().ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
