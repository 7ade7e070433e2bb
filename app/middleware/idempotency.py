"""
GreenPantry API — Idempotency Key Middleware

Order placement honours an Idempotency-Key header using Redis:
  - Cache hit  → return the stored response (no order is created)
  - Cache miss → run the handler, store its response for the key's TTL

Keys are scoped to the caller so two users cannot replay each other's orders.
"""
import json
import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import get_settings
from app.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

IDEMPOTENCY_PREFIX = "idempotent:"
IDEMPOTENCY_METHODS = {"POST"}
IDEMPOTENCY_PATHS = {"/api/orders", "/api/orders/"}


class IdempotencyMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method not in IDEMPOTENCY_METHODS or request.url.path not in IDEMPOTENCY_PATHS:
            return await call_next(request)

        idem_key = request.headers.get("Idempotency-Key")
        if not idem_key:
            return await call_next(request)

        claims = getattr(request.state, "user", None) or {}
        cache_key = f"{IDEMPOTENCY_PREFIX}{claims.get('sub', 'anonymous')}:{idem_key}"
        redis = get_redis()

        cached = await redis.get(cache_key)
        if cached:
            data = json.loads(cached)
            logger.info("Replaying idempotent response for key %s", idem_key)
            return JSONResponse(
                content=data["body"],
                status_code=data["status_code"],
                headers={"X-Idempotency-Replay": "true"},
            )

        response = await call_next(request)

        body_bytes = b""
        async for chunk in response.body_iterator:
            body_bytes += chunk

        # Only successful placements are worth replaying; failures may be retried
        if 200 <= response.status_code < 300:
            try:
                body = json.loads(body_bytes)
            except ValueError:
                body = body_bytes.decode("utf-8", errors="replace")
            await redis.setex(
                cache_key,
                settings.IDEMPOTENCY_KEY_TTL_SECONDS,
                json.dumps({"body": body, "status_code": response.status_code}),
            )

        return Response(
            content=body_bytes,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )
