"""
Cafe Desk - Idempotency Key Middleware

Guards the order-placing POSTs against double taps and client retries:
  - Cache hit  → return cached response immediately (no business logic)
  - Cache miss → execute handler, store response in Redis for 24h
"""
import json
import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from cafedesk.core.config import get_settings
from cafedesk.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

IDEMPOTENCY_PREFIX = "idempotent:"
IDEMPOTENCY_METHODS = {"POST"}
IDEMPOTENCY_PATHS = {"/orders", "/public/orders"}


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """
    Reads the Idempotency-Key header and either:
      1. Returns the cached response (replay)
      2. Executes the handler and caches its response
    Without a reachable Redis the request simply runs unguarded.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method not in IDEMPOTENCY_METHODS:
            return await call_next(request)

        path = request.url.path.rstrip("/")
        if path not in IDEMPOTENCY_PATHS:
            return await call_next(request)

        idem_key = request.headers.get("Idempotency-Key")
        if not idem_key:
            return await call_next(request)

        redis = get_redis()
        cache_key = f"{IDEMPOTENCY_PREFIX}{path}:{idem_key}"

        try:
            cached = await redis.get(cache_key)
        except RedisError as exc:
            logger.warning("Idempotency lookup failed, running request unguarded: %s", exc)
            return await call_next(request)

        # Cache HIT → replay stored response
        if cached:
            data = json.loads(cached)
            return JSONResponse(
                content=data["body"],
                status_code=data["status_code"],
                headers={"X-Idempotency-Replay": "true"},
            )

        # Cache MISS → proceed to handler
        response = await call_next(request)

        body_bytes = b""
        async for chunk in response.body_iterator:
            body_bytes += chunk

        try:
            body = json.loads(body_bytes)
        except ValueError:
            body = body_bytes.decode("utf-8", errors="replace")

        # Only successful placements are replayed; a rejected cart may be fixed and resent.
        if response.status_code < 400:
            try:
                await redis.setex(
                    cache_key,
                    settings.IDEMPOTENCY_KEY_TTL_SECONDS,
                    json.dumps({"body": body, "status_code": response.status_code}),
                )
            except RedisError as exc:
                logger.warning("Could not store idempotent response for %s: %s", idem_key, exc)

        return Response(
            content=body_bytes,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )
