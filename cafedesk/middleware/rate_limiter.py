"""
Cafe Desk - Sliding window rate limiter middleware (Redis-backed)

Limits sign-in attempts per account (email or employee ID) per window.
Uses sorted sets (ZADD/ZREMRANGEBYSCORE/ZCARD) for a true sliding window.
"""
import json
import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cafedesk.core.config import get_settings
from cafedesk.core.redis_client import get_redis

settings = get_settings()

RATE_LIMIT_PREFIX = "ratelimit:"
LOGIN_PATHS = {"/auth/login", "/auth/employee-login"}


def _tracking_key(request: Request, body: bytes) -> str:
    """Account identifier from the body; falls back to the client IP."""
    host = request.client.host if request.client else "unknown"
    try:
        data = json.loads(body)
    except ValueError:
        return host
    if not isinstance(data, dict):
        return host
    account = data.get("email") or data.get("employee_id")
    if not account:
        return host
    return str(account).strip().lower()


class SlidingWindowRateLimiter(BaseHTTPMiddleware):
    """Applies sliding-window rate limiting ONLY to the two sign-in endpoints."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "POST" and request.url.path.rstrip("/") in LOGIN_PATHS:
            # Starlette caches the body, so the route can still read it.
            body = await request.body()
            tracking_key = _tracking_key(request, body)

            redis = get_redis()
            key = f"{RATE_LIMIT_PREFIX}{request.url.path.rstrip('/')}:{tracking_key}"
            now = time.time()
            window_start = now - settings.RATE_LIMIT_WINDOW_SECONDS

            pipe = redis.pipeline()
            # Remove entries outside the window
            pipe.zremrangebyscore(key, "-inf", window_start)
            # Count current attempts in window
            pipe.zcard(key)
            # Add this attempt
            pipe.zadd(key, {str(now): now})
            # Set TTL
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
                        "error": "rate_limited",
                        "retry_after_seconds": settings.RATE_LIMIT_WINDOW_SECONDS,
                    },
                    headers={"Retry-After": str(settings.RATE_LIMIT_WINDOW_SECONDS)},
                )

        return await call_next(request)
