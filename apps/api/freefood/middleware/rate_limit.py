from __future__ import annotations

import time

import structlog
from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from freefood.core.config import settings
from freefood.redis_client import count_in_window

logger = structlog.get_logger()

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _parse_rate(rate: str) -> tuple[int, int]:
    """
    Parse formats like "30/minute", "120/hour", "5/second".
    Returns: (limit, window_seconds)
    """
    raw = rate.strip().lower()
    if "/" not in raw:
        raise ValueError(f"Invalid rate format: {rate}")

    limit_str, window_str = raw.split("/", 1)
    limit = int(limit_str)

    windows = {
        "sec": 1, "second": 1, "seconds": 1,
        "min": 60, "minute": 60, "minutes": 60,
        "hour": 3600, "hours": 3600,
        "day": 86400, "days": 86400,
    }
    window_seconds = windows.get(window_str.strip())
    if window_seconds is None:
        raise ValueError(f"Invalid rate window: {window_str}")
    return limit, window_seconds


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit on event mutations per client IP; reads are never limited."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if not settings.rate_limit_enabled or request.method not in MUTATING_METHODS:
            return await call_next(request)
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        try:
            limit, window_seconds = _parse_rate(settings.rate_limit_default)
        except ValueError:
            logger.warning("rate_limit_misconfigured", rate=settings.rate_limit_default)
            return await call_next(request)

        now = int(time.time())
        bucket = now // window_seconds
        key = f"rl:{client_ip}:writes:{window_seconds}:{bucket}"

        try:
            count = count_in_window(key, window_seconds)
        except RedisError as exc:
            # Fail open if Redis is unavailable
            logger.warning("rate_limit_unavailable", error=str(exc))
            return await call_next(request)

        reset = (bucket + 1) * window_seconds
        if count > limit:
            return JSONResponse(
                status_code=429,
                content={"error": "rate limit exceeded"},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset),
                    "Retry-After": str(max(0, reset - now)),
                },
            )

        response = await call_next(request)
        response.headers.setdefault("X-RateLimit-Limit", str(limit))
        response.headers.setdefault("X-RateLimit-Remaining", str(max(0, limit - count)))
        return response
