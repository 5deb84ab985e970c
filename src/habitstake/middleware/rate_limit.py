"""Fixed-window rate limiting backed by Redis counters."""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from habitstake.redis_client import get_redis

logger = structlog.get_logger()

_EXEMPT_PATHS = frozenset({"/health", "/ready", "/version"})


def rate_key(client_ip: str, now: float, window_seconds: int) -> str:
    """Counter key for the window containing ``now``."""
    return f"habitstake:ratelimit:{client_ip}:{int(now) // window_seconds}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Cap requests per client IP per window; answers 429 once the cap is hit."""

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 900) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        key = rate_key(client_ip, time.time(), self.window_seconds)

        try:
            redis = get_redis()
        except RuntimeError:
            # Redis never initialized (tests, local runs): no limiting
            return await call_next(request)

        pipe = redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, self.window_seconds + 1)
        try:
            results: list[Any] = await pipe.execute()
        except (RedisError, OSError) as exc:
            # Unreachable Redis: no limiting
            logger.warning("rate_limit_unavailable", error=str(exc))
            return await call_next(request)

        count: int = results[0]
        if count > self.requests_per_window:
            return JSONResponse(
                status_code=429,
                content={"code": "rate_limited", "detail": "Too many requests. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.requests_per_window),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - count))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response
