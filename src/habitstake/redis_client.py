"""Optional Redis client for rate limiting, readiness checks and event fan-out.

Redis is not required for any challenge or ledger operation. An empty
``HABITSTAKE_REDIS_URL`` leaves it disabled, and every caller copes with that.
"""

import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the shared client, or leave Redis disabled when ``url`` is empty."""
    global _client  # noqa: PLW0603
    if not url:
        logger.info("Redis disabled: no URL configured")
        _client = None
        return
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the client. Raises RuntimeError when Redis is disabled or not started."""
    if _client is None:
        msg = "Redis is not configured"
        raise RuntimeError(msg)
    return _client


def get_redis_or_none() -> redis.Redis | None:
    return _client
