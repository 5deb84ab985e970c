"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from habitstake.challenges.policy import ChallengePolicy
from habitstake.config import get_settings
from habitstake.redis_client import get_redis_or_none


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client (or None when Redis is not configured)."""
    yield get_redis_or_none()


def get_policy() -> ChallengePolicy:
    """Build the points policy from application settings."""
    return ChallengePolicy.from_settings(get_settings())
