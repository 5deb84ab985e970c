"""Liveness, readiness and version probes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.config import get_settings
from habitstake.database import get_session
from habitstake.redis_client import get_redis_or_none

router = APIRouter(tags=["Health"])


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


async def _redis_status() -> str:
    redis = get_redis_or_none()
    if redis is None:
        return "disabled"
    try:
        await redis.ping()
    except (RedisError, OSError) as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness: the process is up and serving."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness: the database must answer; Redis counts only when configured."""
    checks = {
        "database": await _database_status(db),
        "redis": await _redis_status(),
    }
    ready = all(status in ("ok", "disabled") for status in checks.values())
    return {"status": "ready" if ready else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "name": "habitstake",
        "version": settings.app_version,
        "environment": settings.environment,
    }
