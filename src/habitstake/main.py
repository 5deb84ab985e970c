"""HabitStake API application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from habitstake.advisory.router import router as advisory_router
from habitstake.auth.router import router as auth_router
from habitstake.challenges.router import router as challenges_router
from habitstake.config import get_settings
from habitstake.database import close_db, init_db
from habitstake.health.router import router as health_router
from habitstake.middleware import setup_middleware
from habitstake.redis_client import close_redis, init_redis
from habitstake.social.router import router as social_router

logger = structlog.get_logger()

_ROUTERS = (health_router, auth_router, challenges_router, social_router, advisory_router)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database pool and the optional Redis client for the app's lifetime."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info(
        "habitstake_started",
        version=settings.app_version,
        environment=settings.environment,
        redis_enabled=bool(settings.redis_url),
    )
    try:
        yield
    finally:
        await close_redis()
        await close_db()
        logger.info("habitstake_stopped")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="HabitStake API",
        description="Habit challenges with progress tracking, point rewards and social stakes",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    setup_middleware(app, settings)
    for router in _ROUTERS:
        app.include_router(router)
    return app


app = create_app()
