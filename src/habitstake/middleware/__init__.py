"""HTTP middleware stack for the API."""

from fastapi import FastAPI

from habitstake.config import Settings
from habitstake.middleware.cors import setup_cors
from habitstake.middleware.error_handler import setup_error_handlers
from habitstake.middleware.logging import setup_logging
from habitstake.middleware.rate_limit import RateLimitMiddleware
from habitstake.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error handlers and middleware.

    Later registrations wrap earlier ones: CORS ends up outermost so that 429
    responses carry CORS headers, and request ids are bound before rate limiting
    logs anything. A non-positive request limit turns rate limiting off.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    if settings.rate_limit_requests > 0:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_window=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
