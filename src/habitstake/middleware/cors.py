"""CORS for the browser and mobile-web clients."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habitstake.config import Settings

# Any localhost port during development (Expo, Vite and friends pick their own)
_LOCAL_ORIGIN_PATTERN = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=_LOCAL_ORIGIN_PATTERN if settings.environment == "development" else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
    )
