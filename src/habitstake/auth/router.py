"""Authentication router: all /api/v1/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.auth.dependencies import get_current_user
from habitstake.auth.jwt import create_access_token
from habitstake.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from habitstake.auth.service import authenticate_user, register_user
from habitstake.challenges.policy import ChallengePolicy
from habitstake.config import get_settings
from habitstake.database import get_session
from habitstake.db.models import User
from habitstake.dependencies import get_policy
from habitstake.errors import raise_for_failure

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        points=user.points,
        created_at=user.created_at,
    )


def _token_response(user: User) -> TokenResponse:
    settings = get_settings()
    return TokenResponse(
        access_token=create_access_token(user.id, user.username),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=_user_response(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
    policy: ChallengePolicy = Depends(get_policy),
):
    """Create an account with the signup bonus and return an access token."""
    user = raise_for_failure(await register_user(db, policy, body.username, body.email, body.password))
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
):
    """Exchange email + password for an access token."""
    user = await authenticate_user(db, body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    logger.info("login_succeeded", user_id=user.id)
    return _token_response(user)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    """Current user profile, including the points balance."""
    return _user_response(user)
