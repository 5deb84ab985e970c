"""
Authentication business logic: registration, credential checks, user lookup.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from habitstake.auth.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)
from habitstake.db.models import User
from habitstake.errors import ErrorKind, Failure

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitstake.challenges.policy import ChallengePolicy

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    policy: ChallengePolicy,
    username: str,
    email: str,
    password: str,
) -> User | Failure:
    """Create an account credited with the signup bonus."""
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        return Failure(ErrorKind.VALIDATION_ERROR, str(e))

    email = email.lower().strip()
    username = username.strip()
    existing = await db.execute(
        select(User).where(
            or_(func.lower(User.email) == email, func.lower(User.username) == username.lower())
        )
    )
    if existing.scalars().first() is not None:
        return Failure(ErrorKind.VALIDATION_ERROR, "Email or username is already registered")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        points=policy.signup_bonus,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return Failure(ErrorKind.VALIDATION_ERROR, "Email or username is already registered")

    logger.info("user_registered", user_id=user.id, username=username)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user when the credentials match, otherwise None."""
    user = await get_user_by_email(db, email.strip())
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed", email=email)
        return None
    return user
