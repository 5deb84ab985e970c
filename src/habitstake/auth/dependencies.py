"""Request authentication: bearer access token to ``User``."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.auth.jwt import verify_token
from habitstake.auth.service import get_user_by_id
from habitstake.database import get_session
from habitstake.db.models import User

# auto_error=False so a missing header gets the same 401 shape as a bad token
_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """The authenticated caller. Raises 401 for a missing, invalid or orphaned token."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        claims = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as exc:
        raise _unauthorized(str(exc)) from exc

    user = await get_user_by_id(db, int(claims["sub"]))
    if user is None:
        raise _unauthorized("User not found")
    return user
