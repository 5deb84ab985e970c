"""
RS256 access tokens for API clients.

Tokens carry the user id in ``sub`` and the username for display. The signing
key pair is read from the PEM paths in settings once and cached.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

import jwt

from habitstake.config import get_settings

_REQUIRED_CLAIMS = ["exp", "iat", "iss", "sub"]


@lru_cache(maxsize=1)
def signing_keys() -> tuple[str, str]:
    """(private, public) PEM strings."""
    settings = get_settings()
    return (
        Path(settings.jwt_private_key_path).read_text(),
        Path(settings.jwt_public_key_path).read_text(),
    )


def reset_keys() -> None:
    """Forget cached keys so the next call re-reads the configured paths."""
    signing_keys.cache_clear()


def create_access_token(user_id: int, username: str, expires_in: timedelta | None = None) -> str:
    """
    Issue an access token.

    Args:
        user_id: The user's database ID.
        username: The user's public handle.
        expires_in: Lifetime override; defaults to the configured expiry.
    """
    settings = get_settings()
    private_key, _ = signing_keys()
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_in if expires_in is not None else timedelta(minutes=settings.jwt_access_token_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "type": "access",
        "iss": settings.jwt_issuer,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, private_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Decode and validate a token.

    Raises:
        jwt.InvalidTokenError: bad signature, expired, wrong issuer or type,
            missing claims, or a subject that is not a user id.
    """
    settings = get_settings()
    _, public_key = signing_keys()
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            public_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if claims.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{claims.get('type')}'"
        raise jwt.InvalidTokenError(msg)
    if not str(claims["sub"]).isdigit():
        msg = "Token subject is not a user id"
        raise jwt.InvalidTokenError(msg)
    return claims
