"""
Password hashing (argon2id) and strength rules for registration.
"""

from __future__ import annotations

from collections.abc import Callable

import argon2

from habitstake.config import get_settings

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=64 * 1024,
    parallelism=1,
    type=argon2.Type.ID,
)

# Character-class rules applied after the length bounds
_CHARACTER_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (lambda p: any(c.isupper() for c in p), "Password must contain at least one uppercase letter"),
    (lambda p: any(c.islower() for c in p), "Password must contain at least one lowercase letter"),
    (lambda p: any(c.isdigit() for c in p), "Password must contain at least one digit"),
)


class PasswordStrengthError(ValueError):
    """The password fails one of the registration rules."""


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True when the password matches. A malformed hash counts as a mismatch."""
    try:
        return _hasher.verify(password_hash, password)
    except (argon2.exceptions.VerificationError, argon2.exceptions.InvalidHashError):
        return False


def validate_password_strength(password: str) -> None:
    """Raise PasswordStrengthError with the first rule the password breaks."""
    settings = get_settings()
    if not password or password.isspace():
        raise PasswordStrengthError("Password cannot be empty")
    if len(password) < settings.password_min_length:
        raise PasswordStrengthError(f"Password must be at least {settings.password_min_length} characters")
    if len(password) > settings.password_max_length:
        raise PasswordStrengthError(f"Password must not exceed {settings.password_max_length} characters")
    for rule, message in _CHARACTER_RULES:
        if not rule(password):
            raise PasswordStrengthError(message)
