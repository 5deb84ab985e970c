"""Tests for JWT access tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from habitstake.auth.jwt import create_access_token, reset_keys, signing_keys, verify_token
from habitstake.config import get_settings


def _encode(claims: dict) -> str:
    private_key, _ = signing_keys()
    return jwt.encode(claims, private_key, algorithm="RS256")


def _claims(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": "1",
        "iat": now,
        "exp": now + timedelta(minutes=5),
        "iss": get_settings().jwt_issuer,
        "type": "access",
    }
    claims.update(overrides)
    return claims


class TestAccessToken:
    def test_create_and_verify(self):
        token = create_access_token(user_id=7, username="alice")
        payload = verify_token(token)
        assert payload["sub"] == "7"
        assert payload["username"] == "alice"
        assert payload["type"] == "access"
        assert payload["iss"] == get_settings().jwt_issuer

    def test_lifetime_override(self):
        token = create_access_token(user_id=7, username="alice", expires_in=timedelta(minutes=1))
        payload = verify_token(token)
        assert payload["exp"] - payload["iat"] == 60

    def test_wrong_type_rejected(self):
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(_encode(_claims(type="refresh")), expected_type="access")

    def test_expired_token_rejected(self):
        token = create_access_token(user_id=1, username="alice", expires_in=timedelta(seconds=-10))
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_issuer_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(_encode(_claims(iss="someone-else")))

    def test_missing_subject_rejected(self):
        claims = _claims()
        del claims["sub"]
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(_encode(claims))

    def test_non_numeric_subject_rejected(self):
        with pytest.raises(jwt.InvalidTokenError, match="user id"):
            verify_token(_encode(_claims(sub="alice")))

    def test_tampered_token_rejected(self):
        token = create_access_token(user_id=1, username="alice")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token[:-4] + "AAAA")


class TestSigningKeys:
    def test_keys_are_cached_until_reset(self):
        first = signing_keys()
        assert signing_keys() is first
        reset_keys()
        assert signing_keys() == first
