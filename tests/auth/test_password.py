"""Tests for password hashing and validation."""

import pytest

from habitstake.auth.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("SecureP4ss")
        assert verify_password("SecureP4ss", hashed) is True

    def test_wrong_password_rejected(self):
        hashed = hash_password("CorrectP4ss")
        assert verify_password("WrongP4ss", hashed) is False

    def test_garbage_hash_rejected(self):
        assert verify_password("SecureP4ss", "not-a-hash") is False

    def test_hash_is_argon2id(self):
        assert hash_password("TestP4ss").startswith("$argon2id$")


class TestPasswordStrength:
    def test_strong_password_accepted(self):
        validate_password_strength("StrongP4ss")

    @pytest.mark.parametrize(
        "password",
        ["", "   ", "Short1", "nouppercase1", "NOLOWERCASE1", "NoDigitHere", "A" * 100 + "a" * 29 + "1"],
    )
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength(password)
