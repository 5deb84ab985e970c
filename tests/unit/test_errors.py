"""Failure values and their HTTP mapping."""

import pytest
from fastapi import HTTPException

from habitstake.errors import HTTP_STATUS, ErrorKind, Failure, raise_for_failure


def test_every_kind_has_a_status() -> None:
    assert set(HTTP_STATUS) == set(ErrorKind)


@pytest.mark.parametrize(
    ("kind", "status"),
    [
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.FORBIDDEN, 403),
        (ErrorKind.ALREADY_JOINED, 409),
        (ErrorKind.ALREADY_SETTLED, 409),
        (ErrorKind.INSUFFICIENT_FUNDS, 400),
        (ErrorKind.NOT_YET_CLOSED, 400),
        (ErrorKind.INTERNAL_ERROR, 500),
    ],
)
def test_raise_for_failure_status(kind: ErrorKind, status: int) -> None:
    with pytest.raises(HTTPException) as exc_info:
        raise_for_failure(Failure(kind, "nope"))
    assert exc_info.value.status_code == status
    assert exc_info.value.detail == {"code": kind.value, "message": "nope"}


def test_raise_for_failure_passes_values_through() -> None:
    value = {"id": 1}
    assert raise_for_failure(value) is value


def test_failure_is_immutable() -> None:
    failure = Failure(ErrorKind.NOT_FOUND, "missing")
    with pytest.raises(AttributeError):
        failure.kind = ErrorKind.FORBIDDEN  # type: ignore[misc]
