"""Typed failures returned by core operations.

Core operations never raise for business-rule violations. They return either a
projection or a ``Failure`` carrying one of the closed set of ``ErrorKind``
values below. Routers turn failures into HTTP responses with
``raise_for_failure``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TypeVar

from fastapi import HTTPException

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_STATE = "invalid_state"
    ALREADY_JOINED = "already_joined"
    ALREADY_SETTLED = "already_settled"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    VALIDATION_ERROR = "validation_error"
    CHALLENGE_CLOSED = "challenge_closed"
    NOT_YET_CLOSED = "not_yet_closed"
    INTERNAL_ERROR = "internal_error"


HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.ALREADY_JOINED: 409,
    ErrorKind.ALREADY_SETTLED: 409,
    ErrorKind.INSUFFICIENT_FUNDS: 400,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.CHALLENGE_CLOSED: 400,
    ErrorKind.NOT_YET_CLOSED: 400,
    ErrorKind.INTERNAL_ERROR: 500,
}


@dataclass(frozen=True)
class Failure:
    """A business-rule or infrastructure failure with a user-safe message."""

    kind: ErrorKind
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.kind.value, "message": self.message}


def raise_for_failure(result: T | Failure) -> T:
    """Return ``result`` unchanged, or raise the matching HTTPException."""
    if isinstance(result, Failure):
        raise HTTPException(status_code=HTTP_STATUS[result.kind], detail=result.to_dict())
    return result
