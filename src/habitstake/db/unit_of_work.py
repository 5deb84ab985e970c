"""Transaction boundary for multi-entity operations."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from habitstake.errors import ErrorKind, Failure

logger = logging.getLogger(__name__)

R = TypeVar("R")


def transactional(
    method: Callable[..., Awaitable[R]],
) -> Callable[..., Awaitable[R | Failure]]:
    """Run a service method as one all-or-nothing unit on ``self.db``.

    The wrapped method commits on its success path. A returned ``Failure`` rolls
    back everything written so far; a database error rolls back and is reported
    as ``INTERNAL_ERROR`` without leaking driver details.
    """

    @functools.wraps(method)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> R | Failure:
        try:
            result = await method(self, *args, **kwargs)
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Database error in %s", method.__qualname__)
            return Failure(ErrorKind.INTERNAL_ERROR, "Internal server error")
        if isinstance(result, Failure):
            await self.db.rollback()
        return result

    return wrapper
