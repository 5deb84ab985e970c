"""Points ledger: debit/credit primitives on users.points.

Every mutation is a single conditional UPDATE so concurrent operations on the
same user serialize in the database. A debit only applies while the balance
covers it, so no interleaving can drive a balance negative. None of these
functions commit; the calling operation owns the transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.db.models import User

logger = logging.getLogger(__name__)


async def get_balance(db: AsyncSession, user_id: int) -> int | None:
    """Current balance straight from the database, or None if the user is unknown."""
    result = await db.execute(select(User.points).where(User.id == user_id))
    return result.scalar_one_or_none()


async def debit(db: AsyncSession, user_id: int, amount: int) -> bool:
    """Remove ``amount`` points if the balance covers it. Returns False otherwise."""
    if amount < 0:
        raise ValueError("debit amount must be non-negative")
    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.points >= amount)
        .values(points=User.points - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("Debit of %d refused for user %d", amount, user_id)
        return False
    return True


async def credit(db: AsyncSession, user_id: int, amount: int) -> bool:
    """Add ``amount`` points. Returns False if the user does not exist."""
    if amount < 0:
        raise ValueError("credit amount must be non-negative")
    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(points=User.points + amount)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
