"""Progress history for a challenge, newest first, with summary stats."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.challenges.metrics import ceil_days, completion_rate, success_rate
from habitstake.challenges.schemas import (
    HistoryChallenge,
    HistoryResponse,
    HistoryStats,
    ProgressLogResponse,
)
from habitstake.db.models import Challenge, ProgressLog
from habitstake.errors import ErrorKind, Failure


async def list_entries(db: AsyncSession, challenge_id: int) -> list[ProgressLog]:
    """All log entries for a challenge, newest first."""
    result = await db.execute(
        select(ProgressLog)
        .where(ProgressLog.challenge_id == challenge_id)
        .order_by(ProgressLog.created_at.desc(), ProgressLog.id.desc())
    )
    return list(result.scalars().all())


async def get_history(
    db: AsyncSession,
    challenge_id: int,
    caller_id: int,
    now: datetime | None = None,
) -> HistoryResponse | Failure:
    """Owner-only view of a challenge's progress log and derived stats."""
    challenge = await db.get(Challenge, challenge_id, populate_existing=True)
    if challenge is None:
        return Failure(ErrorKind.NOT_FOUND, "Challenge not found")
    if challenge.owner_id != caller_id:
        return Failure(ErrorKind.FORBIDDEN, "You do not have access to this challenge's progress")

    now = now or datetime.now(timezone.utc)
    entries = await list_entries(db, challenge_id)

    stats = HistoryStats(
        total_days=ceil_days(challenge.start_date, challenge.end_date),
        completed_days=len(entries),
        success_rate=success_rate([e.value for e in entries]),
        remaining_days=max(0, ceil_days(now, challenge.end_date)),
        completion_rate=completion_rate(challenge.current_value, challenge.target_value),
    )
    return HistoryResponse(
        challenge=HistoryChallenge(
            id=challenge.id,
            title=challenge.title,
            start_date=challenge.start_date,
            end_date=challenge.end_date,
            current_value=challenge.current_value,
            target_value=challenge.target_value,
            is_completed=challenge.is_completed,
        ),
        progress_history=[ProgressLogResponse.model_validate(e) for e in entries],
        stats=stats,
    )
