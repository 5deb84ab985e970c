"""Progress accrual: apply a logged value and detect completion exactly once.

Flow for one accepted call (single transaction):
1. Lock the challenge row and check ownership / completion state
2. Append a ProgressLog entry
3. current_value += value, guarded by is_completed = false
4. Flip is_completed when the target is crossed, guarded by is_completed = false
5. Credit reward_points to the owner only if step 4 flipped the flag
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.challenges.metrics import completion_rate
from habitstake.challenges.policy import ChallengePolicy
from habitstake.challenges.schemas import (
    ChallengeProgressSummary,
    ProgressLogResponse,
    ProgressResult,
)
from habitstake.db.models import Challenge, ProgressLog
from habitstake.db.unit_of_work import transactional
from habitstake.errors import ErrorKind, Failure
from habitstake.events import CHALLENGE_COMPLETED, publish_event
from habitstake.ledger.service import credit

logger = logging.getLogger(__name__)


class ProgressEngine:
    """Applies progress entries to challenges owned by the caller."""

    def __init__(self, db: AsyncSession, policy: ChallengePolicy, redis: object | None = None) -> None:
        self.db = db
        self.policy = policy
        self.redis = redis

    @transactional
    async def apply_progress(
        self,
        challenge_id: int,
        caller_id: int,
        value: float,
        notes: str | None = None,
    ) -> ProgressResult | Failure:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
            return Failure(ErrorKind.VALIDATION_ERROR, "Progress value must be a non-negative number")

        result = await self.db.execute(
            select(Challenge)
            .where(Challenge.id == challenge_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        challenge = result.scalar_one_or_none()
        if challenge is None:
            return Failure(ErrorKind.NOT_FOUND, "Challenge not found")
        if challenge.owner_id != caller_id:
            return Failure(ErrorKind.FORBIDDEN, "You do not have access to this challenge")
        if challenge.is_completed:
            return Failure(ErrorKind.INVALID_STATE, "Challenge is already completed")

        now = datetime.now(timezone.utc)
        entry = ProgressLog(
            challenge_id=challenge.id,
            user_id=caller_id,
            value=float(value),
            notes=notes or "",
            created_at=now,
        )
        self.db.add(entry)
        await self.db.flush()

        accrued = await self.db.execute(
            update(Challenge)
            .where(Challenge.id == challenge.id, Challenge.is_completed.is_(False))
            .values(current_value=Challenge.current_value + float(value), updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if accrued.rowcount != 1:
            return Failure(ErrorKind.INVALID_STATE, "Challenge is already completed")

        completed = await self.db.execute(
            update(Challenge)
            .where(
                Challenge.id == challenge.id,
                Challenge.is_completed.is_(False),
                Challenge.current_value >= Challenge.target_value,
            )
            .values(is_completed=True, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        just_completed = completed.rowcount == 1

        reward = 0
        if just_completed and not challenge.is_social and challenge.reward_points > 0:
            reward = challenge.reward_points
            await credit(self.db, challenge.owner_id, reward)

        refreshed = await self.db.execute(
            select(Challenge)
            .where(Challenge.id == challenge.id)
            .execution_options(populate_existing=True)
        )
        challenge = refreshed.scalar_one()
        await self.db.commit()

        if just_completed:
            logger.info("Challenge %d completed by user %d (reward=%d)", challenge.id, caller_id, reward)
            await publish_event(self.redis, CHALLENGE_COMPLETED, {
                "challenge_id": challenge.id,
                "user_id": caller_id,
                "reward_points": reward,
            })

        return ProgressResult(
            progress_log=ProgressLogResponse.model_validate(entry),
            challenge=ChallengeProgressSummary(
                id=challenge.id,
                title=challenge.title,
                current_value=challenge.current_value,
                target_value=challenge.target_value,
                is_completed=challenge.is_completed,
                completed_at=challenge.completed_at,
                completion_rate=completion_rate(challenge.current_value, challenge.target_value),
            ),
            reward_granted=reward,
        )
