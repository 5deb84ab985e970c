"""Personal (non-social) challenge creation and listing."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.advisory.service import calculate_best_reminder_time
from habitstake.challenges.metrics import completion_rate, ensure_utc
from habitstake.challenges.policy import ChallengePolicy
from habitstake.challenges.schemas import ChallengeResponse
from habitstake.db.models import CHALLENGE_TYPES, Challenge
from habitstake.db.unit_of_work import transactional
from habitstake.errors import ErrorKind, Failure

logger = logging.getLogger(__name__)


def to_challenge_response(challenge: Challenge) -> ChallengeResponse:
    """Project a challenge row into its API shape."""
    return ChallengeResponse(
        id=challenge.id,
        owner_id=challenge.owner_id,
        title=challenge.title,
        description=challenge.description,
        type=challenge.type,
        start_date=challenge.start_date,
        end_date=challenge.end_date,
        target_value=challenge.target_value,
        current_value=challenge.current_value,
        is_completed=challenge.is_completed,
        completed_at=challenge.completed_at,
        reward_points=challenge.reward_points,
        is_social=challenge.is_social,
        stake_points=challenge.stake_points,
        is_settled=challenge.is_settled,
        next_reminder_at=challenge.next_reminder_at,
        completion_rate=completion_rate(challenge.current_value, challenge.target_value),
        created_at=challenge.created_at,
    )


class ChallengeService:
    """Create and list a user's own challenges."""

    def __init__(self, db: AsyncSession, policy: ChallengePolicy) -> None:
        self.db = db
        self.policy = policy

    @transactional
    async def create_challenge(
        self,
        owner_id: int,
        title: str,
        end_date: datetime,
        target_value: float,
        description: str = "",
        type: str = "custom",  # noqa: A002
        start_date: datetime | None = None,
        reward_points: int | None = None,
    ) -> ChallengeResponse | Failure:
        title = (title or "").strip()
        if not title:
            return Failure(ErrorKind.VALIDATION_ERROR, "Challenge title is required")
        if type not in CHALLENGE_TYPES:
            return Failure(ErrorKind.VALIDATION_ERROR, f"Unknown challenge type: {type}")
        if target_value is None or target_value < 1:
            return Failure(ErrorKind.VALIDATION_ERROR, "Target value must be at least 1")
        if reward_points is not None and reward_points < 0:
            return Failure(ErrorKind.VALIDATION_ERROR, "Reward points cannot be negative")

        now = datetime.now(timezone.utc)
        start = ensure_utc(start_date) if start_date else now
        end_date = ensure_utc(end_date)
        if end_date <= start:
            return Failure(ErrorKind.VALIDATION_ERROR, "End date must be after the start date")

        challenge = Challenge(
            owner_id=owner_id,
            title=title,
            description=(description or "").strip(),
            type=type,
            start_date=start,
            end_date=end_date,
            target_value=target_value,
            current_value=0,
            reward_points=self.policy.reward_default if reward_points is None else reward_points,
            next_reminder_at=await calculate_best_reminder_time(self.db, owner_id, now=now),
            created_at=now,
            updated_at=now,
        )
        self.db.add(challenge)
        await self.db.commit()

        logger.info("Challenge created: %s (id=%d, owner=%d)", title, challenge.id, owner_id)
        return to_challenge_response(challenge)

    async def list_user_challenges(self, owner_id: int) -> list[ChallengeResponse]:
        result = await self.db.execute(
            select(Challenge)
            .where(Challenge.owner_id == owner_id)
            .order_by(Challenge.created_at.desc(), Challenge.id.desc())
        )
        return [to_challenge_response(c) for c in result.scalars().all()]
