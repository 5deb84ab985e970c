"""Social challenge staking: creation with stake, joins, and settlement.

Rules:
- Creating a social challenge escrows the creator's stake; the creator is the first participant
- Joining escrows the same stake; only while the challenge is open, once per user
- Only the creator settles, only after end_date, and exactly once
- Every participant is a winner at settlement; the pot is split with integer
  division and any remainder is not distributed
- No funds check and debit can interleave with another debit on the same user
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.challenges.metrics import ceil_days, ensure_utc
from habitstake.challenges.policy import ChallengePolicy
from habitstake.db.models import Challenge, ChallengeParticipant, User
from habitstake.db.unit_of_work import transactional
from habitstake.errors import ErrorKind, Failure
from habitstake.events import CHALLENGE_SETTLED, publish_event
from habitstake.ledger.service import credit, debit, get_balance
from habitstake.social.schemas import (
    ActiveSocialChallengeResponse,
    ParticipantRef,
    SettlementResult,
    SocialChallengeResponse,
    UserSocialChallengeResponse,
)
from habitstake.social.state import SocialState, state_of, validate_transition

logger = logging.getLogger(__name__)

DEFAULT_TARGET_VALUE = 1


def determine_winners(participants: list[User]) -> list[User]:
    """Everyone who staked wins; there is no per-participant completion check."""
    return list(participants)


def split_pot(stake_points: int, participant_count: int, winner_count: int) -> tuple[int, int]:
    """Return (total_pot, reward_per_winner). The remainder is not paid out."""
    total_pot = stake_points * participant_count
    if winner_count == 0:
        return total_pot, 0
    return total_pot, total_pot // winner_count


def _is_valid_stake(stake_points: object) -> bool:
    return isinstance(stake_points, int) and not isinstance(stake_points, bool) and stake_points > 0


class StakingCoordinator:
    """Moves stake points between user ledgers and social challenges."""

    def __init__(self, db: AsyncSession, policy: ChallengePolicy, redis: object | None = None) -> None:
        self.db = db
        self.policy = policy
        self.redis = redis

    # -- queries --------------------------------------------------------------

    async def _lock_challenge(self, challenge_id: int) -> Challenge | None:
        result = await self.db.execute(
            select(Challenge)
            .where(Challenge.id == challenge_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _participant_ids(self, challenge_id: int) -> list[int]:
        result = await self.db.execute(
            select(ChallengeParticipant.user_id)
            .where(ChallengeParticipant.challenge_id == challenge_id)
            .order_by(ChallengeParticipant.joined_at.asc(), ChallengeParticipant.id.asc())
        )
        return list(result.scalars().all())

    async def _is_participant(self, challenge_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(ChallengeParticipant)
            .where(
                ChallengeParticipant.challenge_id == challenge_id,
                ChallengeParticipant.user_id == user_id,
            )
        )
        return result.scalar_one() > 0

    async def _project(self, challenge: Challenge) -> SocialChallengeResponse:
        participants = await self._participant_ids(challenge.id)
        return SocialChallengeResponse(
            id=challenge.id,
            owner_id=challenge.owner_id,
            title=challenge.title,
            description=challenge.description,
            stake_points=challenge.stake_points,
            target_value=challenge.target_value,
            end_date=challenge.end_date,
            is_settled=challenge.is_settled,
            participants=participants,
            total_pot=challenge.stake_points * len(participants),
        )

    # -- create ---------------------------------------------------------------

    @transactional
    async def create_social_challenge(
        self,
        owner_id: int,
        title: str,
        stake_points: int,
        target_value: float | None = None,
        end_date: datetime | None = None,
        description: str | None = None,
        *,
        enforce_minimum: bool = True,
    ) -> SocialChallengeResponse | Failure:
        """Create a social challenge and escrow the creator's stake.

        ``enforce_minimum`` applies the policy's stake minimum. The public API
        passes False and only requires a positive stake.
        """
        title = (title or "").strip()
        if not title:
            return Failure(ErrorKind.VALIDATION_ERROR, "Challenge title is required")
        if not _is_valid_stake(stake_points):
            return Failure(ErrorKind.VALIDATION_ERROR, "Stake points must be a positive integer")
        if enforce_minimum and stake_points < self.policy.stake_minimum:
            return Failure(
                ErrorKind.VALIDATION_ERROR,
                f"Stake points must be at least {self.policy.stake_minimum}",
            )
        if target_value is not None and target_value <= 0:
            return Failure(ErrorKind.VALIDATION_ERROR, "Target value must be positive")

        if await get_balance(self.db, owner_id) is None:
            return Failure(ErrorKind.NOT_FOUND, "User not found")
        if not await debit(self.db, owner_id, stake_points):
            return Failure(ErrorKind.INSUFFICIENT_FUNDS, "Not enough points to stake")

        now = datetime.now(timezone.utc)
        challenge = Challenge(
            owner_id=owner_id,
            title=title,
            description=(description or "").strip(),
            type="custom",
            start_date=now,
            end_date=ensure_utc(end_date) if end_date else now + self.policy.challenge_duration_default,
            target_value=target_value or DEFAULT_TARGET_VALUE,
            current_value=0,
            reward_points=0,
            is_social=True,
            stake_points=stake_points,
            created_at=now,
            updated_at=now,
        )
        self.db.add(challenge)
        await self.db.flush()

        self.db.add(ChallengeParticipant(challenge_id=challenge.id, user_id=owner_id, joined_at=now))
        await self.db.flush()

        projection = await self._project(challenge)
        await self.db.commit()

        logger.info(
            "Social challenge created: %s (id=%d, owner=%d, stake=%d)",
            title, challenge.id, owner_id, stake_points,
        )
        return projection

    # -- join -----------------------------------------------------------------

    @transactional
    async def join_social_challenge(
        self,
        user_id: int,
        challenge_id: int,
    ) -> SocialChallengeResponse | Failure:
        """Escrow the stake and add the user to the participants."""
        challenge = await self._lock_challenge(challenge_id)
        if challenge is None:
            return Failure(ErrorKind.NOT_FOUND, "Challenge not found")
        if not challenge.is_social:
            return Failure(ErrorKind.INVALID_STATE, "This is not a social challenge")

        now = datetime.now(timezone.utc)
        if state_of(challenge, now) is not SocialState.OPEN:
            return Failure(ErrorKind.CHALLENGE_CLOSED, "Challenge has ended and can no longer be joined")
        if await self._is_participant(challenge.id, user_id):
            return Failure(ErrorKind.ALREADY_JOINED, "You have already joined this challenge")

        if await get_balance(self.db, user_id) is None:
            return Failure(ErrorKind.NOT_FOUND, "User not found")
        if not await debit(self.db, user_id, challenge.stake_points):
            return Failure(ErrorKind.INSUFFICIENT_FUNDS, "Not enough points to join this challenge")

        self.db.add(ChallengeParticipant(challenge_id=challenge.id, user_id=user_id, joined_at=now))
        try:
            await self.db.flush()
        except IntegrityError:
            # A concurrent join by the same user won the unique constraint
            return Failure(ErrorKind.ALREADY_JOINED, "You have already joined this challenge")

        projection = await self._project(challenge)
        await self.db.commit()

        logger.info("User %d joined social challenge %d", user_id, challenge.id)
        return projection

    # -- settle ---------------------------------------------------------------

    @transactional
    async def settle_social_challenge(
        self,
        caller_id: int,
        challenge_id: int,
    ) -> SettlementResult | Failure:
        """Close out a finished challenge and pay the pot to the winners."""
        challenge = await self._lock_challenge(challenge_id)
        if challenge is None:
            return Failure(ErrorKind.NOT_FOUND, "Challenge not found")
        if not challenge.is_social:
            return Failure(ErrorKind.INVALID_STATE, "This is not a social challenge")

        now = datetime.now(timezone.utc)
        state = state_of(challenge, now)
        if state is SocialState.OPEN:
            return Failure(ErrorKind.NOT_YET_CLOSED, "Challenge has not ended yet")
        if challenge.owner_id != caller_id:
            return Failure(ErrorKind.FORBIDDEN, "Only the challenge creator can settle it")
        try:
            validate_transition(state, SocialState.SETTLED)
        except ValueError:
            return Failure(ErrorKind.ALREADY_SETTLED, "Challenge has already been settled")

        # Compare-and-swap on is_settled: only one settlement can ever pass this point
        claimed = await self.db.execute(
            update(Challenge)
            .where(Challenge.id == challenge.id, Challenge.is_settled.is_(False))
            .values(is_settled=True, settled_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            return Failure(ErrorKind.ALREADY_SETTLED, "Challenge has already been settled")

        participant_ids = await self._participant_ids(challenge.id)
        users_result = await self.db.execute(select(User).where(User.id.in_(participant_ids)))
        participants = list(users_result.scalars().all())
        winners = determine_winners(participants)

        total_pot, reward_per_winner = split_pot(
            challenge.stake_points, len(participant_ids), len(winners)
        )
        winner_ids = [w.id for w in winners]

        if winners:
            for winner_id in winner_ids:
                await credit(self.db, winner_id, reward_per_winner)
            await self.db.execute(
                update(ChallengeParticipant)
                .where(
                    ChallengeParticipant.challenge_id == challenge.id,
                    ChallengeParticipant.user_id.in_(winner_ids),
                )
                .values(is_winner=True, payout=reward_per_winner)
                .execution_options(synchronize_session=False)
            )
        else:
            logger.info("Social challenge %d settled with no winners; stakes forfeited", challenge.id)

        await self.db.commit()

        logger.info(
            "Social challenge %d settled: pot=%d, winners=%d, reward_each=%d",
            challenge.id, total_pot, len(winner_ids), reward_per_winner,
        )
        await publish_event(self.redis, CHALLENGE_SETTLED, {
            "challenge_id": challenge.id,
            "winners": winner_ids,
            "reward_per_winner": reward_per_winner,
            "total_pot": total_pot,
        })

        return SettlementResult(
            challenge_id=challenge.id,
            title=challenge.title,
            winners=winner_ids,
            reward_per_winner=reward_per_winner,
            total_pot=total_pot,
            settled_at=now,
        )

    # -- read-only ------------------------------------------------------------

    async def get_active_social_challenges(
        self,
        now: datetime | None = None,
    ) -> list[ActiveSocialChallengeResponse]:
        """Social challenges still open for joining, soonest deadline first."""
        now = now or datetime.now(timezone.utc)
        result = await self.db.execute(
            select(Challenge)
            .where(
                Challenge.is_social.is_(True),
                Challenge.is_settled.is_(False),
                Challenge.end_date > now,
            )
            .order_by(Challenge.end_date.asc(), Challenge.id.asc())
            .execution_options(populate_existing=True)
        )
        challenges = list(result.scalars().all())
        if not challenges:
            return []

        ids = [c.id for c in challenges]
        rows = await self.db.execute(
            select(ChallengeParticipant.challenge_id, User.id, User.username)
            .join(User, ChallengeParticipant.user_id == User.id)
            .where(ChallengeParticipant.challenge_id.in_(ids))
            .order_by(ChallengeParticipant.joined_at.asc(), ChallengeParticipant.id.asc())
        )
        roster: dict[int, list[ParticipantRef]] = defaultdict(list)
        for challenge_id, user_id, username in rows:
            roster[challenge_id].append(ParticipantRef(id=user_id, username=username))

        owners = await self.db.execute(
            select(User.id, User.username).where(User.id.in_({c.owner_id for c in challenges}))
        )
        owner_names = dict(owners.all())

        return [
            ActiveSocialChallengeResponse(
                id=c.id,
                title=c.title,
                description=c.description,
                stake_points=c.stake_points,
                target_value=c.target_value,
                end_date=c.end_date,
                created_at=c.created_at,
                owner=ParticipantRef(id=c.owner_id, username=owner_names.get(c.owner_id, "")),
                participants=roster[c.id],
                total_pot=c.stake_points * len(roster[c.id]),
                days_remaining=ceil_days(now, c.end_date),
            )
            for c in challenges
        ]

    async def get_user_social_challenges(self, user_id: int) -> list[UserSocialChallengeResponse]:
        """Social challenges the user takes part in, by deadline."""
        result = await self.db.execute(
            select(Challenge)
            .join(ChallengeParticipant, ChallengeParticipant.challenge_id == Challenge.id)
            .where(Challenge.is_social.is_(True), ChallengeParticipant.user_id == user_id)
            .order_by(Challenge.end_date.asc(), Challenge.id.asc())
            .execution_options(populate_existing=True)
        )
        return [
            UserSocialChallengeResponse(
                id=c.id,
                title=c.title,
                stake_points=c.stake_points,
                end_date=c.end_date,
                is_settled=c.is_settled,
            )
            for c in result.scalars().all()
        ]

    async def can_join_challenge(self, user_id: int, challenge_id: int) -> bool:
        """Whether join_social_challenge would currently succeed. Never mutates."""
        challenge = await self.db.get(Challenge, challenge_id, populate_existing=True)
        if challenge is None or not challenge.is_social:
            return False
        if state_of(challenge, datetime.now(timezone.utc)) is not SocialState.OPEN:
            return False
        if await self._is_participant(challenge.id, user_id):
            return False
        balance = await get_balance(self.db, user_id)
        return balance is not None and balance >= challenge.stake_points
