"""Social challenge endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.auth.dependencies import get_current_user
from habitstake.challenges.policy import ChallengePolicy
from habitstake.database import get_session
from habitstake.db.models import User
from habitstake.dependencies import get_policy, get_redis_dep
from habitstake.errors import raise_for_failure
from habitstake.social.coordinator import StakingCoordinator
from habitstake.social.schemas import (
    ActiveSocialChallengeResponse,
    CanJoinResponse,
    CreateSocialChallengeRequest,
    SettlementResult,
    SocialChallengeResponse,
    UserSocialChallengeResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/social", tags=["Social"])


def _coordinator(
    db: AsyncSession = Depends(get_session),
    policy: ChallengePolicy = Depends(get_policy),
    redis: object = Depends(get_redis_dep),
) -> StakingCoordinator:
    return StakingCoordinator(db, policy, redis)


@router.post("/challenges", response_model=SocialChallengeResponse, status_code=201)
async def create_social_challenge_endpoint(
    body: CreateSocialChallengeRequest,
    user: User = Depends(get_current_user),
    coordinator: StakingCoordinator = Depends(_coordinator),
):
    """Create a social challenge, escrowing the creator's stake."""
    # The API only requires a positive stake; the policy minimum is for service callers
    result = await coordinator.create_social_challenge(
        user.id,
        body.title,
        body.stake_points,
        target_value=body.target_value,
        end_date=body.end_date,
        description=body.description,
        enforce_minimum=False,
    )
    challenge = raise_for_failure(result)
    logger.info("social_challenge_created", challenge_id=challenge.id, user_id=user.id)
    return challenge


@router.get("/challenges", response_model=list[ActiveSocialChallengeResponse])
async def list_active_social_challenges_endpoint(
    _user: User = Depends(get_current_user),
    coordinator: StakingCoordinator = Depends(_coordinator),
):
    """Open social challenges that have not been settled."""
    return await coordinator.get_active_social_challenges()


@router.get("/challenges/mine", response_model=list[UserSocialChallengeResponse])
async def list_my_social_challenges_endpoint(
    user: User = Depends(get_current_user),
    coordinator: StakingCoordinator = Depends(_coordinator),
):
    """Social challenges the caller takes part in."""
    return await coordinator.get_user_social_challenges(user.id)


@router.get("/challenges/{challenge_id}/can-join", response_model=CanJoinResponse)
async def can_join_endpoint(
    challenge_id: int,
    user: User = Depends(get_current_user),
    coordinator: StakingCoordinator = Depends(_coordinator),
):
    """Pre-check whether the caller could join right now."""
    return CanJoinResponse(
        challenge_id=challenge_id,
        can_join=await coordinator.can_join_challenge(user.id, challenge_id),
    )


@router.post("/challenges/{challenge_id}/join", response_model=SocialChallengeResponse)
async def join_social_challenge_endpoint(
    challenge_id: int,
    user: User = Depends(get_current_user),
    coordinator: StakingCoordinator = Depends(_coordinator),
):
    """Join a social challenge, escrowing the stake."""
    result = await coordinator.join_social_challenge(user.id, challenge_id)
    challenge = raise_for_failure(result)
    logger.info("social_challenge_joined", challenge_id=challenge_id, user_id=user.id)
    return challenge


@router.post("/challenges/{challenge_id}/settle", response_model=SettlementResult)
async def settle_social_challenge_endpoint(
    challenge_id: int,
    user: User = Depends(get_current_user),
    coordinator: StakingCoordinator = Depends(_coordinator),
):
    """Settle a finished social challenge (creator only)."""
    result = await coordinator.settle_social_challenge(user.id, challenge_id)
    settlement = raise_for_failure(result)
    logger.info(
        "social_challenge_settled",
        challenge_id=challenge_id,
        winners=len(settlement.winners),
        reward_per_winner=settlement.reward_per_winner,
    )
    return settlement
