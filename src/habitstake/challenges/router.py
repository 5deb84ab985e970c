"""Challenge and progress endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.auth.dependencies import get_current_user
from habitstake.challenges.history import get_history
from habitstake.challenges.policy import ChallengePolicy
from habitstake.challenges.progress import ProgressEngine
from habitstake.challenges.schemas import (
    ChallengeResponse,
    CreateChallengeRequest,
    HistoryResponse,
    LogProgressRequest,
    ProgressResult,
)
from habitstake.challenges.service import ChallengeService
from habitstake.database import get_session
from habitstake.db.models import User
from habitstake.dependencies import get_policy, get_redis_dep
from habitstake.errors import raise_for_failure

router = APIRouter(prefix="/api/v1/challenges", tags=["Challenges"])


@router.post("", response_model=ChallengeResponse, status_code=201)
async def create_challenge_endpoint(
    body: CreateChallengeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    policy: ChallengePolicy = Depends(get_policy),
):
    """Create a personal challenge."""
    service = ChallengeService(db, policy)
    return raise_for_failure(await service.create_challenge(
        owner_id=user.id,
        title=body.title,
        end_date=body.end_date,
        target_value=body.target_value,
        description=body.description,
        type=body.type,
        start_date=body.start_date,
        reward_points=body.reward_points,
    ))


@router.get("", response_model=list[ChallengeResponse])
async def list_challenges_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    policy: ChallengePolicy = Depends(get_policy),
):
    """List the caller's own challenges, newest first."""
    return await ChallengeService(db, policy).list_user_challenges(user.id)


@router.post("/{challenge_id}/progress", response_model=ProgressResult, status_code=201)
async def log_progress_endpoint(
    challenge_id: int,
    body: LogProgressRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    policy: ChallengePolicy = Depends(get_policy),
    redis: object = Depends(get_redis_dep),
):
    """Record progress on one of the caller's challenges."""
    engine = ProgressEngine(db, policy, redis)
    return raise_for_failure(await engine.apply_progress(challenge_id, user.id, body.value, body.notes))


@router.get("/{challenge_id}/progress", response_model=HistoryResponse)
async def progress_history_endpoint(
    challenge_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Progress history and stats for one of the caller's challenges."""
    return raise_for_failure(await get_history(db, challenge_id, user.id))
