"""Advisory endpoints: suggestions, reminder timing, odds, reports."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.advisory.service import (
    calculate_best_reminder_time,
    generate_challenge_suggestions,
    generate_progress_report,
    predict_success_probability,
)
from habitstake.auth.dependencies import get_current_user
from habitstake.database import get_session
from habitstake.db.models import Challenge, User

router = APIRouter(prefix="/api/v1/advisory", tags=["Advisory"])


class SuggestionResponse(BaseModel):
    title: str
    type: str
    description: str
    target_value: int
    reward_points: int


class ReminderTimeResponse(BaseModel):
    remind_at: datetime


class ReportResponse(BaseModel):
    report: str


class SuccessProbabilityResponse(BaseModel):
    challenge_id: int
    probability: int


@router.get("/suggestions", response_model=list[SuggestionResponse])
async def suggestions_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await generate_challenge_suggestions(db, user.id)


@router.get("/reminder-time", response_model=ReminderTimeResponse)
async def reminder_time_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return ReminderTimeResponse(remind_at=await calculate_best_reminder_time(db, user.id))


@router.get("/report", response_model=ReportResponse)
async def report_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    report = await generate_progress_report(db, user.id)
    if report is None:
        raise HTTPException(status_code=404, detail="User not found")
    return ReportResponse(report=report)


@router.get("/challenges/{challenge_id}/success-probability", response_model=SuccessProbabilityResponse)
async def success_probability_endpoint(
    challenge_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Odds of finishing one of the caller's challenges."""
    challenge = await db.get(Challenge, challenge_id)
    if challenge is None:
        raise HTTPException(status_code=404, detail="Challenge not found")
    if challenge.owner_id != user.id:
        raise HTTPException(status_code=403, detail="You do not have access to this challenge")
    return SuccessProbabilityResponse(
        challenge_id=challenge_id,
        probability=await predict_success_probability(db, challenge_id),
    )
