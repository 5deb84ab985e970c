"""Pydantic schemas for challenge and progress endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ChallengeType = Literal["exercise", "no_phone", "study", "custom"]


# --- Requests ---


class CreateChallengeRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)
    type: ChallengeType = "custom"
    start_date: datetime | None = None
    end_date: datetime
    target_value: float = Field(..., ge=1)
    reward_points: int | None = Field(None, ge=0)


class LogProgressRequest(BaseModel):
    value: float = Field(..., ge=0)
    notes: str = Field("", max_length=500)


# --- Responses ---


class ChallengeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    title: str
    description: str
    type: str
    start_date: datetime
    end_date: datetime
    target_value: float
    current_value: float
    is_completed: bool
    completed_at: datetime | None = None
    reward_points: int
    is_social: bool
    stake_points: int
    is_settled: bool
    next_reminder_at: datetime | None = None
    completion_rate: int
    created_at: datetime


class ProgressLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    challenge_id: int
    value: float
    notes: str
    created_at: datetime


class ChallengeProgressSummary(BaseModel):
    id: int
    title: str
    current_value: float
    target_value: float
    is_completed: bool
    completed_at: datetime | None = None
    completion_rate: int


class ProgressResult(BaseModel):
    progress_log: ProgressLogResponse
    challenge: ChallengeProgressSummary
    reward_granted: int = 0


class HistoryChallenge(BaseModel):
    id: int
    title: str
    start_date: datetime
    end_date: datetime
    current_value: float
    target_value: float
    is_completed: bool


class HistoryStats(BaseModel):
    total_days: int
    completed_days: int
    success_rate: int
    remaining_days: int
    completion_rate: int


class HistoryResponse(BaseModel):
    challenge: HistoryChallenge
    progress_history: list[ProgressLogResponse]
    stats: HistoryStats
