"""Pydantic schemas for social challenge endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# --- Requests ---


class CreateSocialChallengeRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    stake_points: int = Field(..., gt=0)
    target_value: float | None = Field(None, ge=1)
    end_date: datetime | None = None


# --- Responses ---


class ParticipantRef(BaseModel):
    id: int
    username: str


class SocialChallengeResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str
    stake_points: int
    target_value: float
    end_date: datetime
    is_settled: bool
    participants: list[int]
    total_pot: int


class ActiveSocialChallengeResponse(BaseModel):
    id: int
    title: str
    description: str
    stake_points: int
    target_value: float
    end_date: datetime
    created_at: datetime
    owner: ParticipantRef
    participants: list[ParticipantRef]
    total_pot: int
    days_remaining: int


class UserSocialChallengeResponse(BaseModel):
    id: int
    title: str
    stake_points: int
    end_date: datetime
    is_settled: bool


class SettlementResult(BaseModel):
    challenge_id: int
    title: str
    winners: list[int]
    reward_per_winner: int
    total_pot: int
    settled_at: datetime


class CanJoinResponse(BaseModel):
    challenge_id: int
    can_join: bool
