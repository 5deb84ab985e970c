"""ORM models for users, challenges, participants and progress logs."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from habitstake.db.base import Base, BigIntPK, UTCDateTime

CHALLENGE_TYPES = ("exercise", "no_phone", "study", "custom")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A registered user and their points balance."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


class Challenge(Base):
    """A personal or social challenge.

    Social-only columns (stake_points, is_settled, settled_at) stay at their
    defaults for personal challenges. Participants and winners live in
    challenge_participants.
    """

    __tablename__ = "challenges"
    __table_args__ = (
        CheckConstraint("target_value > 0", name="ck_challenges_target_positive"),
        CheckConstraint("current_value >= 0", name="ck_challenges_current_non_negative"),
        CheckConstraint("stake_points >= 0", name="ck_challenges_stake_non_negative"),
        Index("idx_challenges_owner", "owner_id"),
        Index("idx_challenges_social_active", "is_social", "is_settled", "end_date"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="custom")
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    current_value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    reward_points: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    next_reminder_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # --- Social ---
    is_social: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stake_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_settled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    settled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow
    )


class ChallengeParticipant(Base):
    """Membership of a user in a social challenge, plus their settlement outcome."""

    __tablename__ = "challenge_participants"
    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_challenge_participant"),
        Index("idx_challenge_participants_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    is_winner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payout: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ---------------------------------------------------------------------------
# Progress log (append-only)
# ---------------------------------------------------------------------------


class ProgressLog(Base):
    """One accrual entry. Rows are never updated or deleted."""

    __tablename__ = "progress_logs"
    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_progress_logs_value_non_negative"),
        Index("idx_progress_logs_challenge", "challenge_id"),
        Index("idx_progress_logs_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("challenges.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
