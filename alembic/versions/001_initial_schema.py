"""Initial schema: users, challenges, participants, progress logs.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# SQLite only autoincrements INTEGER PRIMARY KEY columns
_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
_TS = sa.DateTime(timezone=True)


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "users",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("created_at", _TS, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
    )

    op.create_table(
        "challenges",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=False, server_default=""),
        sa.Column("type", sa.String(16), nullable=False, server_default="custom"),
        sa.Column("start_date", _TS, nullable=False, server_default=sa.func.now()),
        sa.Column("end_date", _TS, nullable=False),
        sa.Column("target_value", sa.Float(), nullable=False),
        sa.Column("current_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", _TS, nullable=True),
        sa.Column("reward_points", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("next_reminder_at", _TS, nullable=True),
        sa.Column("is_social", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("stake_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_settled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("settled_at", _TS, nullable=True),
        sa.Column("created_at", _TS, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", _TS, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("target_value > 0", name="ck_challenges_target_positive"),
        sa.CheckConstraint("current_value >= 0", name="ck_challenges_current_non_negative"),
        sa.CheckConstraint("stake_points >= 0", name="ck_challenges_stake_non_negative"),
    )
    op.create_index("idx_challenges_owner", "challenges", ["owner_id"])
    op.create_index("idx_challenges_social_active", "challenges", ["is_social", "is_settled", "end_date"])

    op.create_table(
        "challenge_participants",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column(
            "challenge_id", sa.BigInteger(), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("joined_at", _TS, nullable=False, server_default=sa.func.now()),
        sa.Column("is_winner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payout", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("challenge_id", "user_id", name="uq_challenge_participant"),
    )
    op.create_index("idx_challenge_participants_user", "challenge_participants", ["user_id"])

    op.create_table(
        "progress_logs",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("challenge_id", sa.BigInteger(), sa.ForeignKey("challenges.id"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("notes", sa.String(500), nullable=False, server_default=""),
        sa.Column("created_at", _TS, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("value >= 0", name="ck_progress_logs_value_non_negative"),
    )
    op.create_index("idx_progress_logs_challenge", "progress_logs", ["challenge_id"])
    op.create_index("idx_progress_logs_user", "progress_logs", ["user_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("progress_logs")
    op.drop_table("challenge_participants")
    op.drop_table("challenges")
    op.drop_table("users")
