"""Heuristic advice: reminder timing, suggestions, success odds, text reports.

Nothing in the core depends on these results being right; failures fall back
to neutral defaults.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from habitstake.challenges.metrics import round_half_up
from habitstake.db.models import Challenge, User

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_HOUR = 18
LOOKBACK = timedelta(days=7)
RECOMMENDED_BONUS = 10
SUGGESTION_COUNT = 3

BASE_SUGGESTIONS: list[dict] = [
    {
        "title": "Morning run",
        "type": "exercise",
        "description": "Run for 15 minutes every morning",
        "target_value": 7,
        "reward_points": 35,
    },
    {
        "title": "Focused work",
        "type": "no_phone",
        "description": "No phone during working hours",
        "target_value": 5,
        "reward_points": 25,
    },
    {
        "title": "Learn a new skill",
        "type": "study",
        "description": "Study for 30 minutes a day",
        "target_value": 7,
        "reward_points": 35,
    },
    {
        "title": "Early to bed, early to rise",
        "type": "custom",
        "description": "Asleep before 11pm, up before 7am",
        "target_value": 7,
        "reward_points": 35,
    },
]

TYPE_LABELS = {
    "exercise": "Exercise",
    "no_phone": "No phone",
    "study": "Study",
    "custom": "Custom",
}


def default_reminder_time(now: datetime) -> datetime:
    """Today at 18:00 UTC."""
    return now.replace(hour=DEFAULT_REMINDER_HOUR, minute=0, second=0, microsecond=0)


async def calculate_best_reminder_time(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> datetime:
    """Tomorrow at the user's average completion hour over the last week."""
    now = now or datetime.now(timezone.utc)
    # SAVEPOINT: a failed lookup must not abort a caller's enclosing transaction
    try:
        async with db.begin_nested():
            result = await db.execute(
                select(Challenge.completed_at).where(
                    Challenge.owner_id == user_id,
                    Challenge.is_completed.is_(True),
                    Challenge.completed_at >= now - LOOKBACK,
                )
            )
            completed = [ts for ts in result.scalars().all() if ts is not None]
    except SQLAlchemyError:
        logger.warning("Best reminder time lookup failed for user %d", user_id, exc_info=True)
        return default_reminder_time(now)

    if not completed:
        return default_reminder_time(now)

    average_hour = round_half_up(sum(ts.hour for ts in completed) / len(completed)) % 24
    tomorrow = now + timedelta(days=1)
    return tomorrow.replace(hour=average_hour, minute=0, second=0, microsecond=0)


async def _completed_type_counts(db: AsyncSession, user_id: int) -> Counter[str]:
    result = await db.execute(
        select(Challenge.type).where(
            Challenge.owner_id == user_id,
            Challenge.is_completed.is_(True),
        )
    )
    return Counter(result.scalars().all())


async def generate_challenge_suggestions(
    db: AsyncSession,
    user_id: int,
    rng: random.Random | None = None,
) -> list[dict]:
    """Three shuffled suggestions, boosting the user's most-completed type."""
    rng = rng or random.Random()
    counts = await _completed_type_counts(db, user_id)
    favourite = counts.most_common(1)[0][0] if counts else "custom"

    suggestions = []
    for base in BASE_SUGGESTIONS:
        suggestion = dict(base)
        if suggestion["type"] == favourite:
            suggestion["title"] = f"[Recommended] {suggestion['title']}"
            suggestion["reward_points"] += RECOMMENDED_BONUS
        suggestions.append(suggestion)

    rng.shuffle(suggestions)
    return suggestions[:SUGGESTION_COUNT]


async def predict_success_probability(db: AsyncSession, challenge_id: int) -> int:
    """Rough odds (0-100) of finishing, from progress so far."""
    challenge = await db.get(Challenge, challenge_id, populate_existing=True)
    if challenge is None:
        return 50
    if challenge.is_completed:
        return 100
    progress = challenge.current_value / challenge.target_value
    if progress >= 0.5:
        return 80
    if progress >= 0.25:
        return 60
    return 40


def encouragement(rate: int) -> str:
    if rate >= 80:
        return "Outstanding self-discipline. Keep it up!"
    if rate >= 50:
        return "Nice work. Persistence pays off and you are improving."
    if rate > 0:
        return "A good start is half the battle. A little progress every day adds up."
    return "Start your first challenge. Every journey begins with a single step."


async def generate_progress_report(db: AsyncSession, user_id: int) -> str | None:
    """Plain-text summary of a user's challenge record. None for unknown users."""
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        return None

    result = await db.execute(
        select(Challenge.type, Challenge.is_completed).where(Challenge.owner_id == user_id)
    )
    rows = result.all()
    total = len(rows)
    completed_types = [row.type for row in rows if row.is_completed]
    rate = round_half_up(len(completed_types) / total * 100) if total else 0

    favourite = "None yet"
    if completed_types:
        top = Counter(completed_types).most_common(1)[0][0]
        favourite = TYPE_LABELS.get(top, top)

    return "\n".join([
        f"Progress report: {user.username}",
        "=" * 29,
        f"- Total challenges: {total}",
        f"- Completed challenges: {len(completed_types)}",
        f"- Completion rate: {rate}%",
        f"- Most successful type: {favourite}",
        f"- Current points: {user.points}",
        "",
        encouragement(rate),
    ])
