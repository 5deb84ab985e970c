"""Progress history: ordering, access control and derived stats."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from habitstake.challenges.history import get_history, list_entries
from habitstake.challenges.progress import ProgressEngine
from habitstake.db.models import Challenge
from habitstake.errors import ErrorKind, Failure
from tests.conftest import create_user


async def _challenge(db, owner_id: int, start: datetime, end: datetime, target: float = 10) -> int:
    challenge = Challenge(owner_id=owner_id, title="Meditate", start_date=start, end_date=end, target_value=target)
    db.add(challenge)
    await db.commit()
    return challenge.id


class TestGetHistory:
    @pytest.mark.asyncio
    async def test_newest_first_with_stats(self, db_session, policy):
        owner = await create_user(db_session, "owner")
        now = datetime.now(timezone.utc)
        challenge_id = await _challenge(db_session, owner, now - timedelta(days=2), now + timedelta(days=5), target=8)

        engine = ProgressEngine(db_session, policy)
        for value in (2, 0, 3):
            await engine.apply_progress(challenge_id, owner, value)

        history = await get_history(db_session, challenge_id, owner, now=now)
        assert not isinstance(history, Failure)
        assert [entry.value for entry in history.progress_history] == [3, 0, 2]
        assert history.challenge.current_value == 5

        stats = history.stats
        assert stats.total_days == 7
        assert stats.completed_days == 3
        assert stats.success_rate == 67
        assert stats.remaining_days == 5
        assert stats.completion_rate == 63

    @pytest.mark.asyncio
    async def test_empty_history(self, db_session):
        owner = await create_user(db_session, "owner")
        now = datetime.now(timezone.utc)
        challenge_id = await _challenge(db_session, owner, now, now + timedelta(days=3))

        history = await get_history(db_session, challenge_id, owner, now=now)
        assert history.progress_history == []
        assert history.stats.completed_days == 0
        assert history.stats.success_rate == 0
        assert history.stats.completion_rate == 0

    @pytest.mark.asyncio
    async def test_remaining_days_never_negative(self, db_session):
        owner = await create_user(db_session, "owner")
        now = datetime.now(timezone.utc)
        challenge_id = await _challenge(db_session, owner, now - timedelta(days=10), now - timedelta(days=3))

        history = await get_history(db_session, challenge_id, owner, now=now)
        assert history.stats.remaining_days == 0
        assert history.stats.total_days == 7

    @pytest.mark.asyncio
    async def test_not_found(self, db_session):
        owner = await create_user(db_session, "owner")
        result = await get_history(db_session, 77, owner)
        assert isinstance(result, Failure)
        assert result.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_forbidden_for_others(self, db_session):
        owner = await create_user(db_session, "owner")
        other = await create_user(db_session, "other")
        now = datetime.now(timezone.utc)
        challenge_id = await _challenge(db_session, owner, now, now + timedelta(days=3))

        result = await get_history(db_session, challenge_id, other)
        assert isinstance(result, Failure)
        assert result.kind == ErrorKind.FORBIDDEN


@pytest.mark.asyncio
async def test_list_entries_scoped_to_challenge(db_session, policy):
    owner = await create_user(db_session, "owner")
    now = datetime.now(timezone.utc)
    first = await _challenge(db_session, owner, now, now + timedelta(days=3))
    second = await _challenge(db_session, owner, now, now + timedelta(days=3))

    engine = ProgressEngine(db_session, policy)
    await engine.apply_progress(first, owner, 1)
    await engine.apply_progress(second, owner, 2)
    await engine.apply_progress(first, owner, 3)

    entries = await list_entries(db_session, first)
    assert [e.value for e in entries] == [3, 1]
