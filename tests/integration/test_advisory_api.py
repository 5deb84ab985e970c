"""Advisory endpoints over HTTP."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests.conftest import register


@pytest.mark.asyncio
async def test_suggestions(authed_client: AsyncClient) -> None:
    response = await authed_client.get("/api/v1/advisory/suggestions")
    assert response.status_code == 200
    assert len(response.json()) == 3


@pytest.mark.asyncio
async def test_reminder_time(authed_client: AsyncClient) -> None:
    response = await authed_client.get("/api/v1/advisory/reminder-time")
    assert response.status_code == 200
    remind_at = datetime.fromisoformat(response.json()["remind_at"])
    assert remind_at.hour == 18


@pytest.mark.asyncio
async def test_report(authed_client: AsyncClient) -> None:
    response = await authed_client.get("/api/v1/advisory/report")
    assert response.status_code == 200
    assert response.json()["report"].startswith("Progress report: alice")


@pytest.mark.asyncio
async def test_success_probability_owner_only(authed_client: AsyncClient) -> None:
    created = await authed_client.post("/api/v1/challenges", json={
        "title": "Run",
        "end_date": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
        "target_value": 4,
    })
    challenge_id = created.json()["id"]
    await authed_client.post(f"/api/v1/challenges/{challenge_id}/progress", json={"value": 1})

    response = await authed_client.get(f"/api/v1/advisory/challenges/{challenge_id}/success-probability")
    assert response.status_code == 200
    assert response.json() == {"challenge_id": challenge_id, "probability": 60}

    bob = await register(authed_client, "bob")
    response = await authed_client.get(
        f"/api/v1/advisory/challenges/{challenge_id}/success-probability",
        headers={"Authorization": f"Bearer {bob['access_token']}"},
    )
    assert response.status_code == 403

    response = await authed_client.get("/api/v1/advisory/challenges/999/success-probability")
    assert response.status_code == 404
