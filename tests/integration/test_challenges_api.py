"""Challenge and progress endpoints end to end."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests.conftest import register


def _end(days: int = 7) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


async def _create(client: AsyncClient, **overrides) -> dict:
    body = {"title": "Read 20 pages", "type": "study", "end_date": _end(), "target_value": 10}
    body.update(overrides)
    response = await client.post("/api/v1/challenges", json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_and_list(authed_client: AsyncClient) -> None:
    created = await _create(authed_client)
    assert created["reward_points"] == 50
    assert created["completion_rate"] == 0
    assert created["is_social"] is False

    listed = await authed_client.get("/api/v1/challenges")
    assert listed.status_code == 200
    assert [c["id"] for c in listed.json()] == [created["id"]]


@pytest.mark.asyncio
async def test_create_validation(authed_client: AsyncClient) -> None:
    response = await authed_client.post("/api/v1/challenges", json={
        "title": "Bad", "end_date": _end(), "target_value": 0,
    })
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"

    response = await authed_client.post("/api/v1/challenges", json={
        "title": "Past", "end_date": _end(-1), "target_value": 3,
    })
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_progress_to_completion_rewards_once(authed_client: AsyncClient) -> None:
    challenge = await _create(authed_client)
    path = f"/api/v1/challenges/{challenge['id']}/progress"

    for value, completed in ((4, False), (4, False), (3, True)):
        response = await authed_client.post(path, json={"value": value})
        assert response.status_code == 201, response.text
        assert response.json()["challenge"]["is_completed"] is completed

    body = response.json()
    assert body["challenge"]["current_value"] == 11
    assert body["reward_granted"] == 50

    me = await authed_client.get("/api/v1/auth/me")
    assert me.json()["points"] == 150

    rejected = await authed_client.post(path, json={"value": 1})
    assert rejected.status_code == 400
    assert rejected.json()["code"] == "invalid_state"
    me = await authed_client.get("/api/v1/auth/me")
    assert me.json()["points"] == 150

    history = await authed_client.get(path)
    assert history.status_code == 200
    data = history.json()
    assert [entry["value"] for entry in data["progress_history"]] == [3, 4, 4]
    assert data["stats"]["completed_days"] == 3
    assert data["stats"]["success_rate"] == 100
    assert data["stats"]["completion_rate"] == 100


@pytest.mark.asyncio
async def test_negative_progress_rejected(authed_client: AsyncClient) -> None:
    challenge = await _create(authed_client)
    response = await authed_client.post(f"/api/v1/challenges/{challenge['id']}/progress", json={"value": -1})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_other_users_cannot_touch_challenge(authed_client: AsyncClient) -> None:
    challenge = await _create(authed_client)
    path = f"/api/v1/challenges/{challenge['id']}/progress"

    bob = await register(authed_client, "bob")
    headers = {"Authorization": f"Bearer {bob['access_token']}"}

    response = await authed_client.post(path, json={"value": 1}, headers=headers)
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"

    response = await authed_client.get(path, headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_challenge(authed_client: AsyncClient) -> None:
    response = await authed_client.post("/api/v1/challenges/9999/progress", json={"value": 1})
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient) -> None:
    response = await client.get("/api/v1/challenges")
    assert response.status_code == 401
