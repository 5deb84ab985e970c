"""Registration, login and /me over HTTP."""

import pytest
from httpx import AsyncClient

from tests.conftest import PASSWORD, register


@pytest.mark.asyncio
async def test_register_grants_signup_bonus(client: AsyncClient) -> None:
    data = await register(client, "alice")
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["username"] == "alice"
    assert data["user"]["points"] == 100


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient) -> None:
    await register(client, "alice")
    response = await client.post("/api/v1/auth/register", json={
        "username": "alice2",
        "email": "ALICE@example.com",
        "password": PASSWORD,
    })
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json={
        "username": "alice",
        "email": "alice@example.com",
        "password": "weak",
    })
    assert response.status_code == 400
    assert "at least" in response.json()["detail"]


@pytest.mark.asyncio
async def test_register_invalid_email(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json={
        "username": "alice",
        "email": "not-an-email",
        "password": PASSWORD,
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_and_me(client: AsyncClient) -> None:
    await register(client, "alice")
    response = await client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "alice"
    assert me.json()["points"] == 100


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient) -> None:
    await register(client, "alice")
    response = await client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "Wrong1234"})
    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401
