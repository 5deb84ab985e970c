"""Shared test fixtures."""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

os.environ["HABITSTAKE_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("HABITSTAKE_LOG_FORMAT", "console")

from habitstake.auth.jwt import create_access_token, reset_keys  # noqa: E402
from habitstake.challenges.policy import ChallengePolicy  # noqa: E402
from habitstake.config import get_settings  # noqa: E402
from habitstake.database import close_db, get_engine, init_db, session_factory  # noqa: E402
from habitstake.db.base import Base  # noqa: E402
from habitstake.db.models import Challenge, User  # noqa: E402

PASSWORD = "SecureP4ssword"


def _ensure_test_keys() -> tuple[str, str]:
    """Generate an RSA key pair for signing test tokens if none is configured."""
    get_settings.cache_clear()
    settings = get_settings()
    if os.path.exists(settings.jwt_private_key_path) and os.path.exists(settings.jwt_public_key_path):
        return settings.jwt_private_key_path, settings.jwt_public_key_path

    tmpdir = tempfile.mkdtemp(prefix="habitstake_test_keys_")
    private_path = os.path.join(tmpdir, "jwt_private.pem")
    public_path = os.path.join(tmpdir, "jwt_public.pem")

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with open(private_path, "wb") as f:
        f.write(key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ))
    with open(public_path, "wb") as f:
        f.write(key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ))

    os.environ["HABITSTAKE_JWT_PRIVATE_KEY_PATH"] = private_path
    os.environ["HABITSTAKE_JWT_PUBLIC_KEY_PATH"] = public_path
    get_settings.cache_clear()
    reset_keys()
    return private_path, public_path


_ensure_test_keys()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh in-memory schema per test."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions."""
    async with session_factory()() as session:
        yield session


@pytest.fixture
def policy() -> ChallengePolicy:
    return ChallengePolicy()


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against a fresh app. Redis is left uninitialized."""
    from habitstake.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def create_user(db: AsyncSession, username: str, points: int = 100) -> int:
    """Insert a user directly and return its id.

    Returns the id rather than the instance: a rolled-back operation expires
    loaded instances, and touching them afterwards would trigger lazy IO.
    """
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash="not-a-real-hash",
        points=points,
    )
    db.add(user)
    await db.commit()
    return user.id


async def end_challenge(db: AsyncSession, challenge_id: int, ago: timedelta = timedelta(hours=1)) -> None:
    """Move a challenge's end_date into the past."""
    await db.execute(
        update(Challenge)
        .where(Challenge.id == challenge_id)
        .values(end_date=datetime.now(timezone.utc) - ago)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


def auth_headers(user_id: int, username: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, username)}"}


async def register(client: AsyncClient, username: str) -> dict:
    """Register through the API. Returns the token response body."""
    response = await client.post("/api/v1/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": PASSWORD,
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient) -> AsyncClient:
    """Client authenticated as a freshly registered user "alice"."""
    data = await register(client, "alice")
    client.headers["Authorization"] = f"Bearer {data['access_token']}"
    return client
