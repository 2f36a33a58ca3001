"""Shared test fixtures.

Tests run against a throwaway SQLite file per test (aiosqlite driver) with
the schema built from the ORM metadata. Redis is never initialised, so rate
limiting and event broadcasts are no-ops. Identity tokens are HS256 JWTs
signed with a test secret.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

TEST_JWT_SECRET = "petnet-test-secret-with-at-least-32-bytes"
ADMIN_SUB = "admin-sub"

os.environ["PETNET_JWT_ALGORITHM"] = "HS256"
os.environ["PETNET_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["PETNET_ADMIN_EXTERNAL_IDS"] = f'["{ADMIN_SUB}"]'
os.environ["PETNET_LOG_FORMAT"] = "console"
os.environ["PETNET_RESET_TIMEZONE"] = "America/Los_Angeles"
os.environ["PETNET_DAILY_RESET_HOUR"] = "6"

from petnet.auth.jwt import reset_keys  # noqa: E402
from petnet.auth.service import get_or_create_user  # noqa: E402
from petnet.config import get_settings  # noqa: E402
from petnet.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from petnet.db.base import Base  # noqa: E402
from petnet.db.models import User  # noqa: E402
from petnet.main import create_app  # noqa: E402


def make_token(sub: str, expires_in: timedelta = timedelta(hours=1), **claims: Any) -> str:
    """Mint an identity-provider style token for *sub*."""
    payload = {"sub": sub, "exp": datetime.now(timezone.utc) + expires_in, **claims}
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return make_token


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """``auth_headers("alice", username="alice")`` -> Authorization header dict."""

    def _headers(sub: str, **claims: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(sub, **claims)}"}

    return _headers


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh schema in a per-test SQLite file."""
    get_settings.cache_clear()
    reset_keys()
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'petnet-test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service-level tests and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Any]:
    """Provision a local user the same way the auth dependency does."""

    async def _make(external_id: str, **claims: Any) -> User:
        user, _ = await get_or_create_user(db_session, external_id, claims)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the ASGI app (database initialised by the fixture, not the lifespan)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient) -> AsyncClient:
    """Client carrying a token for a regular user ("user-1")."""
    client.headers["Authorization"] = f"Bearer {make_token('user-1', username='biscuit_mom', name='Biscuit Mom')}"
    return client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(ADMIN_SUB, username='petnet_admin')}"}
