"""
Test configuration and fixtures for Fan League

Every test gets its own in-memory SQLite database, so tests never share rows.
The verification provider is replaced with the mock provider.

Usage:
    pytest tests/
    pytest -m "not integration" tests/
"""

import os

# Settings are read at import time; keep the app away from real services
os.environ.setdefault("VERIFICATION_PROVIDER", "mock")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from fanleague.db.base import Base
from fanleague.db.session import get_db
from fanleague.main import app
from fanleague.models.enums import AdminRole
from fanleague.services.verification import MockVerificationProvider, get_verification_provider

from tests.fixtures.database import (
    create_test_admin,
    create_test_tournament,
    create_test_user,
)

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_PASSWORD = "admin-password"


@pytest.fixture
async def db_engine():
    """
    Create a fresh in-memory database with all tables.

    StaticPool keeps the single in-memory connection alive across sessions.
    """
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data and asserting on it directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def verification_provider() -> MockVerificationProvider:
    return MockVerificationProvider(code="123456")


@pytest.fixture
async def test_client(session_factory, verification_provider) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the app, with the database and provider overridden.
    """
    async def get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_verification_provider] = lambda: verification_provider

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Test data fixtures
@pytest.fixture
async def test_user(async_session):
    return await create_test_user(async_session)


@pytest.fixture
async def test_tournament(async_session):
    return await create_test_tournament(async_session)


@pytest.fixture
async def admin_user(async_session):
    """A regular admin with the default permission set."""
    user = await create_test_user(
        async_session,
        full_name="Admin User",
        email="admin@fanleague.io",
        phone_number="5550000001"
    )
    admin = await create_test_admin(async_session, user, ADMIN_PASSWORD)
    return admin


@pytest.fixture
async def super_admin(async_session):
    user = await create_test_user(
        async_session,
        full_name="Super Admin",
        email="root@fanleague.io",
        phone_number="5550000002"
    )
    return await create_test_admin(async_session, user, ADMIN_PASSWORD, role=AdminRole.SUPER_ADMIN)


async def _login(client: AsyncClient, email: str) -> dict:
    response = await client.post(
        "/api/v1/admin/login",
        json={"email": email, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def admin_headers(test_client, admin_user):
    return await _login(test_client, "admin@fanleague.io")


@pytest.fixture
async def super_admin_headers(test_client, super_admin):
    return await _login(test_client, "root@fanleague.io")
