"""
Pytest configuration and fixtures for backend tests.

Tests run against an in-memory SQLite database (aiosqlite) that is created
fresh for every test, so no external Postgres is needed:
- ``session``: an AsyncSession bound to the test database
- ``client``: an httpx AsyncClient wired to the app with ``get_session`` overridden
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskboard.db import base  # noqa: E402,F401  # registers every table
from taskboard.db.session import get_session  # noqa: E402
from taskboard.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
async def engine():
    """A private in-memory database per test; StaticPool keeps it on one connection."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_foreign_keys)
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with async_session() as test_session:
        yield test_session


@pytest.fixture
async def client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for API tests, sharing the test session with the app.

    Usage:
        async def test_endpoint(client: AsyncClient):
            response = await client.get("/api/v1/auth/me", headers=get_auth_headers(user))
    """

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()
