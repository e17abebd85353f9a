"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator

# Set test env vars before any app import
os.environ.setdefault("OIDC_ISSUER", "https://issuer.test/")
os.environ.setdefault("OIDC_AUDIENCE", "goaltracker-api")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")

import pytest_asyncio
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from app.api.deps import get_current_identity
from app.core.database import get_db
from app.core.security import Identity
from app.main import app
from app.models import Base
from app.models.user import User

# In-memory SQLite keeps the suite server-free; point at Postgres to run against it
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Header the identity override reads to act as another user
TEST_USER_HEADER = "X-Test-User"
DEFAULT_TEST_USER = "alice"


def _make_engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)


def override_identity(request: Request) -> Identity:
    """Resolve the caller from a test header instead of a bearer token."""
    sub = request.headers.get(TEST_USER_HEADER, DEFAULT_TEST_USER)
    return Identity(sub=sub, email=f"{sub}@example.com", name=sub.title())


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and identity overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_identity] = override_identity

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    """The default test user, as the identity override would provision it."""
    user = User(sub=DEFAULT_TEST_USER, email=f"{DEFAULT_TEST_USER}@example.com", name="Alice")
    db_session.add(user)
    await db_session.commit()
    return user
