"""Authentication tests."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import Identity
from app.main import app
from app.models.user import User
from app.services import user_service


@pytest.mark.asyncio
async def test_me_provisions_user(client: AsyncClient):
    """First authenticated call creates the local user."""
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 200
    data = response.json()
    assert data["sub"] == "alice"
    assert data["email"] == "alice@example.com"
    assert data["name"] == "Alice"
    assert set(data) == {"id", "sub", "email", "name", "created_at"}

    again = await client.get("/api/v1/auth/me")
    assert again.json()["id"] == data["id"]


@pytest.mark.asyncio
async def test_me_returns_existing_user(client: AsyncClient, user: User):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 200
    assert response.json()["id"] == str(user.id)


@pytest.mark.asyncio
async def test_logout(client: AsyncClient):
    response = await client.post("/api/v1/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}


@pytest.mark.asyncio
async def test_missing_token_rejected(db_session: AsyncSession):
    """Without the identity override a bearer token is required."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/api/v1/goals/")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_invalid_token_rejected(db_session: AsyncSession):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get(
                "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_ensure_user_uses_userinfo_email(db_session: AsyncSession, monkeypatch):
    async def fake_userinfo(token):
        assert token == "access-token"
        return {"email": "bob@provider.test", "name": "Bob"}

    monkeypatch.setattr(user_service, "fetch_userinfo", fake_userinfo)

    user = await user_service.ensure_user(db_session, Identity(sub="bob"), "access-token")

    assert user.email == "bob@provider.test"
    assert user.name == "Bob"


@pytest.mark.asyncio
async def test_ensure_user_placeholder_when_userinfo_fails(db_session: AsyncSession, monkeypatch):
    async def no_userinfo(token):
        return None

    monkeypatch.setattr(user_service, "fetch_userinfo", no_userinfo)

    user = await user_service.ensure_user(db_session, Identity(sub="carol"), "access-token")

    assert user.email == "user-carol@placeholder.local"
    assert user.name == "User"


@pytest.mark.asyncio
async def test_ensure_user_updates_changed_profile(db_session: AsyncSession, user: User):
    updated = await user_service.ensure_user(
        db_session, Identity(sub=user.sub, email="alice@new.test", name="Alice B")
    )

    assert updated.id == user.id
    assert updated.email == "alice@new.test"
    assert updated.name == "Alice B"
