"""Shared fixtures: a fresh SQLite database per test and an ASGI client bound to it."""

import os
from datetime import date, timedelta
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Tuple

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from httpx import ASGITransport, AsyncClient

from eventdesk.api import deps
from eventdesk.core.database_manager import DatabaseManager
from eventdesk.core.init_db import init_db
from eventdesk.main import app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"

Headers = Dict[str, str]


def auth_headers(token: str) -> Headers:
    return {"Authorization": f"Bearer {token}"}


def event_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "title": "Async Python Workshop",
        "description": "Hands-on asyncio session",
        "category": "workshop",
        "date": (date.today() + timedelta(days=30)).isoformat(),
        "time": "18:30",
        "location": "Room 101",
        "capacity": 10,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def manager(tmp_path: Any) -> AsyncGenerator[DatabaseManager, None]:
    db = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'events.db'}")
    await init_db(db)
    yield db
    await db.close()


@pytest.fixture
async def client(manager: DatabaseManager) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[Any, None]:
        async with manager.get_session() as session:
            yield session

    app.dependency_overrides[deps.get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_headers(client: AsyncClient) -> Headers:
    response = await client.post(
        "/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    return auth_headers(response.json()["token"])


@pytest.fixture
def make_user(
    client: AsyncClient,
) -> Callable[..., Awaitable[Tuple[Headers, Dict[str, Any]]]]:
    """Register a user and return (auth headers, user body)."""

    async def _make_user(
        username: str, password: str = "secret123"
    ) -> Tuple[Headers, Dict[str, Any]]:
        response = await client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return auth_headers(body["token"]), body["user"]

    return _make_user


@pytest.fixture
def make_event(
    client: AsyncClient, admin_headers: Headers
) -> Callable[..., Awaitable[Dict[str, Any]]]:
    """Create an event as the seeded admin and return its body."""

    async def _make_event(**overrides: Any) -> Dict[str, Any]:
        response = await client.post(
            "/api/events", json=event_payload(**overrides), headers=admin_headers
        )
        assert response.status_code == 201, response.text
        event: Dict[str, Any] = response.json()["event"]
        return event

    return _make_event
