"""Shared fixtures: an isolated app per test and a coroutine runner for services."""

import asyncio
from typing import Any, Awaitable, Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.config import Settings
from travel_manager.database import Database
from travel_manager.main import create_app

PASSWORD = "correct horse battery staple"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throw-away SQLite file and static directory."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'travel.db'}",
        STATIC_DIR=str(tmp_path / "static"),
        BCRYPT_ROUNDS=4,
        LOCALE="en",
    )


@pytest.fixture
def run(settings) -> Callable[[Callable[[AsyncSession], Awaitable[Any]]], Any]:
    """
    Run ``scenario(session)`` against the test database and return its result.
    Each call opens and disposes its own engine.
    """
    def _run(scenario):
        async def main():
            db = Database(settings.DATABASE_URL)
            await db.create_all()
            try:
                async with db.session() as session:
                    return await scenario(session)
            finally:
                await db.dispose()

        return asyncio.run(main())

    return _run


@pytest.fixture
def client(settings):
    app = create_app(settings)
    # Session cookies are ``secure``: talk https so the client sends them back.
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client


def register(client: TestClient, email: str, name: str = "Traveller", password: str = PASSWORD):
    client.cookies.clear()
    return client.post(
        "/api/auth/register",
        data={"email": email, "name": name, "password": password},
        follow_redirects=False,
    )


def login(client: TestClient, email: str, password: str = PASSWORD):
    client.cookies.clear()
    return client.post(
        "/api/auth/login",
        data={"email": email, "password": password},
        follow_redirects=False,
    )


def seed_catalogue(client: TestClient) -> dict:
    """Create Paris with two activities through the admin API; needs a signed-in client."""
    client.post("/api/travels/add_town", data={"name": "Paris", "coordinates": "48.8566, 2.3522"})
    towns = client.get("/travels/new").text
    assert "Paris" in towns

    client.post(
        "/api/travels/add_activity",
        data={"name": "Louvre", "description": "Museum", "town": "1", "coordinates": "48.8606, 2.3376"},
    )
    client.post(
        "/api/travels/add_activity",
        data={"name": "Seine walk", "description": "Along the river", "town": "1"},
    )
    activities = client.get("/api/travels/get_activities", params={"town": 1}).json()
    return {"town": 1, "activities": [a["id"] for a in activities]}
