"""Pytest configuration and fixtures."""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from worktimer.main import app
from worktimer.config import settings
from worktimer.database import database, ensure_indexes


@pytest_asyncio.fixture
async def test_db():
    """
    In-memory Motor-compatible database, fresh for every test.
    """
    client = AsyncMongoMockClient()
    db = client[f"{settings.mongodb_db_name}_test"]
    await ensure_indexes(db)
    yield db


@pytest_asyncio.fixture
async def app_client(test_db):
    """
    Create a test client bound to the in-memory database.

    This fixture:
    - Points the database dependency at test_db
    - Yields an async HTTP client for testing
    - Restores the original database afterwards
    """
    original_db = database.db
    database.db = test_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    database.db = original_db


@pytest_asyncio.fixture
async def auth_headers(app_client):
    """
    Factory registering a user and returning its Authorization header.
    """
    async def _make(email: str = "test@example.com", password: str = "password123"):
        await app_client.post(
            "/auth/register",
            json={"email": email, "password": password, "name": "Test User"},
        )
        response = await app_client.post(
            "/auth/login",
            json={"email": email, "password": password},
        )
        token = response.json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _make
