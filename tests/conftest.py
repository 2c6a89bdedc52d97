"""Pytest configuration and fixtures."""
import os

# Settings are read at import time; give tests a usable default environment
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from app.config import settings
from app.database import ensure_indexes
from app.main import app
from app.utils.auth import create_access_token


def auth_headers(user_id: str) -> dict:
    """Bearer headers for a user, as the identity provider would issue them."""
    token = create_access_token(user_id=user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Factory fixture returning auth headers for a user id."""
    return auth_headers


@pytest_asyncio.fixture
async def app_client():
    """
    Create a test client with a clean test database.

    This fixture:
    - Creates a test database connection (skips if MongoDB is unreachable)
    - Creates the indexes the services rely on
    - Yields an async HTTP client for testing
    - Cleans up the test database after each test
    """
    test_client = AsyncIOMotorClient(
        settings.mongodb_url, tz_aware=True, serverSelectionTimeoutMS=2000
    )
    try:
        await test_client.admin.command("ping")
    except PyMongoError:
        test_client.close()
        pytest.skip("MongoDB is not available")

    test_db_name = f"{settings.mongodb_db_name}_test"
    test_db = test_client[test_db_name]
    await test_client.drop_database(test_db_name)
    await ensure_indexes(test_db)

    # Override the database dependency
    from app.database import database
    original_db = database.db
    database.db = test_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    # Cleanup: drop test database
    await test_client.drop_database(test_db_name)

    # Restore original database
    database.db = original_db
    test_client.close()
