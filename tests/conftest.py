"""
pytest configuration and fixtures for Quote API tests
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from quote_api.app.core.config import settings
from quote_api.app.core.db import get_connection, init_db
from quote_api.app.core.security import create_access_token
from quote_api.app.main import app
from quote_api.app.services.user_service import UserService


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the application at a fresh SQLite file for every test."""
    db_path = tmp_path / "quotes_test.db"
    monkeypatch.setattr(settings, "database_url", str(db_path))
    init_db()
    yield db_path


@pytest.fixture
def client():
    """Test client for the application"""
    return TestClient(app)


@pytest.fixture
def user(database):
    return asyncio.run(UserService.get_or_create_user("alice@example.com", "Alice"))


@pytest.fixture
def other_user(database):
    return asyncio.run(UserService.get_or_create_user("bob@example.com", "Bob"))


@pytest.fixture
def auth_headers(user):
    token = create_access_token({"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(other_user):
    token = create_access_token({"sub": other_user.email})
    return {"Authorization": f"Bearer {token}"}


def count_quotes() -> int:
    conn = get_connection()
    try:
        return conn.execute("SELECT COUNT(*) AS count FROM quotes").fetchone()["count"]
    finally:
        conn.close()


@pytest.fixture
def quote_count():
    """Callable returning the number of rows in the quotes table"""
    return count_quotes
