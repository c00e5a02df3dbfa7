"""Shared fixtures: a fresh app on an in-memory SQLite database per test."""

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from taskmanager.core.config import Settings
from taskmanager.main import create_app

TEST_SECRET = "test-secret-key"
TEST_USERNAME = "testuser"
TEST_PASSWORD = "password123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        JWT_SECRET=TEST_SECRET,
        LOG_LEVEL="DEBUG",
        _env_file=None,
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient]:
    """Test client with the lifespan running, so tables exist."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def db(app: FastAPI, client: TestClient) -> Generator[Session]:
    """Session on the same in-memory database the app uses."""
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def register(client: TestClient, username: str = TEST_USERNAME, password: str = TEST_PASSWORD) -> dict:
    response = client.post("/api/auth/register", json={"username": username, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def registered_user(client: TestClient) -> dict:
    return register(client)


@pytest.fixture
def auth_headers(registered_user: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {registered_user['token']}"}
