"""
Shared fixtures.

The environment is pinned before the application is imported: an in-memory
SQLite database (fresh for every TestClient context, because shutdown
disposes the engine), eager Celery tasks and mock notifications.
"""

import os

os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["REDIS_URL"] = "redis://localhost:6399/0"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SEED_MENU"] = "true"

import pytest
from fastapi.testclient import TestClient

from quickserve.database import async_session_maker
from quickserve.main import app
from quickserve.services.notifications import get_notification_service


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def notifications():
    """The cached mock notification service, reset and made deterministic."""
    service = get_notification_service()
    service.failure_rate = 0.0
    service.sent.clear()
    return service


@pytest.fixture
def register_user(client):
    """Factory: register an account and return ``(headers, user)``."""

    def _register(name="Alice", email="a@x.com", password="secret1"):
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _register


@pytest.fixture
def alice(register_user):
    return register_user()


@pytest.fixture
def run_db(client):
    """Run ``fn(session)`` on the application's event loop and database."""

    def _run(fn):
        async def runner():
            async with async_session_maker() as session:
                return await fn(session)

        return client.portal.call(runner)

    return _run
