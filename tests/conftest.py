"""
Pytest configuration for DXD Magnate Views.

Provides fixtures for:
- Settings isolation (cached settings cleared around every test)
- Sample task records and a seeded in-memory data store
- Database connection details for integration tests
"""

from __future__ import annotations

import os
from typing import Any, Dict, List

import psycopg
import pytest

from magnate.config import Settings, get_settings
from magnate.datastore import InMemoryDataStore, StaticIdentity
from magnate.domain.kinds import TASK

CLIENT_ID = "client-1"
OTHER_CLIENT_ID = "client-2"


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """
    Clear the cached Settings so env overrides made by a test take effect,
    and keep the test run independent of a developer's local env.
    """
    for name in ("DATASTORE_BACKEND", "SEED_FILE", "DEFAULT_PAGE_SIZE", "DEFAULT_SORT", "NOTIFICATIONS_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_tasks() -> List[Dict[str, Any]]:
    """
    Six tasks owned by two clients, with mixed status casing, one task
    lacking ``createdAt`` and two sharing a timestamp.
    """
    return [
        {
            "id": "t1",
            "title": "Alpha Review",
            "description": "Review the alpha build",
            "status": "pending",
            "priority": "High",
            "type": "review",
            "assignee": {"id": CLIENT_ID, "name": "Ava Stone"},
            "createdAt": "2024-03-01T10:00:00Z",
            "dueDate": "2024-03-10T00:00:00Z",
        },
        {
            "id": "t2",
            "title": "Beta Launch",
            "description": "Ship the beta",
            "status": "approved",
            "priority": "Medium",
            "type": "development",
            "assignee": {"id": CLIENT_ID, "name": "Ava Stone"},
            "createdAt": "2024-03-05T09:30:00Z",
            "dueDate": "2024-03-20T00:00:00Z",
        },
        {
            "id": "t3",
            "title": "Copy edits",
            "description": "Homepage copy",
            "status": "In_Progress",
            "priority": "Low",
            "type": "content",
            "assignee": {"id": CLIENT_ID, "name": "Ava Stone"},
            "createdAt": "2024-03-05T09:30:00Z",
        },
        {
            "id": "t4",
            "title": "Logo refresh",
            "status": "rejected",
            "priority": "Medium",
            "type": "design",
            "assignee": {"id": CLIENT_ID, "name": "Ava Stone"},
        },
        {
            "id": "t5",
            "title": "Analytics setup",
            "description": "Wire up alpha analytics",
            "status": "pending",
            "priority": "High",
            "type": "development",
            "assignee": {"id": OTHER_CLIENT_ID, "name": "Noah Park"},
            "createdAt": "2024-02-20T08:00:00Z",
            "dueDate": "2024-04-01T00:00:00Z",
        },
        {
            "id": "t6",
            "title": "Press kit",
            "status": "archived",
            "assignee": {"id": OTHER_CLIENT_ID, "name": "Noah Park"},
            "createdAt": "2024-01-15T12:00:00Z",
        },
    ]


@pytest.fixture
def memory_store(sample_tasks: List[Dict[str, Any]]) -> InMemoryDataStore:
    return InMemoryDataStore({TASK.collection: sample_tasks})


@pytest.fixture
def identity() -> StaticIdentity:
    return StaticIdentity.for_user_id(CLIENT_ID, email="ava@example.com", display_name="Ava Stone")


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "magnate"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False
