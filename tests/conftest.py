"""Root conftest: shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database with both tables
    - No test talks to api.github.com (GITHUB_TOKEN forced to a fake value)
"""

import os

import pytest

# Ensure tests don't accidentally use real credentials or a real database file
os.environ.setdefault("GITHUB_TOKEN", "ghp-test-fake-token")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from reposearch.infrastructure.database import DatabaseSessionManager  # noqa: E402


@pytest.fixture
async def db_manager():
    """Session manager over a private in-memory database."""
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await manager.create_schema()
    yield manager
    await manager.dispose()
