"""API test fixtures: ASGI client over in-memory SQLite and a scripted GitHub source.

Invariants:
    - db_manager singleton patched to the per-test in-memory manager
    - get_github_service overridden with FakeRepoSource (no network)
    - Active searches cleared before and after every test
"""

import pytest
from httpx import ASGITransport, AsyncClient

import reposearch.infrastructure.database as db_module
from reposearch.api.routes import repo_search
from reposearch.infrastructure.github_client import get_github_service
from reposearch.main import app

from tests.services.fake_github import FakeRepoSource


@pytest.fixture
def fake_github():
    return FakeRepoSource()


@pytest.fixture
async def client(db_manager, fake_github):
    app.dependency_overrides[get_github_service] = lambda: fake_github
    original_manager = db_module.db_manager
    db_module.db_manager = db_manager
    repo_search._active_searches.clear()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    repo_search._active_searches.clear()
    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
