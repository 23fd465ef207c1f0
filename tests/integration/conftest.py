"""
Fixtures for integration tests
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.core.config import Settings, get_settings
from app.database import get_score_repository


@pytest.fixture
def test_settings() -> Settings:
    """Settings de test: storage en memoria, ranking unificado habilitado."""
    return Settings(
        storage_backend="memory",
        leaderboard_categories="easy,medium,hard",
        discover_categories=True,
        unified_leaderboard=True,
        leaderboard_size=10,
    )


@pytest.fixture
async def client(memory_repo, test_settings):
    """
    HTTP client for testing API endpoints.

    Overrides the storage and settings dependencies; the lifespan never runs.
    """
    app.dependency_overrides[get_score_repository] = lambda: memory_repo
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
