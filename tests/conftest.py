"""
Pytest fixtures and configuration for all tests.
"""

import pytest
from datetime import datetime, timezone

from app.models.score import ScoreEntry
from app.repositories.score_repository import InMemoryScoreRepository
from app.services.leaderboard_service import LeaderboardService


def make_entry(name: str, score, category: str = "easy") -> ScoreEntry:
    """Build a ScoreEntry with a fixed timestamp."""
    return ScoreEntry(
        name=name,
        score=score,
        category=category,
        created_at=datetime(2026, 3, 15, tzinfo=timezone.utc)
    )


@pytest.fixture
def memory_repo() -> InMemoryScoreRepository:
    """Fresh in-memory store for each test."""
    return InMemoryScoreRepository()


@pytest.fixture
def service(memory_repo) -> LeaderboardService:
    """LeaderboardService over the in-memory store with the default categories."""
    return LeaderboardService(
        memory_repo,
        known_categories=["easy", "medium", "hard"],
        discover_categories=True,
        default_n=10
    )


@pytest.fixture
def sample_submissions():
    """The three submissions of the reference example."""
    return [
        {"name": "Ana", "score": 50, "difficulty": "easy"},
        {"name": "Bo", "score": 90, "difficulty": "hard"},
        {"name": "Cy", "score": 70, "difficulty": "medium"},
    ]
