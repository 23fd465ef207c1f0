"""
LeaderboardService - Submits scores and serves per-difficulty and unified rankings.

Input is validated field by field before anything touches storage.
The leaderboard is append-only: there is no update or delete.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from app.models.score import ScoreEntry, ScoreSubmission, check_category
from app.repositories.score_repository import ScoreRepository
from app.services.ranking_service import CategoryRanker, UnifiedRanker, DEFAULT_TOP_N

logger = logging.getLogger(__name__)


class LeaderboardServiceError(Exception):
    """Base exception for leaderboard service errors."""
    pass


class ValidationError(LeaderboardServiceError):
    """Raised when the client sent malformed or missing fields."""
    pass


def _describe(error: PydanticValidationError) -> str:
    """Primer error de pydantic como mensaje corto: 'score: Input should be a valid number'."""
    first = error.errors()[0]
    # En uniones loc es ("score", "int"): alcanza con el campo
    field = str(first["loc"][0]) if first["loc"] else "body"
    message = first["msg"].removeprefix("Value error, ")
    return f"{field}: {message}"


class LeaderboardService:
    def __init__(
        self,
        repository: ScoreRepository,
        known_categories: Optional[list[str]] = None,
        discover_categories: bool = True,
        default_n: int = DEFAULT_TOP_N
    ):
        self.repository = repository
        self.known_categories = list(known_categories or [])
        self.discover_categories = discover_categories
        self.category_ranker = CategoryRanker(repository, default_n)
        self.unified_ranker = UnifiedRanker(self.category_ranker)

    async def submit(self, name: Any, score: Any, category: Any) -> ScoreEntry:
        """
        Validate and store one score.

        Raises ValidationError before any storage call if a field is invalid.
        StorageError from the repository propagates unchanged.
        """
        try:
            submission = ScoreSubmission(name=name, score=score, difficulty=category)
        except PydanticValidationError as e:
            raise ValidationError(_describe(e)) from e

        entry = ScoreEntry(
            name=submission.name,
            score=submission.score,
            category=submission.difficulty,
            created_at=datetime.now(timezone.utc)
        )

        stored = await self.repository.insert(entry.category, entry)
        logger.info("Score accepted: %s=%s in '%s'", stored.name, stored.score, stored.category)
        return stored

    async def submit_payload(self, payload: Any) -> ScoreEntry:
        """Submit desde un body JSON ya parseado: {name, score, difficulty}."""
        if not isinstance(payload, dict):
            raise ValidationError("body: expected a JSON object")
        return await self.submit(
            payload.get("name"),
            payload.get("score"),
            payload.get("difficulty")
        )

    async def get_category(self, category: Optional[str], n: Optional[int] = None) -> list[ScoreEntry]:
        """Top-N de una dificultad. Una categoría vacía devuelve [] (no es un error)."""
        if category is None or not isinstance(category, str) or not category.strip():
            raise ValidationError("difficulty is required")
        try:
            category = check_category(category)
        except ValueError as e:
            raise ValidationError(f"difficulty: {e}") from e
        return await self.category_ranker.top_n(category, n)

    async def unified_categories(self) -> list[str]:
        """
        Categorías del ranking unificado.

        Primero las configuradas (en su orden), después las descubiertas
        en el store que no estén configuradas (alfabético).
        """
        categories = list(self.known_categories)
        if self.discover_categories:
            for category in await self.repository.categories():
                if category not in categories:
                    categories.append(category)
        return categories

    async def get_unified(self, n: Optional[int] = None) -> list[ScoreEntry]:
        """Top-N global mezclando el top-N de cada categoría."""
        categories = await self.unified_categories()
        return await self.unified_ranker.top_n_overall(categories, n)
