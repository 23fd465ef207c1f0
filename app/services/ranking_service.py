"""
Ranking - top-N por categoría y top-N unificado.

CategoryRanker fija el N por defecto sobre el store.
UnifiedRanker consulta todas las categorías en paralelo y mezcla los top-N.
"""

import asyncio
from typing import Iterable, Optional

from app.models.score import ScoreEntry
from app.repositories.score_repository import ScoreRepository

DEFAULT_TOP_N = 10


class CategoryRanker:
    def __init__(self, repository: ScoreRepository, default_n: int = DEFAULT_TOP_N):
        self.repository = repository
        self.default_n = default_n

    async def top_n(self, category: str, n: Optional[int] = None) -> list[ScoreEntry]:
        """Top-N de una categoría, score desc y desempate por orden de inserción."""
        return await self.repository.top_n(category, self.default_n if n is None else n)


class UnifiedRanker:
    def __init__(self, category_ranker: CategoryRanker):
        self.category_ranker = category_ranker

    async def top_n_overall(
        self,
        categories: Iterable[str],
        n: Optional[int] = None
    ) -> list[ScoreEntry]:
        """
        Merge the per-category top-N lists into one global top-N.

        Order: score desc, then rank inside its category, then the position
        of the category in `categories`. A StorageError in any category
        fails the whole call; there is no partial leaderboard.
        """
        if n is None:
            n = self.category_ranker.default_n

        # dict.fromkeys keeps first-seen order and drops repeats
        ordered = list(dict.fromkeys(categories))
        if not ordered or n <= 0:
            return []

        tasks = [
            asyncio.ensure_future(self.category_ranker.top_n(category, n))
            for category in ordered
        ]
        try:
            # gather returns results in task order, not completion order
            results = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        ranked = [
            (entry, rank, category_index)
            for category_index, entries in enumerate(results)
            for rank, entry in enumerate(entries)
        ]
        ranked.sort(key=lambda item: (-item[0].score, item[1], item[2]))

        return [entry for entry, _, _ in ranked[:n]]
