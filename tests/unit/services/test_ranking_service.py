"""
Unit tests for CategoryRanker and UnifiedRanker
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from app.repositories.score_repository import StorageError
from app.services.ranking_service import CategoryRanker, UnifiedRanker
from tests.conftest import make_entry


async def seed(repo, rows):
    for name, score, category in rows:
        await repo.insert(category, make_entry(name, score, category))


class TestCategoryRanker:
    """Test suite for the per-category top-N."""

    @pytest.mark.asyncio
    async def test_default_n_is_applied(self, memory_repo):
        await seed(memory_repo, [(f"p{i}", i, "easy") for i in range(25)])
        ranker = CategoryRanker(memory_repo)

        assert len(await ranker.top_n("easy")) == 10
        assert len(await ranker.top_n("easy", 3)) == 3

    @pytest.mark.asyncio
    async def test_delegates_to_repository(self):
        repo = AsyncMock()
        repo.top_n.return_value = []
        ranker = CategoryRanker(repo, default_n=5)

        await ranker.top_n("hard")

        repo.top_n.assert_awaited_once_with("hard", 5)


class TestUnifiedRanker:
    """Test suite for the merged top-N."""

    @pytest.mark.asyncio
    async def test_reference_example(self, memory_repo):
        await seed(memory_repo, [("Ana", 50, "easy"), ("Bo", 90, "hard"), ("Cy", 70, "medium")])
        ranker = UnifiedRanker(CategoryRanker(memory_repo))

        top = await ranker.top_n_overall(["easy", "medium", "hard"])

        assert [(e.name, e.score) for e in top] == [("Bo", 90), ("Cy", 70), ("Ana", 50)]

    @pytest.mark.asyncio
    async def test_merge_is_sorted_subsequence_of_category_tops(self, memory_repo):
        rows = [(f"e{i}", i * 3, "easy") for i in range(12)]
        rows += [(f"m{i}", i * 5, "medium") for i in range(12)]
        rows += [(f"h{i}", i * 7, "hard") for i in range(4)]
        await seed(memory_repo, rows)
        category_ranker = CategoryRanker(memory_repo)
        ranker = UnifiedRanker(category_ranker)

        top = await ranker.top_n_overall(["easy", "medium", "hard"])

        concatenated = []
        for category in ["easy", "medium", "hard"]:
            concatenated += await category_ranker.top_n(category)
        assert len(top) == 10
        assert all(entry in concatenated for entry in top)
        assert [e.score for e in top] == sorted((e.score for e in top), reverse=True)
        assert top[0].score == max(e.score for e in concatenated)

    @pytest.mark.asyncio
    async def test_ties_break_by_rank_then_category_order(self, memory_repo):
        await seed(memory_repo, [
            ("easy-1", 100, "easy"),
            ("easy-2", 80, "easy"),
            ("hard-1", 80, "hard"),
            ("hard-2", 80, "hard"),
            ("medium-1", 80, "medium"),
        ])
        ranker = UnifiedRanker(CategoryRanker(memory_repo))

        top = await ranker.top_n_overall(["hard", "medium", "easy"])

        # rank 0 at 80: hard-1, medium-1; rank 1 at 80: hard-2, easy-2 (hard listed first)
        assert [e.name for e in top] == ["easy-1", "hard-1", "medium-1", "hard-2", "easy-2"]

    @pytest.mark.asyncio
    async def test_empty_categories(self, memory_repo):
        await seed(memory_repo, [("Ana", 5, "easy")])
        ranker = UnifiedRanker(CategoryRanker(memory_repo))

        assert [e.name for e in await ranker.top_n_overall(["easy", "hard"])] == ["Ana"]
        assert await ranker.top_n_overall(["medium", "hard"]) == []

    @pytest.mark.asyncio
    async def test_no_categories_does_not_touch_storage(self):
        repo = AsyncMock()
        ranker = UnifiedRanker(CategoryRanker(repo))

        assert await ranker.top_n_overall([]) == []
        repo.top_n.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_categories_are_queried_once(self):
        repo = AsyncMock()
        repo.top_n.return_value = []
        ranker = UnifiedRanker(CategoryRanker(repo))

        await ranker.top_n_overall(["easy", "easy", "hard"])

        assert repo.top_n.await_count == 2

    @pytest.mark.asyncio
    async def test_one_failure_fails_the_whole_merge(self, memory_repo):
        await seed(memory_repo, [("Ana", 5, "easy")])
        original_top_n = memory_repo.top_n

        async def flaky_top_n(category, n):
            if category == "hard":
                raise StorageError("Storage timed out during top_n")
            return await original_top_n(category, n)

        memory_repo.top_n = flaky_top_n
        ranker = UnifiedRanker(CategoryRanker(memory_repo))

        with pytest.raises(StorageError):
            await ranker.top_n_overall(["easy", "hard"])

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently_and_merge_ignores_completion_order(self, memory_repo):
        await seed(memory_repo, [("slow", 10, "easy"), ("fast", 20, "hard")])
        original_top_n = memory_repo.top_n
        in_flight = 0
        peak = 0

        async def delayed_top_n(category, n):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05 if category == "easy" else 0)
            in_flight -= 1
            return await original_top_n(category, n)

        memory_repo.top_n = delayed_top_n
        ranker = UnifiedRanker(CategoryRanker(memory_repo))

        top = await ranker.top_n_overall(["easy", "hard"])

        assert peak == 2
        assert [e.name for e in top] == ["fast", "slow"]
