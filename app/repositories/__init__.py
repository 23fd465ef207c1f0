from .score_repository import (
    ScoreRepository,
    MongoScoreRepository,
    InMemoryScoreRepository,
    StorageError,
)

__all__ = [
    "ScoreRepository",
    "MongoScoreRepository",
    "InMemoryScoreRepository",
    "StorageError",
]
