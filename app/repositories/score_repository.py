"""
ScoreRepository - Colecciones de scores ordenadas por categoría

Cada categoría (dificultad) es un conjunto ordenado por score desc,
con desempate por orden de inserción. Las categorías se crean solas
con el primer insert.

Dos implementaciones:
- MongoScoreRepository: una colección por categoría ("leaderboard-<categoria>")
- InMemoryScoreRepository: listas ordenadas en memoria (desarrollo/tests)
"""

import asyncio
import bisect
import itertools
import logging
import re
from abc import ABC, abstractmethod
from typing import Awaitable, Optional, TypeVar

from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from app.models.score import ScoreEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

COUNTERS_COLLECTION = "leaderboard_counters"


class StorageError(Exception):
    """Raised when the backing store is unreachable, times out or rejects an operation."""
    pass


class ScoreRepository(ABC):
    """Contrato común de los stores de scores."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def _bounded(self, operation: Awaitable[T], action: str) -> T:
        """Ejecuta una operación del storage con timeout; todo fallo sale como StorageError."""
        try:
            if self.timeout is None:
                return await operation
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise StorageError(f"Storage timed out during {action}")
        except (PyMongoError, BSONError, OverflowError) as e:
            # El mensaje original puede traer el host: no se propaga
            logger.debug("Storage failure during %s: %s", action, type(e).__name__)
            raise StorageError(f"Storage failed during {action}") from e

    @abstractmethod
    async def insert(self, category: str, entry: ScoreEntry) -> ScoreEntry:
        """Agrega el entry a la categoría. Acepta scores y nombres duplicados."""

    @abstractmethod
    async def top_n(self, category: str, n: int) -> list[ScoreEntry]:
        """Los n mejores de la categoría; [] si la categoría no existe."""

    @abstractmethod
    async def categories(self) -> list[str]:
        """Categorías que recibieron al menos un submit, ordenadas por nombre."""


class MongoScoreRepository(ScoreRepository):
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_prefix: str = "leaderboard-",
        timeout: Optional[float] = None
    ):
        super().__init__(timeout)
        self.db = db
        self.collection_prefix = collection_prefix
        self.counters = db[COUNTERS_COLLECTION]

    def _collection(self, category: str):
        return self.db[f"{self.collection_prefix}{category}"]

    async def _next_seq(self, category: str) -> int:
        """Secuencia atómica por categoría: define el orden de inserción."""
        counter = await self.counters.find_one_and_update(
            {"_id": category},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return counter["seq"]

    async def _insert(self, category: str, entry: ScoreEntry) -> ScoreEntry:
        seq = await self._next_seq(category)
        doc = entry.model_dump(by_alias=True)
        doc["seq"] = seq
        collection = self._collection(category)
        if seq == 1:
            # Primer score de una categoría nueva: índice antes del primer top-N
            await self._create_index(collection)
        await collection.insert_one(doc)
        return entry

    async def insert(self, category: str, entry: ScoreEntry) -> ScoreEntry:
        return await self._bounded(self._insert(category, entry), "insert")

    async def _top_n(self, category: str, n: int) -> list[ScoreEntry]:
        cursor = self._collection(category).find(
            {},
            {"_id": 0, "seq": 0}
        ).sort([("score", DESCENDING), ("seq", ASCENDING)]).limit(n)

        docs = await cursor.to_list(length=n)
        return [ScoreEntry(**doc) for doc in docs]

    async def top_n(self, category: str, n: int) -> list[ScoreEntry]:
        if n <= 0:
            return []
        return await self._bounded(self._top_n(category, n), "top_n")

    async def _categories(self) -> list[str]:
        names = await self.db.list_collection_names(
            filter={"name": {"$regex": f"^{re.escape(self.collection_prefix)}"}}
        )
        prefix_len = len(self.collection_prefix)
        return sorted(name[prefix_len:] for name in names if len(name) > prefix_len)

    async def categories(self) -> list[str]:
        return await self._bounded(self._categories(), "categories")

    @staticmethod
    async def _create_index(collection) -> None:
        """Índice compuesto (score desc, seq asc) para que el top-N no ordene todo el historial."""
        await collection.create_index([("score", DESCENDING), ("seq", ASCENDING)])

    async def create_indexes(self, categories: list[str]) -> None:
        """create_index es idempotente: se puede llamar en cada arranque."""
        for category in categories:
            await self._bounded(
                self._create_index(self._collection(category)),
                "create_index"
            )


class InMemoryScoreRepository(ScoreRepository):
    """
    Store en memoria: una lista ordenada por (-score, seq) por categoría.

    bisect mantiene el orden en cada insert, así el top-N es un slice.
    """

    def __init__(self):
        super().__init__()
        self._rows: dict[str, list[tuple]] = {}
        self._seq = itertools.count(1)

    async def insert(self, category: str, entry: ScoreEntry) -> ScoreEntry:
        rows = self._rows.setdefault(category, [])
        # seq es único, la tupla nunca llega a comparar el entry
        bisect.insort(rows, (-entry.score, next(self._seq), entry))
        return entry

    async def top_n(self, category: str, n: int) -> list[ScoreEntry]:
        if n <= 0:
            return []
        return [row[2] for row in self._rows.get(category, [])[:n]]

    async def categories(self) -> list[str]:
        return sorted(self._rows)
