"""
🔌 Database Connection Setup - MongoDB

Un único handle de storage por proceso: se crea en el arranque (lifespan),
lo reusan todos los requests y se cierra al apagar.
"""

import logging
from typing import Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import Settings, get_settings
from app.repositories.score_repository import (
    InMemoryScoreRepository,
    MongoScoreRepository,
    ScoreRepository,
)

logger = logging.getLogger(__name__)


class Database:
    """Singleton para la conexión al storage"""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None
    memory: Optional[InMemoryScoreRepository] = None

    @classmethod
    async def connect(cls, settings: Optional[Settings] = None):
        """
        Conecta al storage configurado.

        Sin MONGODB_URI la app no arranca: es un error de configuración,
        no un error por request.
        """
        settings = settings or get_settings()

        if settings.storage_backend == "memory":
            if cls.memory is None:
                cls.memory = InMemoryScoreRepository()
                logger.info("Using in-memory score storage")
            return

        if settings.storage_backend != "mongodb":
            raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")

        if cls.client is None:
            if not settings.mongodb_uri:
                raise ValueError("MONGODB_URI not found in environment variables")

            cls.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                maxPoolSize=10,
                minPoolSize=2,
                serverSelectionTimeoutMS=int(settings.storage_timeout_seconds * 1000),
                tz_aware=True,
            )
            cls.db = cls.client[settings.mongodb_db_name]

            # Test de conexión
            await cls.client.admin.command("ping")
            logger.info("✅ Connected to MongoDB: %s", settings.mongodb_db_name)

    @classmethod
    async def disconnect(cls):
        """Cierra la conexión"""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("❌ Disconnected from MongoDB")
        cls.memory = None

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Retorna la instancia de la base de datos"""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call Database.connect() first.")
        return cls.db

    @classmethod
    def get_repository(cls, settings: Optional[Settings] = None) -> ScoreRepository:
        """Repository de scores sobre el backend conectado"""
        settings = settings or get_settings()

        if cls.memory is not None:
            return cls.memory

        return MongoScoreRepository(
            cls.get_db(),
            collection_prefix=settings.leaderboard_collection_prefix,
            timeout=settings.storage_timeout_seconds,
        )


# ============================================
# 🎯 DEPENDENCY para FastAPI
# ============================================

async def get_score_repository(
    settings: Settings = Depends(get_settings)
) -> ScoreRepository:
    """
    FastAPI dependency para inyectar el store de scores

    En tests se reemplaza con app.dependency_overrides.
    """
    return Database.get_repository(settings)


# ============================================
# 🏗️ CREAR ÍNDICES (al arrancar)
# ============================================

async def create_indexes(settings: Optional[Settings] = None):
    """
    Crea el índice (score desc, seq asc) en las colecciones conocidas.

    Las categorías nuevas lo reciben en su primer insert.
    """
    settings = settings or get_settings()

    if Database.db is None:
        return

    repository = Database.get_repository(settings)
    categories = set(settings.known_categories) | set(await repository.categories())
    await repository.create_indexes(sorted(categories))

    logger.info("✅ Indexes created for %d categories", len(categories))
