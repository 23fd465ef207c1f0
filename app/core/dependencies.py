"""
Dependencies de FastAPI para inyectar config, storage y servicios
"""

from typing import Annotated

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.database import get_score_repository
from app.repositories.score_repository import ScoreRepository
from app.services.leaderboard_service import LeaderboardService


async def get_leaderboard_service(
    repository: Annotated[ScoreRepository, Depends(get_score_repository)],
    settings: Annotated[Settings, Depends(get_settings)]
) -> LeaderboardService:
    """
    Dependency que arma el LeaderboardService del request.

    El servicio no guarda estado propio: lo único compartido es el store.
    """
    return LeaderboardService(
        repository,
        known_categories=settings.known_categories,
        discover_categories=settings.discover_categories,
        default_n=settings.leaderboard_size,
    )


# Alias de tipos para que se vea mas limpio en los endpoints
AppSettings = Annotated[Settings, Depends(get_settings)]
Leaderboard = Annotated[LeaderboardService, Depends(get_leaderboard_service)]
