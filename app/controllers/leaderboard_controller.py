"""
Controlador de leaderboards - Endpoints de scores por dificultad

POST guarda un score; GET devuelve el top 10 de una dificultad
o, sin dificultad, el top 10 unificado de todas.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.core.dependencies import AppSettings, Leaderboard
from app.repositories.score_repository import StorageError
from app.services.leaderboard_service import ValidationError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_score(request: Request, leaderboard: Leaderboard):
    """
    Guardar un nuevo score.

    Body: {name, score, difficulty}. La categoría se crea sola con el primer score.
    Los errores salen como {"error": ...} por el handler de HTTPException de la app.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON body"
        )

    try:
        entry = await leaderboard.submit_payload(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except StorageError:
        logger.exception("Failed to save score")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save score"
        )

    return {"success": True, "data": entry.to_public()}


@router.get("")
async def get_leaderboard(
    leaderboard: Leaderboard,
    settings: AppSettings,
    difficulty: Optional[str] = Query(None, description="Difficulty (category) to rank")
):
    """
    Obtener el top 10.

    Con difficulty: el ranking de esa dificultad ([] si no tiene scores).
    Sin difficulty: el ranking unificado de todas las dificultades.
    """
    if (difficulty is None or not difficulty.strip()) and not settings.unified_leaderboard:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="difficulty is required"
        )

    try:
        if difficulty is not None and difficulty.strip():
            entries = await leaderboard.get_category(difficulty)
        else:
            entries = await leaderboard.get_unified()
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except StorageError:
        logger.exception("Failed to load leaderboard")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load leaderboard"
        )

    return [entry.to_public() for entry in entries]
