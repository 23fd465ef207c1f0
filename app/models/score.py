import math
from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator

# Rango de los enteros que BSON puede guardar (int64)
MIN_INT_SCORE = -(2 ** 63)
MAX_INT_SCORE = 2 ** 63 - 1

# La categoría termina en un nombre de colección: "leaderboard-<categoria>"
MAX_CATEGORY_BYTES = 100
FORBIDDEN_CATEGORY_CHARS = ("$", "\x00")


def check_category(value: str) -> str:
    """Normaliza una categoría y rechaza las que no pueden ser nombre de colección."""
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    if any(char in value for char in FORBIDDEN_CATEGORY_CHARS):
        raise ValueError("must not contain '$' or NUL characters")
    if len(value.encode("utf-8")) > MAX_CATEGORY_BYTES:
        raise ValueError(f"must be at most {MAX_CATEGORY_BYTES} bytes")
    return value


class ScoreEntry(BaseModel):
    """Registro inmutable de un submit"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    score: Union[int, float]
    category: str = Field(..., alias="difficulty")
    created_at: datetime = Field(..., alias="createdAt")

    def to_public(self) -> dict:
        """Forma pública: {name, score, difficulty, createdAt}"""
        return self.model_dump(by_alias=True, mode="json")


class ScoreSubmission(BaseModel):
    """
    Body del POST /leaderboard

    Modo estricto: "90" no es un score, True tampoco.
    """

    model_config = ConfigDict(extra="ignore")

    name: StrictStr
    score: Union[StrictInt, StrictFloat]
    difficulty: StrictStr

    @field_validator("name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("difficulty")
    @classmethod
    def valid_category(cls, value: str) -> str:
        return check_category(value)

    @field_validator("score")
    @classmethod
    def finite(cls, value):
        # Los int se comparan sin pasar a float: 10**400 no entra en un float
        if isinstance(value, int):
            if not MIN_INT_SCORE <= value <= MAX_INT_SCORE:
                raise ValueError("out of range")
            return value
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value
