from .score import ScoreEntry, ScoreSubmission

__all__ = [
    "ScoreEntry",
    "ScoreSubmission",
]
