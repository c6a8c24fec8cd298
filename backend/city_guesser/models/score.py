from pydantic import BaseModel
from typing import List
from datetime import datetime


class ScoreSaveResponse(BaseModel):
    """Response after archiving a finished game."""
    success: bool = True
    id: int


class HighScoreEntry(BaseModel):
    """High score table entry."""
    username: str
    score: int
    game_mode: str
    rounds: int
    created_at: datetime

    class Config:
        from_attributes = True


class HighScoresResponse(BaseModel):
    """Response with the high score table."""
    entries: List[HighScoreEntry]
