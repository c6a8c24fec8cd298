from fastapi import APIRouter, Depends, Query
from typing import Optional

from ..config import get_settings
from ..dependencies import get_score_archive, http_error
from ..exceptions import GameError
from ..models.game import GameMode
from ..models.score import HighScoresResponse
from ..services.scores import SqlScoreArchive

router = APIRouter(prefix="/scores", tags=["Scores"])
settings = get_settings()


@router.get("/highscores", response_model=HighScoresResponse)
async def get_high_scores(
    mode: Optional[GameMode] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    archive: SqlScoreArchive = Depends(get_score_archive)
):
    """Get the top scores, optionally for one difficulty mode."""
    try:
        entries = await archive.high_scores(
            mode.value if mode else None,
            limit or settings.HIGHSCORES_LIMIT
        )
    except GameError as e:
        raise http_error(e)

    return HighScoresResponse(entries=entries)
