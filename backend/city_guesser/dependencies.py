from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .database.session import get_db
from .exceptions import CityNotFound, GameError, InvalidGameState, NoEligibleLocation, StoreUnavailable
from .services.game import GameEngine
from .services.locations import SqlLocationStore
from .services.scores import SqlScoreArchive


def get_location_store(db: AsyncSession = Depends(get_db)) -> SqlLocationStore:
    return SqlLocationStore(db)


def get_score_archive(db: AsyncSession = Depends(get_db)) -> SqlScoreArchive:
    return SqlScoreArchive(db)


def get_engine(store: SqlLocationStore = Depends(get_location_store)) -> GameEngine:
    return GameEngine(store)


def http_error(exc: GameError) -> HTTPException:
    """Translate a game error into the HTTP error returned to the client."""
    if isinstance(exc, NoEligibleLocation):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, CityNotFound):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="City not found. Please try another name."
        )
    if isinstance(exc, InvalidGameState):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, StoreUnavailable):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
