import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..database.session import get_db
from ..database.models import Game
from ..models.game import (
    GameSession, GameStartRequest, GameStateResponse, GameState,
    GuessRecord, GuessRequest, GuessResponse, GuessResult, Position
)
from ..models.location import CityOption, CityResponse, Location, LocationFilter
from ..models.score import ScoreSaveResponse
from ..dependencies import get_engine, get_score_archive, http_error
from ..exceptions import GameError, InvalidGameState, StoreUnavailable
from ..services.game import GameEngine
from ..services.scores import SqlScoreArchive
from ..config import get_settings

router = APIRouter(prefix="/game", tags=["Game"])
settings = get_settings()
logger = logging.getLogger(__name__)


def _city(location: Location) -> CityResponse:
    return CityResponse(
        id=location.id,
        name=location.name,
        country=location.country,
        country_code=location.country_code,
        latitude=location.latitude,
        longitude=location.longitude,
    )


def _result(record: GuessRecord) -> GuessResult:
    return GuessResult(
        round_number=record.round_number,
        actual_city_id=record.actual_location_id,
        actual_city_name=record.actual_name,
        guessed_city_id=record.guessed_location_id,
        guessed_city_name=record.guessed_name,
        distance_km=record.distance_km,
        points=record.points,
    )


def _state_response(game: Game, session: GameSession) -> GameStateResponse:
    """Player view of a session. The target's identity stays hidden mid-round."""
    target = session.target
    return GameStateResponse(
        game_id=game.id,
        player_name=session.player_name,
        mode=session.mode,
        settings=session.mode_settings,
        state=session.state,
        current_round=session.current_round,
        total_rounds=session.total_rounds,
        score=session.score,
        target_position=Position(latitude=target.latitude, longitude=target.longitude) if target else None,
        target=_city(target) if target and session.target_revealed else None,
        last_result=_result(session.last_guess) if session.target_revealed and session.last_guess else None,
        guesses=[_result(g) for g in session.guesses],
        is_saved=bool(game.is_saved),
    )


async def _load_game(db: AsyncSession, game_id: str) -> Game:
    try:
        game = await db.get(Game, game_id)
    except SQLAlchemyError as e:
        logger.exception("Loading game %s failed", game_id)
        raise http_error(StoreUnavailable(f"Cannot read game: {e}")) from e

    if not game:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Game not found. Start a new game."
        )
    return game


async def _commit(db: AsyncSession, action: str):
    """Commit the request's changes; on failure roll back and answer 503."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to %s", action)
        raise http_error(StoreUnavailable(f"Failed to {action}: {e}")) from e


async def _store_session(db: AsyncSession, game: Game, session: GameSession):
    game.state = session.model_dump(mode="json")
    await _commit(db, "save game")


@router.post("/start", response_model=GameStateResponse, status_code=status.HTTP_201_CREATED)
async def start_game(
    request: GameStartRequest,
    engine: GameEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db)
):
    """Start a new game and pick the first city."""
    total_rounds = request.total_rounds or settings.ROUNDS_PER_GAME
    if total_rounds > settings.MAX_ROUNDS_PER_GAME:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"A game can have at most {settings.MAX_ROUNDS_PER_GAME} rounds."
        )

    min_population = request.min_population
    if min_population is None:
        min_population = settings.DEFAULT_MIN_POPULATION

    filters = LocationFilter(countries=request.countries, min_population=min_population)
    try:
        session = await engine.start_game(request.player_name, request.mode, filters, total_rounds)
    except GameError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    game = Game(id=str(uuid.uuid4()), player_name=session.player_name, is_saved=False)
    db.add(game)
    await _store_session(db, game, session)

    return _state_response(game, session)


@router.get("/{game_id}", response_model=GameStateResponse)
async def get_game(game_id: str, db: AsyncSession = Depends(get_db)):
    """Get the current state of a game."""
    game = await _load_game(db, game_id)
    return _state_response(game, GameSession.model_validate(game.state))


@router.post("/{game_id}/guess", response_model=GuessResponse)
async def submit_guess(
    game_id: str,
    guess: GuessRequest,
    engine: GameEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db)
):
    """Submit a guess for the current round."""
    game = await _load_game(db, game_id)
    session = GameSession.model_validate(game.state)
    actual = session.target

    try:
        session, record, guessed = await engine.submit_guess(session, guess.reference)
    except GameError as e:
        raise http_error(e)

    await _store_session(db, game, session)

    return GuessResponse(
        result=_result(record),
        actual=_city(actual),
        guessed=_city(guessed),
        score=session.score,
        game_completed=record.round_number >= session.total_rounds,
    )


@router.post("/{game_id}/next", response_model=GameStateResponse)
async def next_round(
    game_id: str,
    engine: GameEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db)
):
    """Move on to the next round, or to the game summary after the last one."""
    game = await _load_game(db, game_id)

    try:
        session = await engine.advance_round(GameSession.model_validate(game.state))
    except GameError as e:
        raise http_error(e)

    await _store_session(db, game, session)
    return _state_response(game, session)


@router.post("/{game_id}/end", response_model=GameStateResponse)
async def end_game(
    game_id: str,
    engine: GameEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db)
):
    """End the game after the current round result."""
    game = await _load_game(db, game_id)

    try:
        session = engine.end_game(GameSession.model_validate(game.state))
    except GameError as e:
        raise http_error(e)

    await _store_session(db, game, session)
    return _state_response(game, session)


@router.get("/{game_id}/choices", response_model=List[CityOption])
async def get_choices(
    game_id: str,
    count: Optional[int] = None,
    engine: GameEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db)
):
    """Multiple choice options for the current round (easy mode)."""
    game = await _load_game(db, game_id)
    count = max(2, min(count or settings.CHOICES_PER_ROUND, 10))

    try:
        choices = await engine.round_choices(GameSession.model_validate(game.state), count)
    except GameError as e:
        raise http_error(e)

    return [CityOption(id=c.id, name=c.name, country=c.country) for c in choices]


@router.post("/{game_id}/score", response_model=ScoreSaveResponse, status_code=status.HTTP_201_CREATED)
async def save_score(
    game_id: str,
    archive: SqlScoreArchive = Depends(get_score_archive),
    db: AsyncSession = Depends(get_db)
):
    """Archive the final score of a finished game."""
    game = await _load_game(db, game_id)
    session = GameSession.model_validate(game.state)

    if session.state != GameState.GAME_OVER:
        raise http_error(InvalidGameState("save the score", session.state))
    if game.is_saved:
        raise http_error(InvalidGameState("save the score again", session.state))

    game.is_saved = True
    try:
        score_id = await archive.record(
            session.player_name,
            session.score,
            session.mode.value,
            session.total_rounds,
            session.guesses,
        )
    except GameError as e:
        raise http_error(e)

    return ScoreSaveResponse(id=score_id)


@router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_game(game_id: str, db: AsyncSession = Depends(get_db)):
    """Discard a game."""
    game = await _load_game(db, game_id)
    try:
        await db.delete(game)
    except SQLAlchemyError as e:
        logger.exception("Deleting game %s failed", game_id)
        raise http_error(StoreUnavailable(f"Failed to delete game: {e}")) from e
    await _commit(db, "delete game")
    return None
