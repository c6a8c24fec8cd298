"""Persistence of finished games and the high score table."""

import logging
from typing import List, Optional, Protocol, Sequence

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models import Guess, Score
from ..exceptions import StoreUnavailable
from ..models.game import GuessRecord
from ..models.score import HighScoreEntry

logger = logging.getLogger(__name__)


class ScoreArchive(Protocol):
    async def record(
        self,
        player_name: str,
        score: int,
        mode: str,
        total_rounds: int,
        guesses: Sequence[GuessRecord],
    ) -> int:
        ...


class SqlScoreArchive:
    """Stores final scores in the ``scores`` and ``guesses`` tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        player_name: str,
        score: int,
        mode: str,
        total_rounds: int,
        guesses: Sequence[GuessRecord],
    ) -> int:
        """
        Save a score and its round history in one transaction.

        Returns:
            Id of the new score row

        Raises:
            StoreUnavailable: if the write fails; nothing is committed
        """
        entry = Score(username=player_name, score=score, game_mode=mode, rounds=total_rounds)
        entry.guesses = [
            Guess(
                round_number=g.round_number,
                actual_city_id=g.actual_location_id,
                guessed_city_id=g.guessed_location_id,
                distance=round(g.distance_km, 2),
                points=g.points,
            )
            for g in guesses
        ]
        try:
            self.db.add(entry)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Saving score for %s failed", player_name)
            raise StoreUnavailable(f"Failed to save score: {e}") from e

        logger.info("Saved score %d for %s (id=%s)", score, player_name, entry.id)
        return entry.id

    async def high_scores(self, mode: Optional[str] = None, limit: int = 10) -> List[HighScoreEntry]:
        """Top scores, optionally for a single game mode."""
        query = select(Score)
        if mode:
            query = query.where(Score.game_mode == mode)
        query = query.order_by(desc(Score.score), Score.created_at).limit(limit)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Reading high scores failed")
            raise StoreUnavailable(f"Failed to fetch high scores: {e}") from e

        return [
            HighScoreEntry(
                username=s.username,
                score=s.score,
                game_mode=s.game_mode,
                rounds=s.rounds,
                created_at=s.created_at,
            )
            for s in result.scalars().all()
        ]
