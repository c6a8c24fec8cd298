"""Round lifecycle: start, guess, advance, finish."""

import logging
import random
from typing import List, Optional, Tuple, Union

from ..exceptions import CityNotFound, InvalidGameState
from ..models.game import GameMode, GameSession, GameState, GuessRecord, InputMode
from ..models.location import Location, LocationFilter
from .locations import LocationStore, select_location
from .scoring import calculate_score, haversine_distance

logger = logging.getLogger(__name__)

GuessReference = Union[int, str]


class GameEngine:
    """
    Drives a GameSession through its states.

    not_started -> in_round -> showing_result -> (in_round | game_over)

    Every method takes the current session and returns a new one. Nothing is
    returned on failure, so the caller's session is never partially updated.
    """

    def __init__(self, store: LocationStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()

    async def start_game(
        self,
        player_name: str,
        mode: GameMode = GameMode.MEDIUM,
        filters: Optional[LocationFilter] = None,
        total_rounds: int = 5,
    ) -> GameSession:
        """
        Create a session and pick the first target.

        Raises:
            ValueError: on an empty player name or fewer than one round
            NoEligibleLocation: when the filters match no city at all
        """
        player_name = player_name.strip()
        if not player_name:
            raise ValueError("Player name is required")
        if total_rounds < 1:
            raise ValueError("A game needs at least one round")

        # The exclusion set is derived from used targets, never taken from input
        filters = (filters or LocationFilter()).model_copy(update={"exclude": frozenset()})
        session = GameSession(
            player_name=player_name,
            mode=GameMode(mode),
            filters=filters,
            total_rounds=total_rounds,
        )
        target = await select_location(self.store, session.selection_filter())

        logger.info("Game started for %s (%s, %d rounds)", player_name, session.mode.value, total_rounds)
        return session.model_copy(update={
            "state": GameState.IN_ROUND,
            "current_round": 1,
            "score": 0,
            "guesses": (),
            "target": target,
            "used_location_ids": (target.id,),
        })

    async def resolve_guess(self, reference: GuessReference) -> Location:
        """Turn a city id or free text name into a Location."""
        if isinstance(reference, str):
            name = reference.strip()
            location = await self.store.find_by_name(name) if name else None
        else:
            location = await self.store.find_by_id(reference)

        if location is None:
            logger.info("Guess %r did not match any city", reference)
            raise CityNotFound(reference)
        return location

    async def submit_guess(
        self, session: GameSession, reference: GuessReference
    ) -> Tuple[GameSession, GuessRecord, Location]:
        """
        Score a guess against the current target.

        Returns:
            The updated session, the new guess record and the guessed location

        Raises:
            InvalidGameState: when no round is in progress
            CityNotFound: when the guess does not resolve
        """
        if session.state != GameState.IN_ROUND or session.target is None:
            raise InvalidGameState("submit a guess", session.state)

        guessed = await self.resolve_guess(reference)
        actual = session.target

        distance = haversine_distance(
            actual.latitude, actual.longitude,
            guessed.latitude, guessed.longitude
        )
        points = calculate_score(distance)

        record = GuessRecord(
            round_number=session.current_round,
            actual_location_id=actual.id,
            guessed_location_id=guessed.id,
            distance_km=distance,
            points=points,
            actual_name=actual.name,
            guessed_name=guessed.name,
        )
        logger.debug(
            "Round %d: guessed %s for %s, %.1f km, %d points",
            record.round_number, guessed.name, actual.name, distance, points
        )
        updated = session.model_copy(update={
            "state": GameState.SHOWING_RESULT,
            "score": session.score + points,
            "guesses": session.guesses + (record,),
        })
        return updated, record, guessed

    async def advance_round(self, session: GameSession) -> GameSession:
        """
        Move past a round result.

        Raises:
            InvalidGameState: unless a round result is showing
            NoEligibleLocation: when every remaining city is filtered out or used
        """
        if session.state != GameState.SHOWING_RESULT:
            raise InvalidGameState("advance the round", session.state)

        next_round = session.current_round + 1
        if next_round > session.total_rounds:
            logger.info("Game over for %s with %d points", session.player_name, session.score)
            return session.model_copy(update={
                "state": GameState.GAME_OVER,
                "current_round": next_round,
                "target": None,
            })

        target = await select_location(self.store, session.selection_filter())
        return session.model_copy(update={
            "state": GameState.IN_ROUND,
            "current_round": next_round,
            "target": target,
            "used_location_ids": session.used_location_ids + (target.id,),
        })

    def end_game(self, session: GameSession) -> GameSession:
        """Finish early after a round result, e.g. when the city pool ran dry."""
        if session.state != GameState.SHOWING_RESULT:
            raise InvalidGameState("end the game", session.state)

        logger.info(
            "Game ended early for %s after %d of %d rounds",
            session.player_name, len(session.guesses), session.total_rounds
        )
        return session.model_copy(update={"state": GameState.GAME_OVER, "target": None})

    async def round_choices(self, session: GameSession, count: int = 5) -> List[Location]:
        """Target plus ``count - 1`` random decoys, shuffled. Dropdown input only."""
        if session.state != GameState.IN_ROUND or session.target is None:
            raise InvalidGameState("list choices", session.state)
        if session.mode_settings.input_mode != InputMode.DROPDOWN:
            raise InvalidGameState(f"list choices in {session.mode.value} mode", session.state)

        decoys = await self.store.sample(max(0, count - 1), exclude=[session.target.id])
        choices = list(decoys) + [session.target]
        self.rng.shuffle(choices)
        return choices
