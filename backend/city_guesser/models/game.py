from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional, Tuple

from .location import CityResponse, Location, LocationFilter


class GameState(str, Enum):
    NOT_STARTED = "not_started"
    IN_ROUND = "in_round"
    SHOWING_RESULT = "showing_result"
    GAME_OVER = "game_over"


class GameMode(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class InputMode(str, Enum):
    DROPDOWN = "dropdown"
    AUTOCOMPLETE = "autocomplete"
    FREETEXT = "freetext"


class ModeSettings(BaseModel):
    """How the client should present a round for a difficulty mode."""
    input_mode: InputMode
    country_borders: bool
    state_borders: bool = False
    terrain_layer: bool

    class Config:
        frozen = True


MODE_PRESETS: Dict[GameMode, ModeSettings] = {
    GameMode.EASY: ModeSettings(input_mode=InputMode.DROPDOWN, country_borders=True, terrain_layer=True),
    GameMode.MEDIUM: ModeSettings(input_mode=InputMode.AUTOCOMPLETE, country_borders=True, terrain_layer=False),
    GameMode.HARD: ModeSettings(input_mode=InputMode.FREETEXT, country_borders=False, terrain_layer=False),
}


class GuessRecord(BaseModel):
    """Result of one round. Append-only."""
    round_number: int
    actual_location_id: int
    guessed_location_id: int
    distance_km: float
    points: int
    actual_name: Optional[str] = None
    guessed_name: Optional[str] = None

    class Config:
        frozen = True


class GameSession(BaseModel):
    """
    Complete state of one game.

    Sessions are immutable: every transition in GameEngine returns a new
    session, so a failed operation leaves the caller's copy as it was.
    """
    player_name: str = Field(min_length=1)
    mode: GameMode = GameMode.MEDIUM
    filters: LocationFilter = LocationFilter()
    state: GameState = GameState.NOT_STARTED
    current_round: int = 0
    total_rounds: int = Field(default=5, ge=1)
    score: int = 0
    guesses: Tuple[GuessRecord, ...] = ()
    target: Optional[Location] = None
    used_location_ids: Tuple[int, ...] = ()

    class Config:
        frozen = True

    @property
    def mode_settings(self) -> ModeSettings:
        return MODE_PRESETS[self.mode]

    @property
    def last_guess(self) -> Optional[GuessRecord]:
        return self.guesses[-1] if self.guesses else None

    @property
    def target_revealed(self) -> bool:
        """The target's identity stays hidden until a guess is in."""
        return self.state == GameState.SHOWING_RESULT

    def selection_filter(self) -> LocationFilter:
        """Active filters plus every location already used this game."""
        return self.filters.excluding(self.used_location_ids)


# API schemas

class GameStartRequest(BaseModel):
    """Request to create a new game."""
    player_name: str = Field(min_length=1, max_length=50)
    mode: GameMode = GameMode.MEDIUM
    countries: List[str] = []
    min_population: Optional[int] = Field(default=None, ge=0)
    total_rounds: Optional[int] = Field(default=None, ge=1)


class GuessRequest(BaseModel):
    """A guess either by city id (dropdown/autocomplete) or by free text."""
    city_id: Optional[int] = None
    name: Optional[str] = None

    @model_validator(mode="after")
    def check_one_reference(self):
        if self.city_id is None and not (self.name and self.name.strip()):
            raise ValueError("Either city_id or name is required")
        return self

    @property
    def reference(self):
        return self.city_id if self.city_id is not None else self.name.strip()


class Position(BaseModel):
    """Map position of the current target."""
    latitude: float
    longitude: float


class GuessResult(BaseModel):
    """Round result shown after a guess."""
    round_number: int
    actual_city_id: int
    actual_city_name: Optional[str] = None
    guessed_city_id: int
    guessed_city_name: Optional[str] = None
    distance_km: float
    points: int


class GameStateResponse(BaseModel):
    """Current state of a game as seen by the player."""
    game_id: str
    player_name: str
    mode: GameMode
    settings: ModeSettings
    state: GameState
    current_round: int
    total_rounds: int
    score: int
    target_position: Optional[Position] = None
    target: Optional[CityResponse] = None
    last_result: Optional[GuessResult] = None
    guesses: List[GuessResult] = []
    is_saved: bool = False


class GuessResponse(BaseModel):
    """Response after submitting a guess."""
    result: GuessResult
    actual: CityResponse
    guessed: CityResponse
    score: int
    game_completed: bool
