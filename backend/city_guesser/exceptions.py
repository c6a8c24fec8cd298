"""Errors raised by the game engine and its storage collaborators.

None of these leave a game session half-updated: every engine operation
returns a new session, so the session the caller holds is untouched when
one of these is raised.
"""


class GameError(Exception):
    """Base class for all game errors."""


class NoEligibleLocation(GameError):
    """No location satisfies the active selection filter.

    Recoverable: the caller may relax the filters or end the game early.
    """


class CityNotFound(GameError):
    """A guess did not resolve to a known city."""

    def __init__(self, reference):
        self.reference = reference
        super().__init__(f"City not found: {reference!r}")


class InvalidGameState(GameError):
    """An operation was invoked in a state that does not allow it."""

    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while game is {getattr(state, 'value', state)}")


class StoreUnavailable(GameError):
    """The location store or score archive failed."""
