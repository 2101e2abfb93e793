"""Game engine and state management."""

from solitaire.game.events import GameEvent, EventType
from solitaire.game.state import GameState
from solitaire.game.engine import KlondikeGame

__all__ = [
    "GameEvent",
    "EventType",
    "GameState",
    "KlondikeGame",
]
