"""Game state enumeration."""

from enum import Enum, auto


class GameState(Enum):
    """
    Game state machine states.

    Flow: DEALING → PLAYING ⇄ STUCK → WON
    """

    # Initial layout being dealt from the stock
    DEALING = auto()

    # Normal play
    PLAYING = auto()

    # No productive move left; legal moves are still accepted
    STUCK = auto()

    # All foundations complete
    WON = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
