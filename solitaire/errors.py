"""Exceptions raised by the rule engine."""


class SolitaireError(Exception):
    """Base class for solitaire engine errors."""


class IllegalMoveError(SolitaireError):
    """A move or draw that the rules do not allow. The board is left unchanged."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
