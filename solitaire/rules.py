"""Klondike rule variations."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RuleSet:
    """
    Klondike table rules configuration.

    The defaults are the classic game: draw one card at a time, unlimited
    passes through the stock, and cards may be played back off a foundation.
    """

    # Cards turned from stock to waste per draw (1 or 3)
    draw_count: int = 1

    # Times the waste may be turned back into the stock (None = unlimited)
    max_redeals: int | None = None

    # Foundation tops may be moved back onto a tableau
    allow_foundation_to_tableau: bool = True

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.draw_count not in (1, 3):
            raise ValueError("draw_count must be 1 or 3")
        if self.max_redeals is not None and self.max_redeals < 0:
            raise ValueError("max_redeals must be at least 0")

    @classmethod
    def draw_one(cls) -> "RuleSet":
        """Classic draw-one Klondike."""
        return cls(draw_count=1)

    @classmethod
    def draw_three(cls) -> "RuleSet":
        """Draw-three Klondike, unlimited passes."""
        return cls(draw_count=3)

    @classmethod
    def vegas(cls) -> "RuleSet":
        """Vegas rules: draw three, three passes through the stock."""
        return cls(draw_count=3, max_redeals=2)
