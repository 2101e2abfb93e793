"""Piles of cards and references to them."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Sequence

from solitaire.cards import Card, Suit
from solitaire.errors import IllegalMoveError

NUM_TABLEAUS = 7
NUM_FOUNDATIONS = len(Suit)


class PileKind(Enum):
    """The four kinds of Klondike pile."""

    STOCK = "s"
    WASTE = "w"
    FOUNDATION = "f"
    TABLEAU = "t"

    def __str__(self) -> str:
        return self.name.title()


_KIND_ORDER = {
    PileKind.STOCK: 0,
    PileKind.WASTE: 1,
    PileKind.FOUNDATION: 2,
    PileKind.TABLEAU: 3,
}

_KIND_SIZES = {
    PileKind.STOCK: 1,
    PileKind.WASTE: 1,
    PileKind.FOUNDATION: NUM_FOUNDATIONS,
    PileKind.TABLEAU: NUM_TABLEAUS,
}


@dataclass(frozen=True, slots=True)
class PileRef:
    """Reference to a pile on the board: a kind and a zero-based index."""

    kind: PileKind
    index: int = 0

    def __post_init__(self) -> None:
        size = _KIND_SIZES[self.kind]
        if not 0 <= self.index < size:
            raise ValueError(f"{self.kind} index must be between 0 and {size - 1}")

    def __str__(self) -> str:
        if self.kind in (PileKind.STOCK, PileKind.WASTE):
            return self.kind.value
        return f"{self.kind.value}{self.index + 1}"

    @property
    def sort_key(self) -> tuple[int, int]:
        """Board order: stock, waste, foundations, tableaus."""
        return (_KIND_ORDER[self.kind], self.index)

    @property
    def suit(self) -> Suit | None:
        """The suit a foundation collects, None for other piles."""
        if self.kind != PileKind.FOUNDATION:
            return None
        return list(Suit)[self.index]

    @classmethod
    def stock(cls) -> "PileRef":
        return cls(PileKind.STOCK)

    @classmethod
    def waste(cls) -> "PileRef":
        return cls(PileKind.WASTE)

    @classmethod
    def foundation(cls, index: int) -> "PileRef":
        return cls(PileKind.FOUNDATION, index)

    @classmethod
    def foundation_for(cls, suit: Suit) -> "PileRef":
        """The foundation that collects ``suit``."""
        return cls(PileKind.FOUNDATION, list(Suit).index(suit))

    @classmethod
    def tableau(cls, index: int) -> "PileRef":
        return cls(PileKind.TABLEAU, index)

    @classmethod
    def from_string(cls, s: str) -> "PileRef":
        """
        Parse a pile name: 's', 'w', 'f1'..'f4' or 't1'..'t7'.

        Indices are one-based, the way they are shown to players.
        """
        s = s.strip().lower()
        if not s:
            raise ValueError("Empty pile name")
        try:
            kind = PileKind(s[0])
        except ValueError:
            raise ValueError(f"Invalid pile: {s}") from None

        number = s[1:]
        if kind in (PileKind.STOCK, PileKind.WASTE):
            if number:
                raise ValueError(f"Invalid pile: {s}")
            return cls(kind)
        if not number.isdigit():
            raise ValueError(f"Invalid pile: {s}")
        return cls(kind, int(number) - 1)


def all_pile_refs() -> list[PileRef]:
    """Every pile on a Klondike board, in board order."""
    refs = [PileRef.stock(), PileRef.waste()]
    refs += [PileRef.foundation(i) for i in range(NUM_FOUNDATIONS)]
    refs += [PileRef.tableau(i) for i in range(NUM_TABLEAUS)]
    return refs


def builds_down(lower: Card, upper: Card) -> bool:
    """Check if ``upper`` may sit on ``lower`` in a tableau run."""
    return upper.is_opposite_color(lower) and upper.rank.value == lower.rank.value - 1


def is_tableau_run(cards: Sequence[Card]) -> bool:
    """Check if the cards, bottom to top, descend in alternating colors."""
    return all(builds_down(lower, upper) for lower, upper in zip(cards, cards[1:]))


def is_foundation_sequence(cards: Sequence[Card]) -> bool:
    """Check if the cards, bottom to top, ascend in a single suit."""
    return all(
        upper.suit == lower.suit and upper.rank.value == lower.rank.value + 1
        for lower, upper in zip(cards, cards[1:])
    )


class Pile:
    """
    An ordered pile of cards; the end of the list is the top.

    Cards are only added and removed at the top. Tableau runs are taken with
    ``top_run``/``take``, which never reach past a face-down card.
    """

    def __init__(self, ref: PileRef, cards: Iterable[Card] = ()) -> None:
        self.ref = ref
        self._cards: list[Card] = list(cards)

    @property
    def kind(self) -> PileKind:
        return self.ref.kind

    @property
    def cards(self) -> tuple[Card, ...]:
        """Cards from bottom to top."""
        return tuple(self._cards)

    @property
    def is_empty(self) -> bool:
        return not self._cards

    def push(self, card: Card) -> None:
        """Put a card on top."""
        self._cards.append(card)

    def pop(self) -> Card | None:
        """Remove and return the top card, None when empty."""
        if not self._cards:
            return None
        return self._cards.pop()

    def peek(self) -> Card | None:
        """Return the top card without removing it."""
        if not self._cards:
            return None
        return self._cards[-1]

    def extend(self, cards: Iterable[Card]) -> None:
        """Put cards on top, in order (the last one ends on top)."""
        self._cards.extend(cards)

    def top_run(self, n: int) -> tuple[Card, ...]:
        """
        Return the top ``n`` cards, bottom to top.

        Raises:
            IllegalMoveError: if ``n`` is out of range or the run would
                include a face-down card.
        """
        if n < 1:
            raise IllegalMoveError("cannot take fewer than one card")
        if n > len(self._cards):
            raise IllegalMoveError(f"not enough cards in {self.ref}")
        run = tuple(self._cards[-n:])
        if not all(card.face_up for card in run):
            raise IllegalMoveError("cannot take face-down cards")
        return run

    def take(self, n: int) -> list[Card]:
        """Remove and return the top ``n`` addressable cards."""
        run = self.top_run(n)
        del self._cards[-n:]
        return list(run)

    def flip_top(self) -> Card | None:
        """Turn the top card face up; return it if it was face down."""
        top = self.peek()
        if top is None or top.face_up:
            return None
        self._cards[-1] = top.turned(True)
        return self._cards[-1]

    def clear(self) -> list[Card]:
        """Remove and return every card, bottom to top."""
        cards, self._cards = self._cards, []
        return cards

    @property
    def face_up_count(self) -> int:
        """Number of consecutive face-up cards at the top."""
        count = 0
        for card in reversed(self._cards):
            if not card.face_up:
                break
            count += 1
        return count

    def movable_run_length(self) -> int:
        """Length of the longest face-up tableau run at the top."""
        if not self._cards or not self._cards[-1].face_up:
            return 0
        length = 1
        for i in range(len(self._cards) - 1, 0, -1):
            lower, upper = self._cards[i - 1], self._cards[i]
            if not lower.face_up or not builds_down(lower, upper):
                break
            length += 1
        return length

    def snapshot(self) -> tuple[str, ...]:
        """Value snapshot of the pile, including each card's face."""
        return tuple(card.code for card in self._cards)

    def copy(self) -> "Pile":
        return Pile(self.ref, self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pile):
            return NotImplemented
        return self.ref == other.ref and self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        return f"Pile({self.ref}, [{' '.join(self.snapshot())}])"
