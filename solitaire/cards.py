"""Card and Deck classes - immutable card representations."""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator


class Color(Enum):
    """Card colors."""

    BLACK = auto()
    RED = auto()

    def __str__(self) -> str:
        return self.name.lower()


class Suit(Enum):
    """Card suits, in foundation order."""

    CLUBS = auto()
    SPADES = auto()
    HEARTS = auto()
    DIAMONDS = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.SPADES: "♠",
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
        }
        return symbols[self]

    @property
    def color(self) -> Color:
        """Return the color of the suit."""
        if self in (Suit.HEARTS, Suit.DIAMONDS):
            return Color.RED
        return Color.BLACK

    @property
    def letter(self) -> str:
        """Single-letter code used in card codes (C, S, H, D)."""
        return self.name[0]


class Rank(Enum):
    """Card ranks, ace low."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        if 2 <= self.value <= 9:
            return str(self.value)
        return {
            Rank.ACE: "A",
            Rank.TEN: "X",
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
        }[self]

    def __lt__(self, other: "Rank") -> bool:
        if not isinstance(other, Rank):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: "Rank") -> bool:
        if not isinstance(other, Rank):
            return NotImplemented
        return self.value <= other.value

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE

    @property
    def is_king(self) -> bool:
        """Check if this rank is a King."""
        return self == Rank.KING


NUM_RANKS = len(Rank)
NUM_CARDS = len(Suit) * NUM_RANKS

_RANK_CODES = {
    "A": Rank.ACE,
    "1": Rank.ACE,
    "2": Rank.TWO,
    "3": Rank.THREE,
    "4": Rank.FOUR,
    "5": Rank.FIVE,
    "6": Rank.SIX,
    "7": Rank.SEVEN,
    "8": Rank.EIGHT,
    "9": Rank.NINE,
    "10": Rank.TEN,
    "T": Rank.TEN,
    "X": Rank.TEN,
    "J": Rank.JACK,
    "Q": Rank.QUEEN,
    "K": Rank.KING,
}

_SUIT_CODES = {
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
}


@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable playing card.

    Equality and hashing only look at rank and suit, so a face-down and a
    face-up copy of the same card compare equal.
    """

    rank: Rank
    suit: Suit
    face_up: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        state = "up" if self.face_up else "down"
        return f"Card({self.rank.name}, {self.suit.name}, {state})"

    @property
    def color(self) -> Color:
        """Return the card color."""
        return self.suit.color

    @property
    def code(self) -> str:
        """ASCII code such as 'QH', prefixed with '#' when face down."""
        prefix = "" if self.face_up else "#"
        return f"{prefix}{self.rank}{self.suit.letter}"

    def turned(self, face_up: bool) -> "Card":
        """Return a copy of the card with the given face."""
        if self.face_up == face_up:
            return self
        return replace(self, face_up=face_up)

    def is_opposite_color(self, other: "Card") -> bool:
        """Check if the two cards have different colors."""
        return self.color != other.color

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """
        Create a card from a string like 'AS', '10h', 'X♦' or '#KC'.

        A leading '#' marks the card face down; anything else is face up.
        """
        s = s.strip().upper()
        face_up = True
        if s.startswith("#"):
            face_up = False
            s = s[1:]
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if rank_str not in _RANK_CODES:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_CODES:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_CODES[rank_str], _SUIT_CODES[suit_str], face_up)


def cards_from_strings(codes: Iterable[str]) -> list[Card]:
    """Parse a sequence of card codes."""
    return [Card.from_string(code) for code in codes]


class Deck:
    """A standard 52-card deck. The top of the deck is the end of the list."""

    def __init__(
        self,
        rng: Random | None = None,
        cards: Iterable[Card] | None = None,
    ) -> None:
        """Initialize a deck, in order unless explicit cards are given."""
        self._rng = rng or Random()
        self._cards: list[Card] = []
        if cards is None:
            self.reset()
        else:
            self._cards = [card.turned(False) for card in cards]

    def reset(self) -> None:
        """Reset deck to all 52 cards in order."""
        self._cards = [Card(rank, suit) for suit in Suit for rank in Rank]

    def shuffle(self) -> None:
        """Shuffle the deck."""
        self._rng.shuffle(self._cards)

    def draw(self) -> Card:
        """Draw a card from the top of the deck."""
        if not self._cards:
            raise IndexError("Cannot draw from empty deck")
        return self._cards.pop()

    def copy(self) -> "Deck":
        """Return an independent deck with the same card order."""
        return Deck(rng=self._rng, cards=self._cards)

    @property
    def cards(self) -> tuple[Card, ...]:
        """Cards from bottom to top."""
        return tuple(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Deck):
            return NotImplemented
        return self._cards == other._cards

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)


def new_deck() -> Deck:
    """Return an ordered 52-card deck."""
    return Deck()


def shuffle(deck: Deck, seed: int | str | None = None) -> Deck:
    """
    Return a shuffled copy of ``deck``.

    The same seed always produces the same order. ``seed=None`` uses
    system entropy.
    """
    shuffled = Deck(rng=Random(seed), cards=deck)
    shuffled.shuffle()
    return shuffled
