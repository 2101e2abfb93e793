"""The Klondike board: stock, waste, foundations and tableaus."""

from collections import Counter
from typing import Any, Iterable, Iterator, Mapping, Sequence

from solitaire.cards import NUM_CARDS, NUM_RANKS, Card, Deck, Rank, Suit, cards_from_strings
from solitaire.pile import NUM_FOUNDATIONS, NUM_TABLEAUS, Pile, PileKind, PileRef

# (round, column) for each card of the initial deal
DEAL_ORDER: tuple[tuple[int, int], ...] = tuple(
    (i, j) for i in range(NUM_TABLEAUS) for j in range(i, NUM_TABLEAUS)
)
DEAL_SIZE = len(DEAL_ORDER)


class Board:
    """
    The full Klondike layout.

    The board owns every pile. Between moves, the cards of all piles together
    are exactly one 52-card deck.
    """

    def __init__(
        self,
        stock: Iterable[Card] = (),
        waste: Iterable[Card] = (),
        foundations: Sequence[Iterable[Card]] | None = None,
        tableaus: Sequence[Iterable[Card]] | None = None,
        redeals: int = 0,
    ) -> None:
        foundations = foundations or [()] * NUM_FOUNDATIONS
        tableaus = tableaus or [()] * NUM_TABLEAUS
        if len(foundations) != NUM_FOUNDATIONS:
            raise ValueError(f"A board has {NUM_FOUNDATIONS} foundations")
        if len(tableaus) != NUM_TABLEAUS:
            raise ValueError(f"A board has {NUM_TABLEAUS} tableaus")

        self.stock = Pile(PileRef.stock(), stock)
        self.waste = Pile(PileRef.waste(), waste)
        self.foundations = [
            Pile(PileRef.foundation(i), cards) for i, cards in enumerate(foundations)
        ]
        self.tableaus = [Pile(PileRef.tableau(i), cards) for i, cards in enumerate(tableaus)]
        self.redeals = redeals
        self._deal_step: int | None = None

    @classmethod
    def from_deck(cls, deck: Deck) -> "Board":
        """A board with the whole deck face down in the stock, ready to deal."""
        board = cls(stock=(card.turned(False) for card in deck))
        board._deal_step = 0
        return board

    @classmethod
    def from_codes(
        cls,
        stock: Sequence[str] = (),
        waste: Sequence[str] = (),
        foundations: Sequence[Sequence[str]] | None = None,
        tableaus: Sequence[Sequence[str]] | None = None,
        redeals: int = 0,
    ) -> "Board":
        """
        Build a board from card codes, e.g. ``tableaus=[["#KC", "QH"], ...]``.

        Missing foundation or tableau lists are treated as empty piles.
        """
        foundation_codes = list(foundations or [])
        foundation_codes += [[]] * (NUM_FOUNDATIONS - len(foundation_codes))
        tableau_codes = list(tableaus or [])
        tableau_codes += [[]] * (NUM_TABLEAUS - len(tableau_codes))
        return cls(
            stock=cards_from_strings(stock),
            waste=cards_from_strings(waste),
            foundations=[cards_from_strings(codes) for codes in foundation_codes],
            tableaus=[cards_from_strings(codes) for codes in tableau_codes],
            redeals=redeals,
        )

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any]) -> "Board":
        """Rebuild a board from the value returned by ``snapshot()``."""
        board = cls.from_codes(
            stock=snapshot["stock"],
            waste=snapshot["waste"],
            foundations=snapshot["foundations"],
            tableaus=snapshot["tableaus"],
            redeals=snapshot.get("redeals", 0),
        )
        board._deal_step = snapshot.get("deal_step")
        return board

    # Dealing

    @property
    def is_dealing(self) -> bool:
        """True while the initial deal is still in progress."""
        return self._deal_step is not None

    @property
    def cards_dealt(self) -> int:
        """Number of tableau cards dealt so far."""
        if self._deal_step is None:
            return DEAL_SIZE
        return self._deal_step

    def deal_one(self) -> bool:
        """
        Deal the next card of the initial layout.

        Round ``i`` puts one card on each tableau from ``i`` onwards; the
        last card a tableau receives is turned face up.

        Returns:
            True once the deal is complete.
        """
        if self._deal_step is None:
            return True
        round_index, column = DEAL_ORDER[self._deal_step]
        card = self.stock.pop()
        if card is None:
            raise ValueError("Stock ran out during the deal")
        self.tableaus[column].push(card.turned(round_index == column))
        self._deal_step += 1
        if self._deal_step == DEAL_SIZE:
            self._deal_step = None
        return self._deal_step is None

    def deal_all(self) -> None:
        """Finish the initial deal."""
        while not self.deal_one():
            pass

    # Access

    def pile(self, ref: PileRef) -> Pile:
        """Return the pile a reference points to."""
        if ref.kind == PileKind.STOCK:
            return self.stock
        if ref.kind == PileKind.WASTE:
            return self.waste
        if ref.kind == PileKind.FOUNDATION:
            return self.foundations[ref.index]
        return self.tableaus[ref.index]

    def foundation_for(self, suit: Suit) -> Pile:
        """The foundation collecting ``suit``."""
        return self.pile(PileRef.foundation_for(suit))

    def foundation_rank(self, suit: Suit) -> int:
        """Highest rank value on the suit's foundation, 0 when empty."""
        return len(self.foundation_for(suit))

    def piles(self) -> list[Pile]:
        """Every pile, in board order."""
        return [self.stock, self.waste, *self.foundations, *self.tableaus]

    def __iter__(self) -> Iterator[Pile]:
        return iter(self.piles())

    def all_cards(self) -> list[Card]:
        """Every card on the board."""
        return [card for pile in self.piles() for card in pile]

    @property
    def card_count(self) -> int:
        return sum(len(pile) for pile in self.piles())

    def is_won(self) -> bool:
        """True iff every foundation holds a complete suit."""
        return all(len(foundation) == NUM_RANKS for foundation in self.foundations)

    def check_integrity(self) -> None:
        """
        Verify the board holds each of the 52 cards exactly once.

        Raises:
            ValueError: listing the missing and duplicated cards.
        """
        counts = Counter((card.rank, card.suit) for card in self.all_cards())
        expected = {(rank, suit) for suit in Suit for rank in Rank}
        missing = sorted(f"{rank}{suit}" for rank, suit in expected - set(counts))
        duplicated = sorted(f"{rank}{suit}" for (rank, suit), n in counts.items() if n > 1)
        if missing or duplicated or sum(counts.values()) != NUM_CARDS:
            raise ValueError(f"Board is not a full deck: missing={missing} duplicated={duplicated}")

    # Values

    def snapshot(self) -> dict[str, object]:
        """A plain value copy of the board, including card faces."""
        return {
            "stock": self.stock.snapshot(),
            "waste": self.waste.snapshot(),
            "foundations": tuple(f.snapshot() for f in self.foundations),
            "tableaus": tuple(t.snapshot() for t in self.tableaus),
            "redeals": self.redeals,
            "deal_step": self._deal_step,
        }

    def clone(self) -> "Board":
        """An independent copy of the board."""
        board = Board(
            stock=self.stock,
            waste=self.waste,
            foundations=self.foundations,
            tableaus=self.tableaus,
            redeals=self.redeals,
        )
        board._deal_step = self._deal_step
        return board

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        return (
            f"Board(stock={len(self.stock)}, waste={len(self.waste)}, "
            f"foundations={[len(f) for f in self.foundations]}, "
            f"tableaus={[len(t) for t in self.tableaus]})"
        )


def deal(deck: Deck) -> Board:
    """Deal a Klondike layout from ``deck``: 28 tableau cards, 24 in the stock."""
    if len(deck) != NUM_CARDS:
        raise ValueError(f"Klondike is dealt from a {NUM_CARDS}-card deck")
    board = Board.from_deck(deck)
    board.deal_all()
    return board
