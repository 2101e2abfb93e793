"""Move legality and application for Klondike."""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

from solitaire.board import Board
from solitaire.cards import Card, Suit
from solitaire.errors import IllegalMoveError
from solitaire.pile import (
    NUM_FOUNDATIONS,
    NUM_TABLEAUS,
    PileKind,
    PileRef,
    builds_down,
    is_tableau_run,
)
from solitaire.rules import RuleSet

logger = logging.getLogger(__name__)

DEFAULT_RULES = RuleSet()


@dataclass(frozen=True, slots=True)
class Move:
    """Take the top ``count`` cards of ``src`` and put them on ``dst``."""

    src: PileRef
    dst: PileRef
    count: int = 1

    def __str__(self) -> str:
        suffix = f" x{self.count}" if self.count > 1 else ""
        return f"{self.src} -> {self.dst}{suffix}"

    @property
    def sort_key(self) -> tuple:
        return (self.src.sort_key, self.dst.sort_key, self.count)

    @classmethod
    def from_strings(cls, src: str, dst: str, count: int = 1) -> "Move":
        """Build a move from pile names such as 't3' and 'f1'."""
        return cls(PileRef.from_string(src), PileRef.from_string(dst), count)


def sorted_moves(moves: Iterable[Move]) -> list[Move]:
    """Moves in a stable board order, for display."""
    return sorted(moves, key=lambda move: move.sort_key)


def _destinations() -> Iterator[PileRef]:
    for i in range(NUM_FOUNDATIONS):
        yield PileRef.foundation(i)
    for i in range(NUM_TABLEAUS):
        yield PileRef.tableau(i)


def _check_dealt(board: Board) -> None:
    if board.is_dealing:
        raise IllegalMoveError("the deal is not finished")


def validate_move(board: Board, move: Move, rules: RuleSet = DEFAULT_RULES) -> tuple[Card, ...]:
    """
    Check a move against the rules without changing the board.

    A move onto its own source pile is rejected rather than accepted as a
    no-op, so it never counts toward a game's move total.

    Returns:
        The cards that would move, bottom to top.

    Raises:
        IllegalMoveError: with the reason the move is rejected.
    """
    _check_dealt(board)
    src, dst, count = move.src, move.dst, move.count

    if count < 1:
        raise IllegalMoveError("cannot take fewer than one card")

    if src.kind == PileKind.STOCK:
        raise IllegalMoveError("cannot move cards from the stock")
    if src.kind == PileKind.WASTE and count != 1:
        raise IllegalMoveError("can only move one card from the waste")
    if src.kind == PileKind.FOUNDATION:
        if not rules.allow_foundation_to_tableau:
            raise IllegalMoveError("cards cannot leave a foundation")
        if count != 1:
            raise IllegalMoveError("can only move one card from a foundation")

    if dst.kind == PileKind.STOCK:
        raise IllegalMoveError("cannot move cards to the stock")
    if dst.kind == PileKind.WASTE:
        raise IllegalMoveError("cannot move cards to the waste")
    if dst.kind == PileKind.FOUNDATION and count != 1:
        raise IllegalMoveError("can only move one card to a foundation")

    if src == dst:
        raise IllegalMoveError("source and destination are the same pile")

    run = board.pile(src).top_run(count)
    if src.kind == PileKind.TABLEAU and not is_tableau_run(run):
        raise IllegalMoveError("source cards are not a valid run")

    base = run[0]
    top = board.pile(dst).peek()

    if dst.kind == PileKind.FOUNDATION:
        suit = dst.suit
        if base.suit != suit:
            raise IllegalMoveError(f"{base} does not belong on the {suit.name.lower()} foundation")
        if top is None and not base.rank.is_ace:
            raise IllegalMoveError("only an ace can start a foundation")
        if top is not None and base.rank.value != top.rank.value + 1:
            raise IllegalMoveError(f"{base} cannot go on {top}")
    else:
        if top is None and not base.rank.is_king:
            raise IllegalMoveError("only a king can move to an empty column")
        if top is not None and not (top.face_up and builds_down(top, base)):
            raise IllegalMoveError(f"{base} cannot go on {top}")

    return run


def is_legal(board: Board, move: Move, rules: RuleSet = DEFAULT_RULES) -> bool:
    """Check a move without raising."""
    try:
        validate_move(board, move, rules)
    except IllegalMoveError:
        return False
    return True


def perform_move(board: Board, move: Move, rules: RuleSet = DEFAULT_RULES) -> Card | None:
    """
    Validate and apply a move in place.

    Returns:
        The tableau card turned face up by the move, if any.
    """
    run = validate_move(board, move, rules)
    source = board.pile(move.src)
    source.take(move.count)
    board.pile(move.dst).extend(run)
    if move.src.kind == PileKind.TABLEAU:
        return source.flip_top()
    return None


def apply_move(board: Board, move: Move, rules: RuleSet = DEFAULT_RULES) -> Board:
    """
    Apply a move to the board and return it.

    An illegal move raises IllegalMoveError and leaves the board as it was.
    """
    perform_move(board, move, rules)
    return board


def can_draw(board: Board, rules: RuleSet = DEFAULT_RULES) -> bool:
    """Check if drawing (or turning the waste over) is possible."""
    if board.is_dealing:
        return False
    if not board.stock.is_empty:
        return True
    if board.waste.is_empty:
        return False
    return rules.max_redeals is None or board.redeals < rules.max_redeals


def draw_from_stock(board: Board, rules: RuleSet = DEFAULT_RULES) -> Board:
    """
    Turn cards from the stock onto the waste.

    Up to ``rules.draw_count`` cards are turned, one at a time. When the
    stock is empty the waste is turned back over: the stock gets the waste
    cards in reverse order, face down.
    """
    _check_dealt(board)
    if board.stock.is_empty:
        if board.waste.is_empty:
            raise IllegalMoveError("stock and waste are both empty")
        if rules.max_redeals is not None and board.redeals >= rules.max_redeals:
            raise IllegalMoveError("no redeals left")
        cards = board.waste.clear()
        board.stock.extend(card.turned(False) for card in reversed(cards))
        board.redeals += 1
        return board

    for _ in range(min(rules.draw_count, len(board.stock))):
        card = board.stock.pop()
        board.waste.push(card.turned(True))
    return board


def is_won(board: Board) -> bool:
    """True iff all four foundations are complete."""
    return board.is_won()


def legal_moves(board: Board, rules: RuleSet = DEFAULT_RULES) -> set[Move]:
    """Every card move the rules currently allow."""
    if board.is_dealing:
        return set()

    sources: list[tuple[PileRef, int]] = []
    if not board.waste.is_empty:
        sources.append((PileRef.waste(), 1))
    if rules.allow_foundation_to_tableau:
        sources += [(f.ref, 1) for f in board.foundations if not f.is_empty]
    for tableau in board.tableaus:
        sources += [(tableau.ref, n) for n in range(1, tableau.movable_run_length() + 1)]

    moves = set()
    for src, count in sources:
        for dst in _destinations():
            if dst == src or (dst.kind == PileKind.FOUNDATION and count != 1):
                continue
            move = Move(src, dst, count)
            if is_legal(board, move, rules):
                moves.add(move)
    return moves


def find_auto_move(
    board: Board,
    src: PileRef,
    count: int = 1,
    rules: RuleSet = DEFAULT_RULES,
) -> Move | None:
    """
    Pick the best destination for the top ``count`` cards of ``src``.

    A foundation is preferred, then a tableau with cards, then an empty one.
    """
    pile = board.pile(src)
    if board.is_dealing or len(pile) < count or count < 1:
        return None

    base = pile.cards[-count]
    candidates: list[PileRef] = []
    if count == 1:
        candidates.append(PileRef.foundation_for(base.suit))
    tableaus = [t for t in board.tableaus if t.ref != src]
    candidates += [t.ref for t in tableaus if not t.is_empty]
    candidates += [t.ref for t in tableaus if t.is_empty]

    for dst in candidates:
        move = Move(src, dst, count)
        if is_legal(board, move, rules):
            return move
    return None


def auto_move_card(
    board: Board,
    src: PileRef,
    count: int = 1,
    rules: RuleSet = DEFAULT_RULES,
) -> Move:
    """Move the top cards of ``src`` to their best destination."""
    move = find_auto_move(board, src, count, rules)
    if move is None:
        raise IllegalMoveError(f"no legal destination for the cards on {src}")
    perform_move(board, move, rules)
    return move


def is_safe_for_foundation(board: Board, card: Card) -> bool:
    """
    Check if the card can go to its foundation without ever being needed
    on the tableau again: twos and aces always can, anything higher only
    when both opposite-color foundations have reached the rank below it.
    """
    if board.foundation_rank(card.suit) != card.rank.value - 1:
        return False
    if card.rank.value <= 2:
        return True
    return all(
        board.foundation_rank(suit) >= card.rank.value - 1
        for suit in Suit
        if suit.color != card.color
    )


def find_safe_foundation_move(board: Board) -> Move | None:
    """The first waste or tableau top that can safely go to its foundation."""
    if board.is_dealing:
        return None
    for pile in [board.waste, *board.tableaus]:
        card = pile.peek()
        if card is not None and card.face_up and is_safe_for_foundation(board, card):
            return Move(pile.ref, PileRef.foundation_for(card.suit))
    return None


def auto_move_to_foundation(board: Board, rules: RuleSet = DEFAULT_RULES) -> Move | None:
    """Move one safe card from the waste or a tableau to its foundation."""
    move = find_safe_foundation_move(board)
    if move is not None:
        perform_move(board, move, rules)
    return move


def is_productive(board: Board, move: Move, rules: RuleSet = DEFAULT_RULES) -> bool:
    """
    Check if a legal move makes progress.

    A card brought down from a foundation only counts when something that
    could not move before can now build on it: a run sitting on a face-down
    card, or a card from the waste or stock. Moves that only relocate a run
    between equivalent spots are not productive.
    """
    if move.dst.kind == PileKind.FOUNDATION or move.src.kind == PileKind.WASTE:
        return True
    if move.src.kind == PileKind.FOUNDATION:
        sim = board.clone()
        perform_move(sim, move, rules)
        return _opens_play(sim, sim.pile(move.dst).peek(), rules)

    cards = board.pile(move.src).cards
    remaining = cards[: -move.count]
    if not remaining:
        return not cards[-move.count].rank.is_king
    beneath = remaining[-1]
    if not beneath.face_up:
        return True
    return board.foundation_rank(beneath.suit) == beneath.rank.value - 1


def _opens_play(board: Board, target: Card, rules: RuleSet) -> bool:
    for tableau in board.tableaus:
        length = tableau.movable_run_length()
        if not 0 < length < len(tableau):
            continue
        cards = tableau.cards
        if not cards[-length - 1].face_up and builds_down(target, cards[-length]):
            return True
    waiting = list(_cycled_waste_cards(board, rules))
    if not board.waste.is_empty:
        waiting.append(board.waste.peek())
    return any(builds_down(target, card) for card in waiting)


def _has_destination(board: Board, card: Card) -> bool:
    if board.foundation_rank(card.suit) == card.rank.value - 1:
        return True
    for tableau in board.tableaus:
        top = tableau.peek()
        if top is None:
            if card.rank.is_king:
                return True
        elif top.face_up and builds_down(top, card):
            return True
    return False


def _cycled_waste_cards(board: Board, rules: RuleSet) -> list[Card]:
    """Cards that would turn up on the waste over the rest of this pass and one more."""
    sim = board.clone()
    seen: list[Card] = []
    recycled = False
    while True:
        if sim.stock.is_empty:
            if recycled or not can_draw(sim, rules):
                break
            draw_from_stock(sim, rules)
            recycled = True
            continue
        draw_from_stock(sim, rules)
        seen.append(sim.waste.peek())
    return seen


def is_stuck(board: Board, rules: RuleSet = DEFAULT_RULES) -> bool:
    """
    True when no productive move can ever become available.

    Stock cycling is simulated on a copy so a card buried in the stock or
    waste still counts if it would surface on the waste and has somewhere
    to go.
    """
    if board.is_dealing or board.is_won():
        return False
    if any(is_productive(board, move, rules) for move in legal_moves(board, rules)):
        return False
    for card in _cycled_waste_cards(board, rules):
        if _has_destination(board, card):
            return False
    logger.debug("No productive moves left: %r", board)
    return True
