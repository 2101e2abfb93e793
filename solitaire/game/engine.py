"""Klondike game engine with state machine."""

import logging
from random import Random
from typing import Callable

from transitions import Machine

from solitaire.board import DEAL_ORDER, Board
from solitaire.cards import NUM_RANKS, new_deck, shuffle
from solitaire.errors import IllegalMoveError
from solitaire.game.events import EventEmitter, EventType, GameEvent
from solitaire.game.state import GameState
from solitaire.moves import (
    Move,
    can_draw,
    draw_from_stock,
    find_auto_move,
    find_safe_foundation_move,
    is_stuck,
    legal_moves,
    perform_move,
)
from solitaire.pile import PileKind, PileRef
from solitaire.rules import RuleSet

logger = logging.getLogger(__name__)


class KlondikeGame:
    """
    Klondike game engine using a state machine.

    This is the core game logic, completely UI-agnostic.
    Communication happens through events and return values only: commands
    return False when rejected, leave the board untouched, and emit an
    INVALID_ACTION event carrying the reason.
    """

    # State machine states
    STATES = [s.name.lower() for s in GameState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "finish_deal", "source": "dealing", "dest": "playing"},
        {"trigger": "stall", "source": "playing", "dest": "stuck"},
        {"trigger": "resume", "source": "stuck", "dest": "playing"},
        {"trigger": "win", "source": ["playing", "stuck"], "dest": "won"},
        {"trigger": "restart", "source": "*", "dest": "dealing"},
    ]

    def __init__(
        self,
        rules: RuleSet | None = None,
        seed: int | str | None = None,
        rng: Random | None = None,
        deal: bool = True,
    ) -> None:
        """
        Initialize a new Klondike game.

        Args:
            rules: Game rules (uses defaults if not provided)
            seed: Shuffle seed for a reproducible deal
            rng: Random number generator used to pick seeds when none is given
            deal: Deal the whole layout immediately; otherwise the game waits
                in DEALING for deal_one()/deal_all()
        """
        self.rules = rules or RuleSet()
        self._rng = rng or Random()
        self.events = EventEmitter()
        self.board = Board()
        self.seed: int | str | None = None
        self.move_count = 0
        self.last_error: str | None = None

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="dealing",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

        self.new_game(seed=seed, deal=deal)

    @classmethod
    def from_board(
        cls,
        board: Board,
        rules: RuleSet | None = None,
        seed: int | str | None = None,
        move_count: int = 0,
    ) -> "KlondikeGame":
        """Resume a game from an existing board."""
        game = cls(rules=rules, deal=False)
        game.board = board
        game.seed = seed
        game.move_count = move_count
        game.events.clear_history()
        if not board.is_dealing:
            game.machine.set_state(GameState.PLAYING.name.lower(), model=game)
            game._update_status()
        return game

    @property
    def state(self) -> GameState:
        """Get current game state as enum."""
        return GameState[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def new_game(self, seed: int | str | None = None, deal: bool = True) -> None:
        """
        Shuffle a fresh deck and start over.

        Args:
            seed: Shuffle seed; a random one is picked (and kept in ``seed``)
                when omitted
            deal: Deal the whole layout immediately
        """
        if seed is None:
            seed = self._rng.getrandbits(32)
        self.seed = seed
        self.board = Board.from_deck(shuffle(new_deck(), seed))
        self.move_count = 0
        self.last_error = None
        self.restart()

        logger.info("New game, seed=%r, draw_count=%d", seed, self.rules.draw_count)
        self.events.emit_new(
            EventType.GAME_STARTED,
            seed=seed,
            draw_count=self.rules.draw_count,
        )
        if deal:
            self.deal_all()

    def deal_one(self) -> bool:
        """Deal the next card of the initial layout."""
        if self.state != GameState.DEALING:
            return self._reject("The deal is already complete")

        _, column = DEAL_ORDER[self.board.cards_dealt]
        complete = self.board.deal_one()
        card = self.board.tableaus[column].peek()
        self.events.emit_new(
            EventType.CARD_DEALT,
            pile=str(PileRef.tableau(column)),
            card=card.code if card else None,
        )

        if complete:
            self.finish_deal()
            self.events.emit_new(EventType.DEAL_COMPLETED, stock=len(self.board.stock))
            self._update_status()
        return True

    def deal_all(self) -> bool:
        """Finish the initial deal."""
        if self.state != GameState.DEALING:
            return self._reject("The deal is already complete")
        while self.state == GameState.DEALING:
            self.deal_one()
        return True

    def move(self, move: Move) -> bool:
        """
        Move cards between piles.

        Args:
            move: Source pile, destination pile and number of cards

        Returns:
            True if the move was legal and applied
        """
        if not self._in_play:
            return self._reject(f"Cannot move cards while {self.state}", move=str(move))

        try:
            revealed = perform_move(self.board, move, self.rules)
        except IllegalMoveError as exc:
            return self._reject(exc.reason, move=str(move))

        self.last_error = None
        self.move_count += 1
        moved = self.board.pile(move.dst).cards[-move.count:]
        self.events.emit_new(
            EventType.CARD_MOVED,
            src=str(move.src),
            dst=str(move.dst),
            count=move.count,
            cards=[card.code for card in moved],
        )
        if revealed is not None:
            self.events.emit_new(EventType.CARD_REVEALED, pile=str(move.src), card=revealed.code)
        if move.dst.kind == PileKind.FOUNDATION and len(self.board.pile(move.dst)) == NUM_RANKS:
            self.events.emit_new(EventType.FOUNDATION_COMPLETED, suit=move.dst.suit.name)

        self._update_status()
        return True

    def draw(self) -> bool:
        """Turn cards from the stock, or turn the waste over when the stock is empty."""
        if not self._in_play:
            return self._reject(f"Cannot draw while {self.state}")

        recycling = self.board.stock.is_empty
        drawn = min(self.rules.draw_count, len(self.board.stock))
        try:
            draw_from_stock(self.board, self.rules)
        except IllegalMoveError as exc:
            return self._reject(exc.reason)

        self.last_error = None
        self.move_count += 1
        if recycling:
            self.events.emit_new(
                EventType.WASTE_RECYCLED,
                stock=len(self.board.stock),
                redeals=self.board.redeals,
            )
        else:
            self.events.emit_new(
                EventType.STOCK_DRAWN,
                cards=[card.code for card in self.board.waste.cards[-drawn:]],
                stock=len(self.board.stock),
            )

        self._update_status()
        return True

    def auto_move(self, src: PileRef, count: int = 1) -> bool:
        """Move the top cards of ``src`` to their best destination."""
        if not self._in_play:
            return self._reject(f"Cannot move cards while {self.state}")

        move = find_auto_move(self.board, src, count, self.rules)
        if move is None:
            return self._reject(f"No legal destination for the cards on {src}")
        return self.move(move)

    def auto_step(self) -> bool:
        """Move one safe card to its foundation. Returns False when there is none."""
        if not self._in_play:
            return False
        move = find_safe_foundation_move(self.board)
        if move is None:
            return False
        return self.move(move)

    def auto_play_to_foundation(self) -> int:
        """Keep moving safe cards to the foundations; returns how many moved."""
        moved = 0
        while self.auto_step():
            moved += 1
        return moved

    @property
    def legal_moves(self) -> set[Move]:
        """Every card move currently allowed."""
        if not self._in_play:
            return set()
        return legal_moves(self.board, self.rules)

    @property
    def can_draw(self) -> bool:
        """Check if drawing from the stock is allowed."""
        return self._in_play and can_draw(self.board, self.rules)

    @property
    def is_won(self) -> bool:
        return self.board.is_won()

    @property
    def is_stuck(self) -> bool:
        """True when no productive move is left on the board."""
        return is_stuck(self.board, self.rules)

    @property
    def _in_play(self) -> bool:
        return self.state in (GameState.PLAYING, GameState.STUCK)

    def _update_status(self) -> None:
        """Re-evaluate win and stuck state after the board changed."""
        if self.board.is_won():
            if self.state != GameState.WON:
                self.win()
                logger.info("Game won in %d moves (seed=%r)", self.move_count, self.seed)
                self.events.emit_new(EventType.GAME_WON, moves=self.move_count)
            return

        stuck = is_stuck(self.board, self.rules)
        if stuck and self.state == GameState.PLAYING:
            self.stall()
            logger.info("Game stuck after %d moves (seed=%r)", self.move_count, self.seed)
            self.events.emit_new(EventType.GAME_STUCK, moves=self.move_count)
        elif not stuck and self.state == GameState.STUCK:
            self.resume()
            self.events.emit_new(EventType.GAME_RESUMED)

    def _reject(self, reason: str, **data: object) -> bool:
        """Record and announce a rejected command."""
        logger.debug("Rejected: %s %s", reason, data)
        self.last_error = reason
        self.events.emit_new(
            EventType.INVALID_ACTION,
            message=reason,
            state=self.state.name,
            **data,
        )
        return False
