"""Tests for the Klondike game engine."""

import pytest
from random import Random

from transitions import MachineError

from solitaire.board import DEAL_SIZE, Board, deal
from solitaire.cards import NUM_CARDS, new_deck, shuffle
from solitaire.game import EventType, GameState, KlondikeGame
from solitaire.moves import Move, sorted_moves
from solitaire.pile import PileRef
from solitaire.rules import RuleSet


def _events(game: KlondikeGame, event_type: EventType) -> list:
    return [e for e in game.events.history if e.event_type == event_type]


@pytest.fixture
def stalled_board():
    """Only a foundation card can come back down; nothing else moves."""
    return Board.from_codes(
        foundations=[["AC", "2C"], [], ["AH"]],
        tableaus=[["#KS", "3H"]],
    )


class TestNewGame:
    """Tests for starting games."""

    def test_new_game_is_dealt(self, game):
        assert not game.board.is_dealing
        assert game.state in (GameState.PLAYING, GameState.STUCK)
        assert game.board.card_count == NUM_CARDS
        assert game.move_count == 0

    def test_seeded_game_matches_seeded_deal(self):
        game = KlondikeGame(seed=5)
        assert game.seed == 5
        assert game.board == deal(shuffle(new_deck(), seed=5))

    def test_seed_picked_from_rng(self):
        first = KlondikeGame(rng=Random(1))
        second = KlondikeGame(rng=Random(1))
        assert first.seed is not None
        assert first.seed == second.seed
        assert first.board == second.board

    def test_game_started_event(self, game):
        started = _events(game, EventType.GAME_STARTED)
        assert started[-1].data == {"seed": 7, "draw_count": 1}

    def test_new_game_resets(self, game):
        game.draw()
        game.new_game(seed=8)
        assert game.move_count == 0
        assert game.seed == 8
        assert game.board.waste.is_empty
        assert game.last_error is None

    def test_rules_are_kept(self):
        game = KlondikeGame(rules=RuleSet.draw_three(), seed=1)
        assert game.rules.draw_count == 3
        game.new_game()
        assert game.rules.draw_count == 3


class TestDealing:
    """Tests for the deal phase."""

    def test_undealt_game_waits(self):
        game = KlondikeGame(seed=3, deal=False)
        assert game.state == GameState.DEALING
        assert game.board.is_dealing
        assert len(game.board.stock) == NUM_CARDS

    def test_deal_one_emits_card_dealt(self):
        game = KlondikeGame(seed=3, deal=False)
        assert game.deal_one()
        dealt = _events(game, EventType.CARD_DEALT)
        assert len(dealt) == 1
        assert dealt[0].data["pile"] == "t1"
        assert len(game.board.tableaus[0]) == 1

    def test_deal_completes(self):
        game = KlondikeGame(seed=3, deal=False)
        for _ in range(DEAL_SIZE):
            assert game.deal_one()
        assert game.state != GameState.DEALING
        assert len(_events(game, EventType.CARD_DEALT)) == DEAL_SIZE
        completed = _events(game, EventType.DEAL_COMPLETED)
        assert completed[0].data == {"stock": 24}

    def test_deal_after_complete_rejected(self, game):
        assert not game.deal_one()
        assert not game.deal_all()
        assert game.last_error == "The deal is already complete"

    def test_moves_rejected_while_dealing(self):
        game = KlondikeGame(seed=3, deal=False)
        assert not game.draw()
        assert not game.move(Move.from_strings("t1", "f1"))
        assert game.legal_moves == set()
        assert not game.can_draw
        invalid = _events(game, EventType.INVALID_ACTION)
        assert [e.data["state"] for e in invalid] == ["DEALING", "DEALING"]


class TestCommands:
    """Tests for player commands."""

    def test_legal_move(self, game):
        move = sorted_moves(game.legal_moves)[0] if game.legal_moves else None
        if move is None:
            pytest.skip("deal has no immediate moves")
        assert game.move(move)
        assert game.move_count == 1
        moved = _events(game, EventType.CARD_MOVED)[-1]
        assert moved.data["src"] == str(move.src)
        assert moved.data["dst"] == str(move.dst)
        assert len(moved.data["cards"]) == move.count
        assert game.last_error is None

    def test_illegal_move_rejected(self, game):
        before = game.board.snapshot()
        assert not game.move(Move.from_strings("s", "t1"))
        assert game.board.snapshot() == before
        assert game.move_count == 0
        assert game.last_error == "cannot move cards from the stock"
        invalid = _events(game, EventType.INVALID_ACTION)[-1]
        assert invalid.data["message"] == "cannot move cards from the stock"
        assert invalid.data["move"] == "s -> t1"

    def test_move_reveals_card(self):
        board = Board.from_codes(tableaus=[["#5C", "QH"], ["KS"]])
        game = KlondikeGame.from_board(board)
        assert game.move(Move.from_strings("t1", "t2"))
        revealed = _events(game, EventType.CARD_REVEALED)[-1]
        assert revealed.data == {"pile": "t1", "card": "5C"}

    def test_draw(self, game):
        top = game.board.stock.peek()
        assert game.draw()
        assert game.board.waste.peek() == top
        drawn = _events(game, EventType.STOCK_DRAWN)[-1]
        assert drawn.data == {"cards": [top.turned(True).code], "stock": 23}

    def test_draw_three(self):
        game = KlondikeGame(rules=RuleSet.draw_three(), seed=4)
        assert game.draw()
        assert len(game.board.waste) == 3
        assert len(_events(game, EventType.STOCK_DRAWN)[-1].data["cards"]) == 3

    def test_recycle(self, game):
        for _ in range(24):
            game.draw()
        assert game.board.stock.is_empty
        assert game.draw()
        recycled = _events(game, EventType.WASTE_RECYCLED)[-1]
        assert recycled.data == {"stock": 24, "redeals": 1}

    def test_draw_rejected_when_limit_reached(self):
        board = Board.from_codes(waste=["AC"], tableaus=[["KS"]], redeals=1)
        game = KlondikeGame.from_board(board, rules=RuleSet(max_redeals=1))
        assert not game.can_draw
        assert not game.draw()
        assert game.last_error == "no redeals left"

    def test_auto_move(self):
        board = Board.from_codes(waste=["AH"], tableaus=[["KS"]])
        game = KlondikeGame.from_board(board)
        assert game.auto_move(PileRef.waste())
        assert game.board.foundations[2].snapshot() == ("AH",)

    def test_auto_move_without_destination(self):
        board = Board.from_codes(tableaus=[["9C"], ["9D"]])
        game = KlondikeGame.from_board(board)
        assert not game.auto_move(PileRef.tableau(0))
        assert game.last_error == "No legal destination for the cards on t1"

    def test_auto_step(self):
        board = Board.from_codes(waste=["AD"], tableaus=[["5C"]])
        game = KlondikeGame.from_board(board)
        assert game.auto_step()
        assert not game.auto_step()


class TestWinning:
    """Tests for winning."""

    def test_auto_play_wins(self, nearly_won_board):
        game = KlondikeGame.from_board(nearly_won_board, seed="test")
        assert game.state == GameState.PLAYING
        assert game.auto_play_to_foundation() == 4
        assert game.state == GameState.WON
        assert game.is_won
        assert len(_events(game, EventType.FOUNDATION_COMPLETED)) == 4
        won = _events(game, EventType.GAME_WON)
        assert won[0].data == {"moves": 4}

    def test_no_moves_after_win(self, won_board):
        game = KlondikeGame.from_board(won_board)
        assert game.state == GameState.WON
        assert not game.draw()
        assert not game.move(Move.from_strings("f1", "t1"))
        assert game.auto_play_to_foundation() == 0
        assert game.legal_moves == set()

    def test_new_game_after_win(self, won_board):
        game = KlondikeGame.from_board(won_board)
        game.new_game(seed=1)
        assert game.state in (GameState.PLAYING, GameState.STUCK)


class TestStuck:
    """Tests for stuck detection."""

    def test_stalled_board_is_stuck(self, stalled_board):
        game = KlondikeGame.from_board(stalled_board)
        assert game.state == GameState.STUCK
        assert game.is_stuck
        assert _events(game, EventType.GAME_STUCK)

    def test_stuck_game_still_accepts_moves(self, stalled_board):
        game = KlondikeGame.from_board(stalled_board)
        assert game.legal_moves == {Move.from_strings("f1", "t1")}
        assert game.move(Move.from_strings("f1", "t1"))
        # Putting the two back on the foundation is progress again
        assert game.state == GameState.PLAYING
        assert _events(game, EventType.GAME_RESUMED)

    def test_stock_cards_keep_game_alive(self):
        board = Board.from_codes(stock=["#AC"], tableaus=[["#KS", "9D"]])
        game = KlondikeGame.from_board(board)
        assert game.state == GameState.PLAYING

    def test_dealt_board_from_board_is_playable(self, board):
        game = KlondikeGame.from_board(board, seed=7, move_count=3)
        assert game.seed == 7
        assert game.move_count == 3
        assert game.state in (GameState.PLAYING, GameState.STUCK)

    def test_undealt_board_stays_dealing(self):
        game = KlondikeGame.from_board(Board.from_deck(new_deck()))
        assert game.state == GameState.DEALING
        assert game.deal_all()
        assert not game.board.is_dealing


class TestSubscribe:
    def test_subscribe_receives_events(self):
        received = []
        game = KlondikeGame(seed=2, deal=False)
        game.subscribe(received.append, EventType.DEAL_COMPLETED)
        game.deal_all()
        assert [e.event_type for e in received] == [EventType.DEAL_COMPLETED]


class TestStateMachine:
    """The engine's transition table."""

    def test_won_game_only_restarts(self, won_board):
        game = KlondikeGame.from_board(won_board)
        for trigger in (game.resume, game.stall, game.finish_deal):
            with pytest.raises(MachineError):
                trigger()
        game.restart()
        assert game.state == GameState.DEALING

    def test_dealing_cannot_win(self):
        game = KlondikeGame(seed=3, deal=False)
        with pytest.raises(MachineError):
            game.win()
