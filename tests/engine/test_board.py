"""Tests for dealing and the board."""

import pytest
from hypothesis import given, settings, strategies as st

from solitaire.board import DEAL_ORDER, DEAL_SIZE, Board, deal
from solitaire.cards import NUM_CARDS, Card, Deck, Rank, Suit, new_deck, shuffle
from solitaire.pile import PileRef


class TestDeal:
    """Tests for the initial deal."""

    def test_tableau_sizes(self, board):
        assert [len(t) for t in board.tableaus] == [1, 2, 3, 4, 5, 6, 7]
        assert len(board.stock) == 24
        assert board.waste.is_empty
        assert all(f.is_empty for f in board.foundations)

    def test_only_top_cards_face_up(self, board):
        for tableau in board.tableaus:
            assert tableau.peek().face_up
            assert not any(card.face_up for card in tableau.cards[:-1])
        assert not any(card.face_up for card in board.stock)

    def test_first_tableau_single_face_up_card(self, board):
        assert board.tableaus[0].face_up_count == 1
        assert len(board.tableaus[0]) == 1

    def test_deal_order(self):
        """Round i deals one card to each tableau from i onwards, from the top of the deck."""
        deck = new_deck()
        top_down = list(reversed(deck.cards))
        board = deal(deck)

        expected: list[list[Card]] = [[] for _ in range(7)]
        for step, (_, column) in enumerate(DEAL_ORDER):
            expected[column].append(top_down[step])
        assert [list(t.cards) for t in board.tableaus] == expected
        # The rest of the deck stays in the stock in its original order
        assert list(board.stock.cards) == list(deck.cards[: NUM_CARDS - DEAL_SIZE])

    def test_deal_order_sequence(self):
        assert DEAL_SIZE == 28
        assert DEAL_ORDER[:8] == ((0, 0), (0, 1), (0, 2), (0, 3), (0, 4), (0, 5), (0, 6), (1, 1))

    def test_deal_requires_full_deck(self):
        deck = Deck(cards=list(new_deck())[:51])
        with pytest.raises(ValueError):
            deal(deck)

    def test_same_seed_same_board(self):
        assert deal(shuffle(new_deck(), seed=11)) == deal(shuffle(new_deck(), seed=11))

    @settings(max_examples=30)
    @given(st.one_of(st.integers(min_value=0, max_value=2**32), st.text(max_size=12)))
    def test_every_deal_is_a_full_deck(self, seed):
        board = deal(shuffle(new_deck(), seed=seed))
        board.check_integrity()
        assert board.card_count == NUM_CARDS


class TestIncrementalDeal:
    """Tests for dealing one card at a time."""

    def test_from_deck_puts_everything_in_stock(self):
        board = Board.from_deck(new_deck())
        assert board.is_dealing
        assert len(board.stock) == NUM_CARDS
        assert board.cards_dealt == 0

    def test_deal_one_follows_order(self):
        board = Board.from_deck(new_deck())
        assert board.deal_one() is False
        assert len(board.tableaus[0]) == 1
        assert board.tableaus[0].peek().face_up
        board.deal_one()
        assert len(board.tableaus[1]) == 1
        assert not board.tableaus[1].peek().face_up
        assert board.cards_dealt == 2

    def test_deal_one_completes(self):
        board = Board.from_deck(new_deck())
        results = [board.deal_one() for _ in range(DEAL_SIZE)]
        assert results[-1] is True
        assert not any(results[:-1])
        assert not board.is_dealing
        assert board == deal(new_deck())

    def test_deal_one_after_complete(self, board):
        assert board.deal_one() is True
        assert board.card_count == NUM_CARDS


class TestBoard:
    """Tests for board access and snapshots."""

    def test_pile_lookup(self, board):
        assert board.pile(PileRef.stock()) is board.stock
        assert board.pile(PileRef.waste()) is board.waste
        assert board.pile(PileRef.tableau(3)) is board.tableaus[3]
        assert board.foundation_for(Suit.SPADES) is board.foundations[1]

    def test_from_codes(self):
        board = Board.from_codes(
            stock=["#2C"],
            waste=["3D"],
            foundations=[["AC"]],
            tableaus=[["#KS", "QH"]],
        )
        assert len(board.foundations) == 4
        assert len(board.tableaus) == 7
        assert board.foundation_rank(Suit.CLUBS) == 1
        assert board.tableaus[0].snapshot() == ("#KS", "QH")

    def test_wrong_pile_counts(self):
        with pytest.raises(ValueError):
            Board(tableaus=[[]] * 6)
        with pytest.raises(ValueError):
            Board(foundations=[[]] * 3)

    def test_is_won(self, won_board, nearly_won_board, board):
        assert won_board.is_won()
        assert not nearly_won_board.is_won()
        assert not board.is_won()

    def test_check_integrity_reports_problems(self):
        board = Board.from_codes(tableaus=[["KS", "KS"]])
        with pytest.raises(ValueError, match="duplicated"):
            board.check_integrity()

    def test_clone_is_independent(self, board):
        copy = board.clone()
        copy.stock.pop()
        assert len(board.stock) == 24
        assert copy != board

    def test_snapshot_round_trip(self, board):
        board.waste.push(board.stock.pop().turned(True))
        board.redeals = 2
        assert Board.from_snapshot(board.snapshot()) == board

    def test_snapshot_keeps_deal_progress(self):
        board = Board.from_deck(new_deck())
        for _ in range(5):
            board.deal_one()
        restored = Board.from_snapshot(board.snapshot())
        assert restored.is_dealing
        assert restored.cards_dealt == 5

    def test_all_cards(self, board):
        cards = board.all_cards()
        assert len(cards) == NUM_CARDS
        assert Card(Rank.ACE, Suit.HEARTS) in cards
