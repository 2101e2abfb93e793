"""Tests for piles and pile references."""

import pytest

from solitaire.cards import Card, Rank, Suit, cards_from_strings
from solitaire.errors import IllegalMoveError
from solitaire.pile import (
    Pile,
    PileKind,
    PileRef,
    all_pile_refs,
    builds_down,
    is_foundation_sequence,
    is_tableau_run,
)


def _tableau(*codes: str) -> Pile:
    return Pile(PileRef.tableau(0), cards_from_strings(codes))


class TestPileRef:
    """Tests for PileRef."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("s", PileRef.stock()),
            ("w", PileRef.waste()),
            ("f1", PileRef.foundation(0)),
            ("F4", PileRef.foundation(3)),
            ("t1", PileRef.tableau(0)),
            (" t7 ", PileRef.tableau(6)),
        ],
    )
    def test_from_string(self, text, expected):
        assert PileRef.from_string(text) == expected

    @pytest.mark.parametrize("text", ["", "x", "t0", "t8", "f5", "s1", "t", "tx"])
    def test_from_string_invalid(self, text):
        with pytest.raises(ValueError):
            PileRef.from_string(text)

    def test_str_is_one_based(self):
        assert str(PileRef.tableau(2)) == "t3"
        assert str(PileRef.foundation(0)) == "f1"
        assert str(PileRef.waste()) == "w"

    def test_index_validated(self):
        with pytest.raises(ValueError):
            PileRef(PileKind.TABLEAU, 7)
        with pytest.raises(ValueError):
            PileRef(PileKind.WASTE, 1)

    def test_foundation_suits(self):
        """Foundation i collects the i-th suit."""
        assert [PileRef.foundation(i).suit for i in range(4)] == list(Suit)
        assert PileRef.foundation_for(Suit.HEARTS) == PileRef.foundation(2)
        assert PileRef.tableau(0).suit is None

    def test_all_pile_refs(self):
        refs = all_pile_refs()
        assert len(refs) == 13
        assert refs == sorted(refs, key=lambda r: r.sort_key)


class TestSequences:
    """Tests for run helpers."""

    def test_builds_down(self):
        seven_clubs = Card(Rank.SEVEN, Suit.CLUBS)
        assert builds_down(seven_clubs, Card(Rank.SIX, Suit.HEARTS))
        assert not builds_down(seven_clubs, Card(Rank.SIX, Suit.SPADES))
        assert not builds_down(seven_clubs, Card(Rank.FIVE, Suit.HEARTS))

    def test_is_tableau_run(self):
        assert is_tableau_run(cards_from_strings(["KS", "QH", "JC"]))
        assert not is_tableau_run(cards_from_strings(["KS", "QC"]))
        assert is_tableau_run(cards_from_strings(["5D"]))

    def test_is_foundation_sequence(self):
        assert is_foundation_sequence(cards_from_strings(["AH", "2H", "3H"]))
        assert not is_foundation_sequence(cards_from_strings(["AH", "2D"]))


class TestPile:
    """Tests for the Pile class."""

    def test_push_pop_peek(self):
        pile = Pile(PileRef.waste())
        assert pile.is_empty
        assert pile.pop() is None
        assert pile.peek() is None

        card = Card(Rank.ACE, Suit.SPADES, face_up=True)
        pile.push(card)
        assert pile.peek() == card
        assert len(pile) == 1
        assert pile.pop() == card
        assert pile.is_empty

    def test_top_run(self):
        pile = _tableau("#9C", "8H", "7S")
        assert pile.top_run(2) == tuple(cards_from_strings(["8H", "7S"]))

    def test_top_run_rejects_face_down(self):
        pile = _tableau("#9C", "8H", "7S")
        with pytest.raises(IllegalMoveError):
            pile.top_run(3)

    @pytest.mark.parametrize("n", [0, -1, 4])
    def test_top_run_out_of_range(self, n):
        pile = _tableau("#9C", "8H", "7S")
        with pytest.raises(IllegalMoveError):
            pile.top_run(n)

    def test_take_removes_cards(self):
        pile = _tableau("#9C", "8H", "7S")
        taken = pile.take(2)
        assert taken == cards_from_strings(["8H", "7S"])
        assert len(pile) == 1

    def test_take_failure_leaves_pile(self):
        pile = _tableau("#9C", "8H")
        with pytest.raises(IllegalMoveError):
            pile.take(2)
        assert pile.snapshot() == ("#9C", "8H")

    def test_flip_top(self):
        pile = _tableau("#9C")
        revealed = pile.flip_top()
        assert revealed == Card(Rank.NINE, Suit.CLUBS)
        assert pile.peek().face_up
        assert pile.flip_top() is None

    def test_face_up_count(self):
        assert _tableau("#KD", "#9C", "8H", "7S").face_up_count == 2
        assert _tableau("#KD").face_up_count == 0

    def test_movable_run_length(self):
        assert _tableau("#KD", "9C", "8H", "7S").movable_run_length() == 3
        # Face up but not a run: only the top card can move
        assert _tableau("#KD", "9C", "8C").movable_run_length() == 1
        assert _tableau("#KD").movable_run_length() == 0
        assert _tableau().movable_run_length() == 0

    def test_clear(self):
        pile = _tableau("9C", "8H")
        assert pile.clear() == cards_from_strings(["9C", "8H"])
        assert pile.is_empty

    def test_equality_includes_faces(self):
        assert _tableau("9C") == _tableau("9C")
        assert _tableau("9C") != _tableau("#9C")

    def test_copy_is_independent(self):
        pile = _tableau("9C", "8H")
        copy = pile.copy()
        copy.pop()
        assert len(pile) == 2
