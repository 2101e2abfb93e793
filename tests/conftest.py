"""Pytest fixtures for solitaire tests."""

import pytest
from random import Random

from solitaire.board import Board, deal
from solitaire.cards import Card, Deck, Rank, Suit, new_deck, shuffle
from solitaire.game import KlondikeGame
from solitaire.rules import RuleSet


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    d = Deck(rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def board():
    """A freshly dealt board from a seeded shuffle."""
    return deal(shuffle(new_deck(), seed=7))


@pytest.fixture
def rules():
    """Default ruleset."""
    return RuleSet()


@pytest.fixture
def draw_three_rules():
    """Draw-three rules."""
    return RuleSet.draw_three()


@pytest.fixture
def game(rng):
    """A new dealt game instance."""
    return KlondikeGame(seed=7, rng=rng)


@pytest.fixture
def nearly_won_board():
    """Every card on its foundation except the four kings, which sit on tableaus."""
    foundations = [
        [f"{rank}{suit.letter}" for rank in list(Rank)[:-1]] for suit in Suit
    ]
    tableaus = [["KC"], ["KS"], ["KH"], ["KD"]]
    return Board.from_codes(foundations=foundations, tableaus=tableaus)


@pytest.fixture
def won_board():
    """All four foundations complete."""
    foundations = [[f"{rank}{suit.letter}" for rank in Rank] for suit in Suit]
    return Board.from_codes(foundations=foundations)

