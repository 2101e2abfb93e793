"""Core solitaire engine - 100% UI-agnostic."""

from solitaire.board import Board, deal
from solitaire.cards import Card, Color, Deck, Rank, Suit, new_deck, shuffle
from solitaire.errors import IllegalMoveError, SolitaireError
from solitaire.moves import Move, apply_move, draw_from_stock, is_won, legal_moves
from solitaire.pile import Pile, PileKind, PileRef
from solitaire.rules import RuleSet

__all__ = [
    "Board",
    "deal",
    "Card",
    "Color",
    "Deck",
    "Rank",
    "Suit",
    "new_deck",
    "shuffle",
    "IllegalMoveError",
    "SolitaireError",
    "Move",
    "apply_move",
    "draw_from_stock",
    "is_won",
    "legal_moves",
    "Pile",
    "PileKind",
    "PileRef",
    "RuleSet",
]
