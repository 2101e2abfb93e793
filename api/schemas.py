"""Pydantic schemas for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from solitaire.cards import Card
from solitaire.game import KlondikeGame
from solitaire.moves import Move, sorted_moves

PILE_PATTERN = r"^(s|w|f[1-4]|t[1-7])$"


# Game schemas
class NewGameRequest(BaseModel):
    """Request to start a new game."""

    seed: int | str | None = Field(default=None, description="Shuffle seed for a reproducible deal")
    draw_count: Literal[1, 3] | None = Field(default=None, description="Cards turned per draw")


class MoveRequest(BaseModel):
    """Request to move cards between piles."""

    src: str = Field(..., pattern=PILE_PATTERN, description="Source pile, e.g. 'w' or 't3'")
    dst: str = Field(..., pattern=PILE_PATTERN, description="Destination pile, e.g. 'f1' or 't7'")
    count: int = Field(default=1, ge=1, le=13, description="Number of cards taken from the source")


class AutoMoveRequest(BaseModel):
    """Request to move cards to their best destination."""

    src: str = Field(..., pattern=PILE_PATTERN)
    count: int = Field(default=1, ge=1, le=13)


class CardResponse(BaseModel):
    """Card representation. Face-down cards are not revealed."""

    model_config = ConfigDict(from_attributes=True)

    face_up: bool
    code: str | None = None
    rank: str | None = None
    suit: str | None = None
    color: str | None = None

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        if not card.face_up:
            return cls(face_up=False)
        return cls(
            face_up=True,
            code=card.code,
            rank=str(card.rank),
            suit=str(card.suit),
            color=str(card.color),
        )


class MoveResponse(BaseModel):
    """A legal move."""

    src: str
    dst: str
    count: int

    @classmethod
    def from_move(cls, move: Move) -> "MoveResponse":
        return cls(src=str(move.src), dst=str(move.dst), count=move.count)


class GameStateResponse(BaseModel):
    """Current game state."""

    state: str
    seed: int | str | None
    draw_count: int
    move_count: int
    redeals: int
    stock_count: int
    waste: list[CardResponse]
    foundations: list[list[CardResponse]]
    tableaus: list[list[CardResponse]]
    legal_moves: list[MoveResponse]
    can_draw: bool
    is_won: bool
    is_stuck: bool
    last_error: str | None = None

    @classmethod
    def from_game(cls, game: KlondikeGame) -> "GameStateResponse":
        """Build the response for a game."""
        board = game.board
        return cls(
            state=game.state.name,
            seed=game.seed,
            draw_count=game.rules.draw_count,
            move_count=game.move_count,
            redeals=board.redeals,
            stock_count=len(board.stock),
            waste=[CardResponse.from_card(c) for c in board.waste],
            foundations=[[CardResponse.from_card(c) for c in f] for f in board.foundations],
            tableaus=[[CardResponse.from_card(c) for c in t] for t in board.tableaus],
            legal_moves=[MoveResponse.from_move(m) for m in sorted_moves(game.legal_moves)],
            can_draw=game.can_draw,
            is_won=game.is_won,
            is_stuck=game.is_stuck,
            last_error=game.last_error,
        )


class NewGameResponse(BaseModel):
    """A new game and the session that owns it."""

    session_id: str
    game: GameStateResponse


class FinishResponse(BaseModel):
    """Result of moving every safe card to the foundations."""

    moved: int
    game: GameStateResponse


# Session storage schemas
class RulesData(BaseModel):
    """Serialized rules data."""

    draw_count: Literal[1, 3] = 1
    max_redeals: int | None = None
    allow_foundation_to_tableau: bool = True


class BoardData(BaseModel):
    """Serialized board, as card codes."""

    stock: list[str]
    waste: list[str]
    foundations: list[list[str]]
    tableaus: list[list[str]]
    redeals: int = 0
    deal_step: int | None = None


class GameStateData(BaseModel):
    """Serialized game state for session storage."""

    seed: int | str | None
    move_count: int
    board: BoardData
    rules: RulesData
