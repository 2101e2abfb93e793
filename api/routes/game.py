"""Game API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Header, HTTPException

from api.schemas import (
    AutoMoveRequest,
    BoardData,
    FinishResponse,
    GameStateData,
    GameStateResponse,
    MoveRequest,
    NewGameRequest,
    NewGameResponse,
    RulesData,
)
from api.session import SessionStore, create_session, extract_session_id, get_session_store
from config import config
from solitaire.board import Board
from solitaire.game import KlondikeGame
from solitaire.moves import Move
from solitaire.pile import PileRef
from solitaire.rules import RuleSet

logger = logging.getLogger(__name__)

router = APIRouter()

# Live games for sessions the store still holds
_games: dict[str, KlondikeGame] = {}

SESSION_KEY_GAME = "game"

SessionHeader = Annotated[str, Header(alias="X-Session-ID")]


def _serialize_game(game: KlondikeGame) -> dict[str, Any]:
    """Serialize game state for session storage."""
    snapshot = game.board.snapshot()
    data = GameStateData(
        seed=game.seed,
        move_count=game.move_count,
        board=BoardData(
            stock=list(snapshot["stock"]),
            waste=list(snapshot["waste"]),
            foundations=[list(f) for f in snapshot["foundations"]],
            tableaus=[list(t) for t in snapshot["tableaus"]],
            redeals=snapshot["redeals"],
            deal_step=snapshot["deal_step"],
        ),
        rules=RulesData(
            draw_count=game.rules.draw_count,
            max_redeals=game.rules.max_redeals,
            allow_foundation_to_tableau=game.rules.allow_foundation_to_tableau,
        ),
    )
    return data.model_dump()


def _deserialize_game(data: dict[str, Any]) -> KlondikeGame:
    """Restore game from session data; the state machine is rebuilt from the board."""
    state = GameStateData.model_validate(data)
    rules = RuleSet(**state.rules.model_dump())
    board = Board.from_snapshot(state.board.model_dump())
    return KlondikeGame.from_board(
        board,
        rules=rules,
        seed=state.seed,
        move_count=state.move_count,
    )


async def _save_game(session_id: str, game: KlondikeGame) -> None:
    """Save game to session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_GAME] = _serialize_game(game)
    await store.set(session_id, session_data)


async def _prune_games(store: SessionStore) -> None:
    """Forget live games whose sessions expired or were evicted."""
    for session_id in list(_games):
        if not await store.exists(session_id):
            del _games[session_id]


async def _get_game(session_id: str) -> KlondikeGame:
    """
    Get the game for a session.

    The store decides whether a session is alive; the in-process cache only
    saves rebuilding the game on every request.

    Raises:
        HTTPException: 404 if the token is invalid, or its session expired or
            holds no game
    """
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")

    store = await get_session_store()
    session_data = await store.get(session_id)
    if not session_data or SESSION_KEY_GAME not in session_data:
        _games.pop(session_id, None)
        raise HTTPException(status_code=404, detail="Session not found")

    game = _games.get(session_id)
    if game is None:
        game = _games[session_id] = _deserialize_game(session_data[SESSION_KEY_GAME])
    return game


def _rejected(game: KlondikeGame) -> HTTPException:
    """400 response carrying the engine's reason."""
    return HTTPException(status_code=400, detail=game.last_error or "Invalid action")


def _parse_pile(name: str) -> PileRef:
    try:
        return PileRef.from_string(name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None


@router.post("/new")
async def new_game(
    request: NewGameRequest | None = None,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewGameResponse:
    """Start a new game, reusing the caller's session when it is valid."""
    request = request or NewGameRequest()
    if session_id is None or extract_session_id(session_id) is None:
        session_id = await create_session()

    try:
        rules = config.game.to_rules(request.draw_count)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None

    game = KlondikeGame(rules=rules, seed=request.seed)
    _games[session_id] = game
    await _save_game(session_id, game)
    await _prune_games(await get_session_store())
    logger.debug("Session %s started game with seed %r", session_id[:8], game.seed)

    return NewGameResponse(session_id=session_id, game=GameStateResponse.from_game(game))


@router.get("/state")
async def get_state(session_id: SessionHeader) -> GameStateResponse:
    """Get current game state."""
    game = await _get_game(session_id)
    return GameStateResponse.from_game(game)


@router.post("/move")
async def move_cards(request: MoveRequest, session_id: SessionHeader) -> GameStateResponse:
    """Move cards from one pile to another."""
    game = await _get_game(session_id)
    move = Move(_parse_pile(request.src), _parse_pile(request.dst), request.count)

    if not game.move(move):
        raise _rejected(game)

    await _save_game(session_id, game)
    return GameStateResponse.from_game(game)


@router.post("/draw")
async def draw(session_id: SessionHeader) -> GameStateResponse:
    """Turn cards from the stock, or recycle the waste."""
    game = await _get_game(session_id)

    if not game.draw():
        raise _rejected(game)

    await _save_game(session_id, game)
    return GameStateResponse.from_game(game)


@router.post("/auto")
async def auto_move(request: AutoMoveRequest, session_id: SessionHeader) -> GameStateResponse:
    """Move cards to the best destination the rules allow."""
    game = await _get_game(session_id)

    if not game.auto_move(_parse_pile(request.src), request.count):
        raise _rejected(game)

    await _save_game(session_id, game)
    return GameStateResponse.from_game(game)


@router.post("/finish")
async def finish(session_id: SessionHeader) -> FinishResponse:
    """Move every safe card to the foundations."""
    game = await _get_game(session_id)
    moved = game.auto_play_to_foundation()

    await _save_game(session_id, game)
    return FinishResponse(moved=moved, game=GameStateResponse.from_game(game))
