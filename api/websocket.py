"""WebSocket connection management with game engine integration."""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.schemas import GameStateResponse, NewGameRequest
from config import config
from solitaire.game import KlondikeGame
from solitaire.game.events import GameEvent
from solitaire.moves import Move
from solitaire.pile import PileRef

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Manage WebSocket connections and game instances."""

    def __init__(self, max_queue: int = 1000) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._games: dict[str, KlondikeGame] = {}
        self._event_queues: dict[str, asyncio.Queue] = {}
        self._max_queue = max_queue

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[session_id] = websocket
        self._event_queues[session_id] = asyncio.Queue(maxsize=self._max_queue)

    def disconnect(self, session_id: str) -> None:
        """Remove a connection."""
        self._connections.pop(session_id, None)
        self._event_queues.pop(session_id, None)
        # Keep the game for potential reconnection

    def get_or_create_game(self, session_id: str) -> KlondikeGame:
        """Get or create a game for the session."""
        if session_id not in self._games:
            return self.reset_game(session_id)
        return self._games[session_id]

    def reset_game(
        self,
        session_id: str,
        seed: int | str | None = None,
        draw_count: int | None = None,
    ) -> KlondikeGame:
        """Start a fresh game for a session."""
        game = KlondikeGame(rules=config.game.to_rules(draw_count), seed=seed)
        self._games[session_id] = game
        game.subscribe(lambda event: self._queue_event(session_id, event))
        return game

    def _queue_event(self, session_id: str, event: GameEvent) -> None:
        """Queue an event for async delivery."""
        if session_id in self._event_queues:
            try:
                self._event_queues[session_id].put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Event queue full for %s, dropping %s", session_id, event.event_type.name)

    async def get_event(self, session_id: str) -> GameEvent | None:
        """Get the next event from the queue."""
        if session_id in self._event_queues:
            try:
                return await asyncio.wait_for(
                    self._event_queues[session_id].get(),
                    timeout=0.1
                )
            except asyncio.TimeoutError:
                return None
        return None

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        if session_id in self._connections:
            await self._connections[session_id].send_json(message)

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


def _game_state_to_dict(game: KlondikeGame) -> dict[str, Any]:
    """Convert game state to a dictionary for JSON serialization."""
    return GameStateResponse.from_game(game).model_dump(mode="json")


def _event_to_message(event: GameEvent, game: KlondikeGame) -> dict[str, Any]:
    """Convert a game event to a WebSocket message."""
    return {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
        "state": _game_state_to_dict(game),
    }


def _parse_move(message: dict[str, Any]) -> Move:
    """Build a move from a client message; raises TypeError or ValueError on bad input."""
    return Move(
        PileRef.from_string(str(message.get("src", ""))),
        PileRef.from_string(str(message.get("dst", ""))),
        int(message.get("count", 1)),
    )


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time game updates.

    Messages from client:
    - {"type": "move", "src": "t1", "dst": "f2", "count": 1}
    - {"type": "draw"}
    - {"type": "auto", "src": "w", "count": 1}
    - {"type": "finish"}
    - {"type": "new_game", "seed": 42, "draw_count": 3}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "error", "message": "..."}
    """
    await manager.connect(websocket, session_id)
    game = manager.get_or_create_game(session_id)

    # Send initial state
    await manager.send_message(session_id, {
        "type": "state_update",
        "state": _game_state_to_dict(game),
    })

    async def process_events():
        """Process game events and send to client."""
        while True:
            event = await manager.get_event(session_id)
            if event:
                await manager.send_message(session_id, _event_to_message(event, game))
            else:
                await asyncio.sleep(0.01)

    # Start event processor
    event_task = asyncio.create_task(process_events())

    async def send_error(text: str) -> None:
        await manager.send_message(session_id, {"type": "error", "message": text})

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await send_error("Messages must be JSON objects")
                continue
            if not isinstance(message, dict):
                await send_error("Messages must be JSON objects")
                continue
            msg_type = message.get("type")

            if msg_type == "get_state":
                await manager.send_message(session_id, {
                    "type": "state_update",
                    "state": _game_state_to_dict(game),
                })

            elif msg_type == "move":
                try:
                    move = _parse_move(message)
                except (TypeError, ValueError) as exc:
                    await send_error(str(exc))
                    continue
                if not game.move(move):
                    await send_error(game.last_error or "Invalid move")

            elif msg_type == "draw":
                if not game.draw():
                    await send_error(game.last_error or "Cannot draw")

            elif msg_type == "auto":
                try:
                    src = PileRef.from_string(str(message.get("src", "")))
                    count = int(message.get("count", 1))
                except (TypeError, ValueError) as exc:
                    await send_error(str(exc))
                    continue
                if not game.auto_move(src, count):
                    await send_error(game.last_error or "No move available")

            elif msg_type == "finish":
                game.auto_play_to_foundation()

            elif msg_type == "new_game":
                try:
                    request = NewGameRequest.model_validate({
                        "seed": message.get("seed"),
                        "draw_count": message.get("draw_count"),
                    })
                    game = manager.reset_game(
                        session_id,
                        seed=request.seed,
                        draw_count=request.draw_count,
                    )
                except ValueError as exc:
                    await send_error(str(exc))
                    continue
                await manager.send_message(session_id, {
                    "type": "state_update",
                    "state": _game_state_to_dict(game),
                })

            else:
                await send_error(f"Unknown message type: {msg_type}")

    except WebSocketDisconnect:
        logger.debug("WebSocket %s disconnected", session_id)
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        manager.disconnect(session_id)
