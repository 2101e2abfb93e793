"""Tests for the event emitter and game states."""

from solitaire.game.events import EventEmitter, EventType, GameEvent
from solitaire.game.state import GameState


class TestEventEmitter:
    """Tests for EventEmitter."""

    def test_typed_subscription(self):
        emitter = EventEmitter()
        received = []
        emitter.subscribe(received.append, EventType.CARD_MOVED)

        emitter.emit_new(EventType.CARD_MOVED, src="t1")
        emitter.emit_new(EventType.STOCK_DRAWN)

        assert len(received) == 1
        assert received[0].data == {"src": "t1"}

    def test_catch_all_subscription(self):
        emitter = EventEmitter()
        received = []
        emitter.subscribe(received.append)

        emitter.emit_new(EventType.CARD_MOVED)
        emitter.emit_new(EventType.GAME_WON)

        assert [e.event_type for e in received] == [EventType.CARD_MOVED, EventType.GAME_WON]

    def test_unsubscribe(self):
        emitter = EventEmitter()
        received = []
        emitter.subscribe(received.append, EventType.GAME_WON)
        emitter.unsubscribe(received.append, EventType.GAME_WON)
        emitter.emit_new(EventType.GAME_WON)
        assert received == []

    def test_history_is_bounded(self):
        emitter = EventEmitter(max_history=3)
        for i in range(5):
            emitter.emit_new(EventType.CARD_DEALT, step=i)
        assert [e.data["step"] for e in emitter.history] == [2, 3, 4]

    def test_clear_history(self):
        emitter = EventEmitter()
        emitter.emit_new(EventType.GAME_STARTED)
        emitter.clear_history()
        assert emitter.history == []

    def test_event_str(self):
        event = GameEvent(EventType.INVALID_ACTION, {"message": "no"})
        assert str(event) == "INVALID_ACTION: {'message': 'no'}"


class TestGameState:
    """Tests for GameState."""

    def test_str(self):
        assert str(GameState.PLAYING) == "Playing"
