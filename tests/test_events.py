"""Tests for session lifecycle events."""

from __future__ import annotations

from unittest.mock import Mock

from conversant.session.events import EventDispatcher, SessionEvent, SessionEventKind


class TestEventDispatcher:
    def test_emit_builds_event(self) -> None:
        dispatcher = EventDispatcher("sess-1")
        received: list[SessionEvent] = []
        dispatcher.add_listener(received.append)

        event = dispatcher.emit(SessionEventKind.INTERRUPT_QUEUED, text="stop")

        assert received == [event]
        assert event.session_id == "sess-1"
        assert event.payload == {"text": "stop"}
        assert event.timestamp > 0

    def test_listener_error_is_isolated(self) -> None:
        dispatcher = EventDispatcher("sess-1")
        broken = Mock(side_effect=RuntimeError("bad listener"))
        healthy = Mock()
        dispatcher.add_listener(broken)
        dispatcher.add_listener(healthy)

        dispatcher.emit(SessionEventKind.CLEARED)

        healthy.assert_called_once()

    def test_unregister_twice(self) -> None:
        dispatcher = EventDispatcher("sess-1")
        unregister = dispatcher.add_listener(Mock())

        unregister()
        unregister()

        assert len(dispatcher) == 0
