"""Session lifecycle events delivered to listeners."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from conversant.logging import get_logger

log = get_logger("events")


class SessionEventKind(Enum):
    """Kinds of lifecycle events a session reports."""

    SESSION_STARTED = "session_started"
    USER_MESSAGE = "user_message"
    ASSISTANT_MESSAGE = "assistant_message"
    INTERRUPT_QUEUED = "interrupt_queued"
    INTERRUPT_PROCESSED = "interrupt_processed"
    ASKING_USER = "asking_user"
    USER_ANSWER_PROVIDED = "user_answer_provided"
    SESSION_COMPLETED = "session_completed"
    SESSION_CANCELLED = "session_cancelled"
    CLEARED = "cleared"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    """A lifecycle event. ``payload`` holds kind-specific fields."""

    kind: SessionEventKind
    session_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


SessionListener = Callable[[SessionEvent], None]


class EventDispatcher:
    """Fans events out to registered listeners.

    A listener that raises is logged and skipped.
    """

    def __init__(self, session_id: str) -> None:
        self._session_id = session_id
        self._listeners: list[SessionListener] = []

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister

    def emit(self, kind: SessionEventKind, **payload: Any) -> SessionEvent:
        event = SessionEvent(kind=kind, session_id=self._session_id, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                log.warning("Session listener error on %s: %s", kind.value, e)
        return event

    def __len__(self) -> int:
        return len(self._listeners)
