"""PhaseStream: the async channel a run reports through.

The session is the only producer and the caller the only consumer. The
stream is closed exactly once; anything emitted after that is dropped.
"""

from __future__ import annotations

import asyncio
from typing import Any, Generic

from conversant.logging import TRACE, get_logger
from conversant.session.phase import Completed, OutputT, SessionPhase

log = get_logger("stream")

_CLOSED = object()


class PhaseStream(Generic[OutputT]):
    """Async iterator over the phases of one run or resume.

    Usage:
        stream = session.run("What's 2+2?", model="gpt-4o", output_type=Answer)
        async for phase in stream:
            print(phase)
        answer = await stream.result()

    A loop failure is reported as a ``Failed`` phase; the stream then ends
    normally and the exception is kept in ``error``. A stream rejected
    before its run started (see ``reject``) raises from iteration instead.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._exhausted = False
        self._rejected = False
        self._error: BaseException | None = None
        self._completed: Completed[OutputT] | None = None
        self._last: SessionPhase | None = None

    # -------------------------------------------------------------------------
    # Producer side
    # -------------------------------------------------------------------------

    def emit(self, phase: SessionPhase) -> bool:
        """Queue a phase. Returns False if the stream is already closed."""
        if self._closed:
            log.log(TRACE, "Dropping %s: stream closed", phase)
            return False
        if isinstance(phase, Completed):
            self._completed = phase
        self._last = phase
        self._queue.put_nowait(phase)
        return True

    def finish(self, error: BaseException | None = None) -> bool:
        """Close the stream, optionally recording the error that ended the run.

        Returns False if the stream was already closed.
        """
        if self._closed:
            return False
        self._closed = True
        self._error = error
        self._queue.put_nowait(_CLOSED)
        return True

    def reject(self, error: BaseException) -> None:
        """Close a stream whose run never started; iterating it raises ``error``."""
        self._rejected = True
        self.finish(error)

    # -------------------------------------------------------------------------
    # Consumer side
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> BaseException | None:
        """The error that ended the run, once the stream is closed."""
        return self._error

    @property
    def last_phase(self) -> SessionPhase | None:
        return self._last

    def __aiter__(self) -> PhaseStream[OutputT]:
        return self

    async def __anext__(self) -> SessionPhase:
        if self._rejected and self._error is not None:
            raise self._error
        if self._exhausted:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._exhausted = True
            raise StopAsyncIteration
        return item

    async def result(self) -> OutputT | None:
        """Drain the stream and return the completed output.

        Returns None when the run ended paused or idle.

        Raises:
            ConversationalAgentError: The error that ended the run
        """
        async for _ in self:
            pass
        if self._error is not None:
            raise self._error
        if self._completed is None:
            return None
        return self._completed.output

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"PhaseStream({state}, pending={self._queue.qsize()})"
