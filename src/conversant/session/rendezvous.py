"""One-shot suspension point for the ask_user tool."""

from __future__ import annotations

import asyncio

from conversant.core.messages import ToolCall
from conversant.logging import get_logger

log = get_logger("rendezvous")


class AnswerRendezvous:
    """Holds a pending ask_user call until the operator answers.

    The loop awaits ``wait()``; ``resolve()`` (from reply) or ``cancel()``
    completes it. Only the first resolution counts.
    """

    def __init__(self, call: ToolCall, question: str) -> None:
        self.call = call
        self.question = question
        self._future: asyncio.Future[str] = asyncio.get_running_loop().create_future()

    @property
    def resolved(self) -> bool:
        return self._future.done()

    async def wait(self) -> str:
        return await self._future

    def resolve(self, answer: str) -> bool:
        """Deliver the answer. Returns False if already resolved."""
        if self._future.done():
            log.debug("Ignoring second answer for call %s", self.call.id)
            return False
        self._future.set_result(answer)
        return True

    def cancel(self) -> bool:
        """Wake the waiting loop with an empty answer."""
        return self.resolve("")

    def __repr__(self) -> str:
        state = "resolved" if self.resolved else "pending"
        return f"AnswerRendezvous({self.call.id}, {state})"
