"""Tests for AnswerRendezvous."""

from __future__ import annotations

import asyncio

from conversant.core.messages import ToolCall
from conversant.session.rendezvous import AnswerRendezvous

CALL = ToolCall("q1", "ask_user", '{"question": "Why?"}')


class TestAnswerRendezvous:
    async def test_resolve_wakes_waiter(self) -> None:
        rendezvous = AnswerRendezvous(CALL, "Why?")
        waiter = asyncio.create_task(rendezvous.wait())
        await asyncio.sleep(0)

        assert rendezvous.resolve("Because")
        assert await asyncio.wait_for(waiter, timeout=1.0) == "Because"
        assert rendezvous.resolved

    async def test_second_resolution_ignored(self) -> None:
        rendezvous = AnswerRendezvous(CALL, "Why?")

        assert rendezvous.resolve("first")
        assert not rendezvous.resolve("second")
        assert not rendezvous.cancel()
        assert await rendezvous.wait() == "first"

    async def test_cancel_delivers_empty_answer(self) -> None:
        rendezvous = AnswerRendezvous(CALL, "Why?")

        assert rendezvous.cancel()
        assert await rendezvous.wait() == ""
        assert rendezvous.call is CALL
        assert rendezvous.question == "Why?"
