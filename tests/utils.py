"""Shared test utilities for conversant tests."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable
from typing import Any

from conversant.core.llm.provider import ModelResponse, ToolChoice
from conversant.core.messages import Message, TextContent, ToolUseContent
from conversant.session.phase import SessionPhase
from conversant.session.stream import PhaseStream
from conversant.tools.base import ToolSet


def text_response(text: str) -> ModelResponse:
    """A model response carrying only text."""
    return ModelResponse(content=[TextContent(text)], stop_reason="stop")


def tool_use(call_id: str, name: str, **arguments: Any) -> ToolUseContent:
    """A tool-use block with JSON-encoded arguments."""
    return ToolUseContent(id=call_id, name=name, arguments=json.dumps(arguments))


def tool_response(*uses: ToolUseContent, text: str = "") -> ModelResponse:
    """A model response requesting tools, optionally preceded by text."""
    blocks: list[Any] = [TextContent(text)] if text else []
    blocks.extend(uses)
    return ModelResponse(content=blocks, stop_reason="tool_calls")


class ScriptedModelClient:
    """Model client that replays queued responses and records every call.

    Each queued item is a ModelResponse, an exception to raise, or a callable
    taking the message list and returning (or resolving to) a ModelResponse.
    """

    def __init__(self, *responses: Any) -> None:
        self._responses: list[Any] = list(responses)
        self.calls: list[dict[str, Any]] = []

    def queue(self, *responses: Any) -> None:
        self._responses.extend(responses)

    @property
    def remaining(self) -> int:
        return len(self._responses)

    async def execute_agent_step(
        self,
        messages: list[Message],
        *,
        model: str,
        system_prompt: str | None = None,
        tools: ToolSet,
        tool_choice: ToolChoice | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> ModelResponse:
        self.calls.append(
            {
                "messages": list(messages),
                "model": model,
                "system_prompt": system_prompt,
                "tools": tools,
                "tool_choice": tool_choice,
                "response_schema": response_schema,
            }
        )
        if not self._responses:
            raise AssertionError("ScriptedModelClient ran out of responses")

        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            item = item(messages)
            if inspect.isawaitable(item):
                item = await item
        return item


async def collect(
    stream: PhaseStream[Any],
    on_phase: Callable[[SessionPhase], None] | None = None,
    timeout: float = 2.0,
) -> list[SessionPhase]:
    """Drain a phase stream into a list, calling ``on_phase`` for each phase."""

    async def drain() -> list[SessionPhase]:
        phases: list[SessionPhase] = []
        async for phase in stream:
            phases.append(phase)
            if on_phase is not None:
                on_phase(phase)
        return phases

    return await asyncio.wait_for(drain(), timeout=timeout)
