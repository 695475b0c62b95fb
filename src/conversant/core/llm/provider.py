"""Model client protocol and base types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from conversant.core.messages import (
    Message,
    Role,
    TextContent,
    ToolCall,
    ToolUseContent,
)

if TYPE_CHECKING:
    from conversant.tools.base import ToolSet


@dataclass(frozen=True, slots=True)
class ToolChoice:
    """Tool-choice policy passed to the model.

    Use the factory methods; ``mode`` is one of "auto", "required", "none",
    or "tool" (with ``tool_name`` set).
    """

    mode: str
    tool_name: str | None = None

    @classmethod
    def auto(cls) -> ToolChoice:
        return cls("auto")

    @classmethod
    def required(cls) -> ToolChoice:
        return cls("required")

    @classmethod
    def none(cls) -> ToolChoice:
        return cls("none")

    @classmethod
    def tool(cls, name: str) -> ToolChoice:
        return cls("tool", name)

    def to_openai(self) -> str | dict[str, Any]:
        if self.mode == "tool":
            return {"type": "function", "function": {"name": self.tool_name}}
        return self.mode


ResponseBlock = TextContent | ToolUseContent


@dataclass(slots=True)
class ModelResponse:
    """One model turn: text and/or tool-use blocks in emission order."""

    content: list[ResponseBlock] = field(default_factory=list)
    stop_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.content if isinstance(b, TextContent))

    @property
    def tool_calls(self) -> list[ToolCall]:
        return [ToolCall.from_content(b) for b in self.content if isinstance(b, ToolUseContent)]

    def to_message(self) -> Message | None:
        """Assistant message for the history, or None if nothing to record.

        Empty text blocks are dropped.
        """
        contents = tuple(
            b for b in self.content if not (isinstance(b, TextContent) and not b.text)
        )
        if not contents:
            return None
        return Message(role=Role.ASSISTANT, contents=contents)


@runtime_checkable
class ModelClient(Protocol):
    """Protocol for model backends able to run one agent step."""

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
        """Run one model call over the conversation history.

        Args:
            messages: Conversation history, oldest first
            model: Model identifier
            system_prompt: Optional system prompt
            tools: Tools the model may call (may be empty)
            tool_choice: Tool-choice policy, None when no tools are offered
            response_schema: JSON schema the text response must follow

        Returns:
            The model's response
        """
        ...
