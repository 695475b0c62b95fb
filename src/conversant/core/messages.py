"""Conversation history types.

A Message is a role plus an ordered tuple of content items. Assistant
messages may carry ToolUseContent blocks; each one must later be matched
by a ToolResultContent with the same call id in a user-role message
before the history is replayed to the model.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(Enum):
    """Message role in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class TextContent:
    """Plain text content."""

    text: str


@dataclass(frozen=True, slots=True)
class ToolUseContent:
    """A tool call emitted by the assistant.

    Attributes:
        id: Provider-assigned call id
        name: Name of the tool to invoke
        arguments: Call arguments as JSON text
    """

    id: str
    name: str
    arguments: str = "{}"


@dataclass(frozen=True, slots=True)
class ToolResultContent:
    """The result of a tool call, sent back in a user-role message."""

    call_id: str
    name: str
    output: str
    is_error: bool = False


MessageContent = TextContent | ToolUseContent | ToolResultContent


@dataclass(frozen=True, slots=True)
class Message:
    """A message in an agent conversation."""

    role: Role
    contents: tuple[MessageContent, ...]

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role=Role.USER, contents=(TextContent(text),))

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role=Role.ASSISTANT, contents=(TextContent(text),))

    @classmethod
    def tool_results(cls, responses: list[ToolResponse]) -> Message:
        """Group tool responses into one user-role message, in order."""
        return cls(
            role=Role.USER,
            contents=tuple(r.to_content() for r in responses),
        )

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(c.text for c in self.contents if isinstance(c, TextContent))

    @property
    def tool_uses(self) -> list[ToolUseContent]:
        return [c for c in self.contents if isinstance(c, ToolUseContent)]

    @property
    def tool_results_content(self) -> list[ToolResultContent]:
        return [c for c in self.contents if isinstance(c, ToolResultContent)]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for caller-side persistence."""
        return {
            "role": self.role.value,
            "contents": [_content_to_dict(c) for c in self.contents],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Rebuild a message produced by to_dict()."""
        return cls(
            role=Role(data["role"]),
            contents=tuple(_content_from_dict(c) for c in data.get("contents", [])),
        )


def _content_to_dict(content: MessageContent) -> dict[str, Any]:
    if isinstance(content, TextContent):
        return {"type": "text", "text": content.text}
    if isinstance(content, ToolUseContent):
        return {
            "type": "tool_use",
            "id": content.id,
            "name": content.name,
            "arguments": content.arguments,
        }
    return {
        "type": "tool_result",
        "call_id": content.call_id,
        "name": content.name,
        "output": content.output,
        "is_error": content.is_error,
    }


def _content_from_dict(data: dict[str, Any]) -> MessageContent:
    kind = data.get("type")
    if kind == "text":
        return TextContent(data.get("text", ""))
    if kind == "tool_use":
        return ToolUseContent(
            id=data["id"], name=data["name"], arguments=data.get("arguments", "{}")
        )
    if kind == "tool_result":
        return ToolResultContent(
            call_id=data["call_id"],
            name=data.get("name", ""),
            output=data.get("output", ""),
            is_error=data.get("is_error", False),
        )
    raise ValueError(f"Unknown message content type: {kind!r}")


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation extracted from an assistant response."""

    id: str
    name: str
    arguments: str = "{}"

    def arguments_dict(self) -> dict[str, Any]:
        """Decode the JSON arguments; non-object payloads decode to {}."""
        data = json.loads(self.arguments or "{}")
        return data if isinstance(data, dict) else {}

    @classmethod
    def from_content(cls, content: ToolUseContent) -> ToolCall:
        return cls(id=content.id, name=content.name, arguments=content.arguments)

    def __str__(self) -> str:
        return f"ToolCall({self.name})"


@dataclass(frozen=True, slots=True)
class ToolResponse:
    """The outcome of executing a ToolCall."""

    call_id: str
    name: str
    output: str
    is_error: bool = False

    def to_content(self) -> ToolResultContent:
        return ToolResultContent(
            call_id=self.call_id,
            name=self.name,
            output=self.output,
            is_error=self.is_error,
        )

    def __str__(self) -> str:
        return f"ToolResponse({self.name})"


def find_unanswered_tool_uses(messages: list[Message]) -> list[ToolUseContent]:
    """Return assistant tool calls with no later matching tool result.

    Results are matched by call id; order follows first appearance.
    """
    pending: dict[str, ToolUseContent] = {}
    for message in messages:
        if message.role == Role.ASSISTANT:
            for use in message.tool_uses:
                pending[use.id] = use
        else:
            for result in message.tool_results_content:
                pending.pop(result.call_id, None)
    return list(pending.values())
