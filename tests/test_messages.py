"""Tests for conversation history types."""

from __future__ import annotations

import json

import pytest

from conversant.core.messages import (
    Message,
    Role,
    TextContent,
    ToolCall,
    ToolResponse,
    ToolResultContent,
    ToolUseContent,
    find_unanswered_tool_uses,
)


class TestMessage:
    """Tests for Message construction and accessors."""

    def test_user_and_assistant(self) -> None:
        assert Message.user("hi") == Message(Role.USER, (TextContent("hi"),))
        assert Message.assistant("yo").role == Role.ASSISTANT

    def test_text_joins_text_blocks(self) -> None:
        message = Message(
            Role.ASSISTANT,
            (TextContent("a"), ToolUseContent("c1", "t"), TextContent("b")),
        )
        assert message.text == "ab"
        assert [u.id for u in message.tool_uses] == ["c1"]

    def test_tool_results_preserve_order(self) -> None:
        message = Message.tool_results(
            [ToolResponse("c1", "a", "one"), ToolResponse("c2", "b", "two", is_error=True)]
        )
        assert message.role == Role.USER
        assert message.tool_results_content == [
            ToolResultContent("c1", "a", "one"),
            ToolResultContent("c2", "b", "two", is_error=True),
        ]

    def test_dict_round_trip_of_mixed_contents(self) -> None:
        message = Message(
            Role.ASSISTANT,
            (TextContent("thinking"), ToolUseContent("c1", "lookup", '{"q": 1}')),
        )
        data = json.loads(json.dumps(message.to_dict()))
        assert Message.from_dict(data) == message

    def test_from_dict_rejects_unknown_content(self) -> None:
        with pytest.raises(ValueError, match="Unknown message content type"):
            Message.from_dict({"role": "user", "contents": [{"type": "image"}]})


class TestToolCall:
    """Tests for ToolCall argument decoding."""

    def test_arguments_dict(self) -> None:
        assert ToolCall("c1", "t", '{"q": "x"}').arguments_dict() == {"q": "x"}

    def test_empty_arguments(self) -> None:
        assert ToolCall("c1", "t", "").arguments_dict() == {}

    def test_non_object_arguments(self) -> None:
        assert ToolCall("c1", "t", "[1, 2]").arguments_dict() == {}

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(json.JSONDecodeError):
            ToolCall("c1", "t", "{oops").arguments_dict()

    def test_from_content(self) -> None:
        call = ToolCall.from_content(ToolUseContent("c1", "lookup", '{"a": 1}'))
        assert call == ToolCall("c1", "lookup", '{"a": 1}')


class TestFindUnansweredToolUses:
    """Tests for dangling tool call detection."""

    def test_all_answered(self) -> None:
        history = [
            Message.user("hi"),
            Message(Role.ASSISTANT, (ToolUseContent("a", "t"),)),
            Message.tool_results([ToolResponse("a", "t", "ok")]),
        ]
        assert find_unanswered_tool_uses(history) == []

    def test_partial_batch(self) -> None:
        history = [
            Message(Role.ASSISTANT, (ToolUseContent("a", "t"), ToolUseContent("b", "u"))),
            Message.tool_results([ToolResponse("a", "t", "ok")]),
        ]
        assert find_unanswered_tool_uses(history) == [ToolUseContent("b", "u")]

    def test_order_follows_first_appearance(self) -> None:
        history = [
            Message(Role.ASSISTANT, (ToolUseContent("x", "t"),)),
            Message.user("interrupt"),
            Message(Role.ASSISTANT, (ToolUseContent("y", "t"),)),
        ]
        assert [u.id for u in find_unanswered_tool_uses(history)] == ["x", "y"]
