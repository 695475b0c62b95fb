"""Tests for the ask_user tool."""

from __future__ import annotations

from conversant.core.messages import ToolCall
from conversant.tools.ask_user import (
    ASK_USER_TOOL_NAME,
    DEFAULT_QUESTION,
    AskUserTool,
    extract_question,
    is_ask_user,
)


class TestAskUserTool:
    def test_schema_requires_question(self) -> None:
        tool = AskUserTool()
        assert tool.name == ASK_USER_TOOL_NAME == "ask_user"
        assert tool.input_schema["required"] == ["question"]

    async def test_direct_execution_placeholder(self) -> None:
        result = await AskUserTool().execute({"question": "Why?"})
        assert not result.is_error


class TestExtractQuestion:
    """Tests for question extraction from call arguments."""

    def test_question(self) -> None:
        call = ToolCall("q1", "ask_user", '{"question": "Which city?"}')
        assert is_ask_user(call)
        assert extract_question(call) == "Which city?"

    def test_missing_question(self) -> None:
        assert extract_question(ToolCall("q1", "ask_user", "{}")) == DEFAULT_QUESTION

    def test_invalid_json(self) -> None:
        assert extract_question(ToolCall("q1", "ask_user", "{broken")) == DEFAULT_QUESTION

    def test_non_string_question(self) -> None:
        assert extract_question(ToolCall("q1", "ask_user", '{"question": 3}')) == DEFAULT_QUESTION

    def test_other_tool(self) -> None:
        assert not is_ask_user(ToolCall("c1", "lookup"))
