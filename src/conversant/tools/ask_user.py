"""The reserved question tool.

The session never executes ``ask_user``. It intercepts the call, suspends
the loop, and records the operator's reply as the call's tool result.
"""

from __future__ import annotations

import json
from typing import Any

from conversant.core.messages import ToolCall
from conversant.tools.base import ToolResult

ASK_USER_TOOL_NAME = "ask_user"

DEFAULT_QUESTION = "Please provide additional information."
NO_ANSWER_PROVIDED = "No answer provided"
SECOND_QUESTION_ERROR = (
    "Only one question can be asked at a time. "
    "Wait for the answer to the first question before asking another."
)


class AskUserTool:
    """Lets the model ask the operator a clarifying question."""

    name = ASK_USER_TOOL_NAME
    description = (
        "Ask the user a question to gather additional information. Use this tool "
        "when you need clarification, lack sufficient information to proceed, or "
        "want to confirm the user's intent before taking action."
    )
    input_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "question": {
                "type": "string",
                "description": (
                    "The question to ask the user. Be specific and clear about "
                    "what information you need."
                ),
            }
        },
        "required": ["question"],
    }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        # Intercepted by the session; only reached if a ToolSet is driven directly.
        return ToolResult.text("Waiting for user response...")

    def __repr__(self) -> str:
        return "AskUserTool()"


def is_ask_user(call: ToolCall) -> bool:
    return call.name == ASK_USER_TOOL_NAME


def extract_question(call: ToolCall) -> str:
    """Pull the question text out of an ask_user call's arguments."""
    try:
        question = call.arguments_dict().get("question")
    except json.JSONDecodeError:
        return DEFAULT_QUESTION
    if isinstance(question, str) and question:
        return question
    return DEFAULT_QUESTION
