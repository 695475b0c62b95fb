"""Tools the agent can call, and the reserved ask_user question tool."""

from conversant.tools.ask_user import (
    ASK_USER_TOOL_NAME,
    AskUserTool,
    extract_question,
    is_ask_user,
)
from conversant.tools.base import (
    FunctionTool,
    Tool,
    ToolDefinition,
    ToolResult,
    ToolSet,
    to_tool_result,
    tool,
)

__all__ = [
    "ASK_USER_TOOL_NAME",
    "AskUserTool",
    "FunctionTool",
    "Tool",
    "ToolDefinition",
    "ToolResult",
    "ToolSet",
    "extract_question",
    "is_ask_user",
    "to_tool_result",
    "tool",
]
