"""Adapter exposing an MCP server tool through the Tool protocol."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from conversant.tools.base import ToolResult

if TYPE_CHECKING:
    from conversant.mcp.client import MCPConnection
    from conversant.mcp.types import MCPToolInfo, MCPToolResult


class MCPTool:
    """A Tool that forwards execution to an MCP server."""

    def __init__(
        self, connection: MCPConnection, info: MCPToolInfo, *, namespaced: bool = False
    ) -> None:
        self._connection = connection
        self._info = info
        self._name = info.qualified_name if namespaced else info.name

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._info.description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self._info.input_schema

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        result = await self._connection.call_tool(self._info.name, arguments)
        return to_tool_result(result)

    def __repr__(self) -> str:
        return f"MCPTool({self._connection.name}.{self._info.name})"


def to_tool_result(result: MCPToolResult) -> ToolResult:
    """Map an MCP result to a ToolResult; failures become error results."""
    if not result.success:
        return ToolResult.error(result.error_message or "MCP tool call failed")

    output = result.text()
    if not output and result.structured_content is not None:
        output = json.dumps(result.structured_content, sort_keys=True)
    if result.is_error:
        return ToolResult.error(output or "MCP tool reported an error")
    return ToolResult.text(output)
