"""MCP (Model Context Protocol) tool servers as session tools."""

from conversant.mcp.client import MCPClientManager, MCPConnection
from conversant.mcp.tools import MCPTool, to_tool_result
from conversant.mcp.transport import create_transport, expand_env_vars
from conversant.mcp.types import MCPConnectionStatus, MCPToolInfo, MCPToolResult

__all__ = [
    "MCPClientManager",
    "MCPConnection",
    "MCPConnectionStatus",
    "MCPTool",
    "MCPToolInfo",
    "MCPToolResult",
    "create_transport",
    "expand_env_vars",
    "to_tool_result",
]
