"""MCP server connections and the manager that owns them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mcp import types
from mcp.client.session import ClientSession

from conversant.logging import get_logger
from conversant.mcp.transport import create_transport
from conversant.mcp.types import MCPConnectionStatus, MCPToolInfo, MCPToolResult

if TYPE_CHECKING:
    from conversant.config.schema import MCPConfig, MCPServerConfig
    from conversant.tools.base import ToolSet

log = get_logger("mcp")


def _convert_content(blocks: list[Any]) -> list[dict[str, Any]]:
    content: list[dict[str, Any]] = []
    for block in blocks:
        if isinstance(block, types.TextContent):
            content.append({"type": "text", "text": block.text})
        elif isinstance(block, types.ImageContent):
            content.append({"type": "image", "data": block.data, "mime_type": block.mimeType})
        elif isinstance(block, types.EmbeddedResource):
            res = block.resource
            content.append(
                {
                    "type": "resource",
                    "uri": str(res.uri),
                    "text": getattr(res, "text", None),
                }
            )
    return content


@dataclass
class MCPConnection:
    """A live connection to one MCP server."""

    name: str
    config: MCPServerConfig
    session: ClientSession | None = None
    status: MCPConnectionStatus = MCPConnectionStatus.DISCONNECTED
    tools: list[MCPToolInfo] = field(default_factory=list)
    error_message: str | None = None
    _transport_context: Any = None

    @property
    def connected(self) -> bool:
        return self.session is not None and self.status == MCPConnectionStatus.CONNECTED

    async def connect(self) -> None:
        """Open the transport, initialize the session and list tools."""
        self.status = MCPConnectionStatus.CONNECTING
        try:
            self._transport_context = create_transport(self.config)
            streams = await self._transport_context.__aenter__()

            self.session = ClientSession(streams[0], streams[1])
            await self.session.__aenter__()
            await self.session.initialize()

            listed = await self.session.list_tools()
            self.tools = [
                MCPToolInfo(
                    name=t.name,
                    description=t.description or "",
                    input_schema=t.inputSchema,
                    server_name=self.name,
                )
                for t in listed.tools
            ]
        except Exception as e:
            self.status = MCPConnectionStatus.ERROR
            self.error_message = str(e)
            log.error("Failed to connect to MCP server '%s': %s", self.name, e)
            raise

        self.status = MCPConnectionStatus.CONNECTED
        log.info("Connected to MCP server '%s' with %d tools", self.name, len(self.tools))

    async def disconnect(self) -> None:
        """Close the session and transport. Safe to call more than once."""
        if self.session is not None:
            try:
                await self.session.__aexit__(None, None, None)
            except Exception as e:
                log.warning("Error closing session for '%s': %s", self.name, e)
            self.session = None
        if self._transport_context is not None:
            try:
                await self._transport_context.__aexit__(None, None, None)
            except Exception as e:
                log.warning("Error closing transport for '%s': %s", self.name, e)
            self._transport_context = None
        self.status = MCPConnectionStatus.DISCONNECTED
        self.tools = []
        log.info("Disconnected from MCP server '%s'", self.name)

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> MCPToolResult:
        """Call a tool on this server. Failures are returned, not raised."""
        if not self.connected:
            return MCPToolResult.failure(f"Server '{self.name}' is not connected")

        assert self.session is not None
        try:
            result = await self.session.call_tool(tool_name, arguments)
        except Exception as e:
            log.error("Tool call failed: %s.%s: %s", self.name, tool_name, e)
            return MCPToolResult.failure(str(e))

        return MCPToolResult(
            success=True,
            content=_convert_content(result.content),
            structured_content=result.structuredContent,
            is_error=bool(result.isError),
        )


@dataclass
class MCPClientManager:
    """Owns the MCP connections whose tools a session may use."""

    connections: dict[str, MCPConnection] = field(default_factory=dict)
    config: MCPConfig | None = None

    async def connect(
        self,
        name: str | None = None,
        config: MCPServerConfig | None = None,
    ) -> MCPConnection:
        """Connect to a server by configured name or with an explicit config.

        Raises:
            ValueError: If neither is given or the name is not configured
        """
        if config is not None:
            name = name or config.name
        elif name:
            if self.config is not None:
                config = next((s for s in self.config.servers if s.name == name), None)
            if config is None:
                raise ValueError(f"MCP server '{name}' not found in config")
        else:
            raise ValueError("Must provide either 'name' or 'config'")

        existing = self.connections.get(name)
        if existing is not None:
            if existing.connected:
                return existing
            await existing.disconnect()

        connection = MCPConnection(name=name, config=config)
        await connection.connect()
        self.connections[name] = connection
        return connection

    async def connect_configured(self) -> list[MCPConnection]:
        """Connect every configured server marked ``auto_connect``.

        A server that fails to connect is logged and skipped.
        """
        connected: list[MCPConnection] = []
        if self.config is None:
            return connected
        for server in self.config.servers:
            if not server.auto_connect:
                continue
            try:
                connected.append(await self.connect(config=server))
            except Exception as e:
                log.warning("Skipping MCP server '%s': %s", server.name, e)
        return connected

    async def disconnect(self, name: str) -> None:
        connection = self.connections.pop(name, None)
        if connection is not None:
            await connection.disconnect()

    async def disconnect_all(self) -> None:
        for name in list(self.connections):
            await self.disconnect(name)

    def get_connection(self, name: str) -> MCPConnection | None:
        return self.connections.get(name)

    def get_all_tools(self) -> list[MCPToolInfo]:
        """Tools from every connected server, in connection order."""
        tools: list[MCPToolInfo] = []
        for conn in self.connections.values():
            if conn.connected:
                tools.extend(conn.tools)
        return tools

    def toolset(self, *, namespaced: bool = False) -> ToolSet:
        """Expose the connected servers' tools as a ToolSet.

        Args:
            namespaced: Name tools ``<server>__<tool>`` to avoid collisions
        """
        from conversant.mcp.tools import MCPTool
        from conversant.tools.base import ToolSet

        return ToolSet(
            MCPTool(self.connections[info.server_name], info, namespaced=namespaced)
            for info in self.get_all_tools()
        )
