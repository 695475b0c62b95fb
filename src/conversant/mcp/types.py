"""Value types shared by the MCP connection code and the tool adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

NAMESPACE_SEPARATOR = "__"


class MCPConnectionStatus(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class MCPToolInfo:
    """A tool advertised by a server's ``tools/list``."""

    name: str
    description: str
    input_schema: dict[str, Any]
    server_name: str

    @property
    def qualified_name(self) -> str:
        """``<server>__<tool>``, unique across servers."""
        return f"{self.server_name}{NAMESPACE_SEPARATOR}{self.name}"


@dataclass
class MCPToolResult:
    """Outcome of a ``tools/call`` request.

    ``success`` is False when the request never produced a server response
    (not connected, transport error). ``is_error`` is set for those and for
    responses the server itself flagged as a tool error.
    """

    success: bool
    content: list[dict[str, Any]] = field(default_factory=list)
    structured_content: dict[str, Any] | None = None
    is_error: bool = False
    error_message: str | None = None

    @classmethod
    def failure(cls, message: str) -> MCPToolResult:
        return cls(success=False, is_error=True, error_message=message)

    def text(self) -> str:
        """Text blocks joined with newlines; other block types are skipped."""
        return "\n".join(
            block.get("text") or "" for block in self.content if block.get("type") == "text"
        )

    def __repr__(self) -> str:
        if not self.success:
            return f"MCPToolResult(failed={self.error_message!r})"
        kind = "error" if self.is_error else "ok"
        return f"MCPToolResult({kind}, blocks={len(self.content)})"
