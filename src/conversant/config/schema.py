"""Configuration schema dataclasses for conversant.

All sections have defaults so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AgentConfig:
    """Per-session agent loop configuration. Immutable once a session exists.

    Example config.yaml:
        agent:
          max_steps: 20
          auto_execute_tools: true
          parallel_tool_calls: false
          interactive_mode: true
    """

    max_steps: int = 10  # Model calls allowed per run/resume
    auto_execute_tools: bool = True  # False: report tool calls and stop
    parallel_tool_calls: bool = False  # Execute one batch concurrently
    interactive_mode: bool = False  # Offer the ask_user tool

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {self.max_steps}")


@dataclass
class LLMConfig:
    """Model client configuration."""

    model: str | None = None  # e.g. "claude-sonnet-4-5-20250929", "gpt-4o"
    api_base: str | None = None  # Custom endpoint
    max_tokens: int | None = None  # Default: 4096
    temperature: float | None = None  # Omitted from requests when unset
    api_key_env: str | None = None  # e.g. "ANTHROPIC_API_KEY", read via fetch_secret()


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class MCPServerConfig:
    """Configuration for a single MCP tool server.

    Supports three transport types:
        - stdio: Spawns a subprocess (requires command)
        - streamable-http: Connects to HTTP endpoint (requires url)
        - sse: Connects to SSE endpoint (requires url)
    """

    name: str
    command: list[str] | None = None  # For stdio: ["npx", "-y", "@mcp/server"]
    extra_args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)  # Supports ${VAR}
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    transport: str = "stdio"
    auto_connect: bool = False
    timeout: float = 30.0


@dataclass
class MCPConfig:
    """MCP client configuration.

    Example config.yaml:
        mcp:
          servers:
            - name: filesystem
              command: ["npx", "-y", "@modelcontextprotocol/server-filesystem"]
              extra_args: ["/home/user/allowed"]
              auto_connect: true
    """

    servers: list[MCPServerConfig] = field(default_factory=list)


@dataclass
class Config:
    """Root configuration object."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    mcp: MCPConfig = field(default_factory=MCPConfig)

    # Unknown top-level sections, kept for extensions
    extra: dict[str, Any] = field(default_factory=dict)
