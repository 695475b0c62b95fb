"""Transport factory for MCP servers (stdio, streamable-http, sse)."""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING, Any, AsyncContextManager

if TYPE_CHECKING:
    from conversant.config.schema import MCPServerConfig

_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(values: dict[str, str]) -> dict[str, str]:
    """Substitute ${VAR} references with environment values (missing -> "")."""
    return {
        key: _VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
        for key, value in values.items()
    }


def create_transport(config: MCPServerConfig) -> AsyncContextManager[tuple[Any, ...]]:
    """Build the transport context manager for a server config.

    The context manager yields a tuple whose first two items are the read
    and write streams for ``mcp.ClientSession``.

    Raises:
        ValueError: If the transport is unknown or a required field is missing
    """
    if config.transport == "stdio":
        if not config.command:
            raise ValueError(f"stdio transport requires 'command' for server '{config.name}'")

        from mcp.client.stdio import StdioServerParameters, stdio_client

        env = dict(os.environ)
        env.update(expand_env_vars(config.env))
        params = StdioServerParameters(
            command=config.command[0],
            args=[*config.command[1:], *config.extra_args],
            env=env,
        )
        return stdio_client(params)

    if config.transport == "streamable-http":
        if not config.url:
            raise ValueError(
                f"streamable-http transport requires 'url' for server '{config.name}'"
            )

        from mcp.client.streamable_http import streamablehttp_client

        headers = {k: v for k, v in expand_env_vars(config.headers).items() if v}
        return streamablehttp_client(config.url, headers=headers or None, timeout=config.timeout)

    if config.transport == "sse":
        if not config.url:
            raise ValueError(f"sse transport requires 'url' for server '{config.name}'")

        from mcp.client.sse import sse_client

        headers = {k: v for k, v in expand_env_vars(config.headers).items() if v}
        return sse_client(config.url, headers=headers or None, timeout=config.timeout)

    raise ValueError(f"Unknown transport: {config.transport}")
