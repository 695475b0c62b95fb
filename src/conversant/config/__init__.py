"""conversant configuration.

``config.yaml`` files from the system, user and project layers are merged
(see ``conversant.config.paths``), then ``CONVERSANT_*`` environment
variables are applied on top. Secrets such as provider keys never live in
the files; they are read with ``fetch_secret``.

    from conversant.config import get_config

    steps = get_config().agent.max_steps
"""

from conversant.config.loader import (
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from conversant.config.paths import get_config_paths
from conversant.config.schema import (
    AgentConfig,
    Config,
    LLMConfig,
    LoggingConfig,
    MCPConfig,
    MCPServerConfig,
)
from conversant.config.secrets import clear_secret_cache, fetch_secret

__all__ = [
    "Config",
    "AgentConfig",
    "LLMConfig",
    "LoggingConfig",
    "MCPConfig",
    "MCPServerConfig",
    "get_config",
    "load_config",
    "reload_config",
    "reset_config",
    "on_config_reload",
    "get_config_paths",
    "fetch_secret",
    "clear_secret_cache",
]
