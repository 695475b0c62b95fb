"""Reading, merging and caching ``config.yaml`` layers.

Sources, lowest priority first:

1. System, user and project files (``conversant.config.paths``)
2. ``CONVERSANT_LOG``, ``CONVERSANT_MODEL`` and ``CONVERSANT_MAX_STEPS``

The merged mapping is turned into a typed ``Config``. Keys a section does not
know are ignored; unknown top-level sections land in ``Config.extra``.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import yaml

from conversant.config.merge import merge_configs
from conversant.config.paths import get_config_paths
from conversant.config.schema import (
    AgentConfig,
    Config,
    LLMConfig,
    LoggingConfig,
    MCPConfig,
    MCPServerConfig,
)

# conversant.logging may not be set up yet when config loads
_log = logging.getLogger("conversant.config")

_T = TypeVar("_T")

_SECTIONS: dict[str, type] = {
    "llm": LLMConfig,
    "agent": AgentConfig,
    "logging": LoggingConfig,
}

_cached_config: Config | None = None
_reload_callbacks: list[Callable[[Config], None]] = []


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Parse one YAML file. Missing, unreadable or non-mapping files give {}."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        _log.debug("Cannot read %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def env_overrides() -> dict[str, Any]:
    """Config values taken from ``CONVERSANT_*`` variables.

    Secrets are not read here; see ``fetch_secret``.
    """
    env = os.environ
    overrides: dict[str, dict[str, Any]] = {}

    if env.get("CONVERSANT_LOG"):
        overrides.setdefault("logging", {})["file"] = env["CONVERSANT_LOG"]
    if env.get("CONVERSANT_MODEL"):
        overrides.setdefault("llm", {})["model"] = env["CONVERSANT_MODEL"]

    raw_steps = env.get("CONVERSANT_MAX_STEPS")
    if raw_steps:
        if raw_steps.strip().isdigit():
            overrides.setdefault("agent", {})["max_steps"] = int(raw_steps)
        else:
            _log.warning("Ignoring non-integer CONVERSANT_MAX_STEPS=%r", raw_steps)

    return overrides


def _build(cls: type[_T], data: Any) -> _T:
    """Instantiate a schema dataclass from the keys it declares."""
    if not isinstance(data, dict):
        data = {}
    names = {f.name for f in dataclasses.fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


def _mcp_section(data: Any) -> MCPConfig:
    servers = data.get("servers", []) if isinstance(data, dict) else []
    return MCPConfig(
        servers=[
            _build(MCPServerConfig, s) for s in servers if isinstance(s, dict) and s.get("name")
        ]
    )


def dict_to_config(data: dict[str, Any]) -> Config:
    """Typed Config for a merged mapping.

    Raises:
        ValueError: If a section holds an invalid value (e.g. max_steps < 1)
    """
    sections = {name: _build(cls, data.get(name)) for name, cls in _SECTIONS.items()}
    extra = {k: v for k, v in data.items() if k not in _SECTIONS and k != "mcp"}
    return Config(**sections, mcp=_mcp_section(data.get("mcp")), extra=extra)


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge every config layer.

    Only the global config (no ``project_root``) is cached.

    Args:
        project_root: Directory whose ``.conversant/config.yaml`` is layered on top.
        reload: Ignore the cached global config.
    """
    global _cached_config

    if project_root is None and _cached_config is not None and not reload:
        return _cached_config

    layers = []
    for path in get_config_paths(project_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            layers.append(layer)
    layers.append(env_overrides())

    config = dict_to_config(merge_configs(*layers))
    if project_root is None:
        _cached_config = config
    return config


def get_config() -> Config:
    """The global config, loaded on first use."""
    return _cached_config if _cached_config is not None else load_config()


def reset_config() -> None:
    """Forget the cached global config."""
    global _cached_config
    _cached_config = None


def reload_config(project_root: str | None = None) -> Config:
    """Reload from disk and hand the result to every reload callback.

    A failing callback is logged; the others still run.
    """
    config = load_config(project_root=project_root, reload=True)
    for callback in list(_reload_callbacks):
        try:
            callback(config)
        except Exception as e:
            _log.warning("Config reload callback error: %s", e)
    return config


def on_config_reload(callback: Callable[[Config], None]) -> Callable[[], None]:
    """Register ``callback`` for reload_config(); returns an unregister function."""
    _reload_callbacks.append(callback)

    def unregister() -> None:
        if callback in _reload_callbacks:
            _reload_callbacks.remove(callback)

    return unregister
