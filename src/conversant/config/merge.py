"""Layered merge of config dicts (system < user < project < env)."""

from __future__ import annotations

from functools import reduce
from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` overlaid with ``override``; neither input is changed.

    Mappings present on both sides merge key by key. A ``None`` in
    ``override`` leaves the base value alone, so a partial file can omit
    settings. Lists and scalars are replaced wholesale.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        merged[key] = (
            deep_merge(current, value)
            if isinstance(current, dict) and isinstance(value, dict)
            else value
        )
    return merged


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Fold configs left to right; empty ones are skipped."""
    return reduce(deep_merge, (c for c in configs if c), {})
