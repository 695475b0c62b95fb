"""Provider API keys and other secrets.

Config files never hold keys. ``LLMConfig.api_key_env`` names a secret, and
``fetch_secret`` resolves it from the process environment or, failing that,
from a ``.env.secrets`` file in the working directory. The file is parsed
once per path with python-dotenv.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values

SECRETS_FILE = ".env.secrets"


@lru_cache(maxsize=8)
def _secrets_file(path: Path) -> dict[str, str | None]:
    return dotenv_values(path) if path.is_file() else {}


def fetch_secret(
    key: str,
    default: str | None = None,
    secrets_path: Path | None = None,
) -> str | None:
    """Look up ``key`` in os.environ, then the secrets file, else ``default``.

    Example:
        >>> fetch_secret("ANTHROPIC_API_KEY")
        'sk-ant-...'
    """
    if key in os.environ:
        return os.environ[key]
    found = _secrets_file(secrets_path or Path(SECRETS_FILE)).get(key)
    return default if found is None else found


def clear_secret_cache() -> None:
    """Forget parsed secrets files (after editing one, or between tests)."""
    _secrets_file.cache_clear()
