"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from conversant.config import clear_secret_cache, reset_config

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def fresh_config():
    """Drop the cached config and parsed secrets before and after a test."""
    reset_config()
    clear_secret_cache()
    yield
    reset_config()
    clear_secret_cache()
