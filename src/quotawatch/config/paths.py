"""Platform-specific paths for quotawatch configuration and cache."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_cache_dir
from platformdirs import user_config_dir

PACKAGE_NAME = "quotawatch"


def _get_env_path(env_var: str, fallback: Path) -> Path:
    """Get path from environment variable or fallback."""
    if env_value := os.environ.get(env_var):
        return Path(env_value)
    return fallback


def config_dir() -> Path:
    """Get user config directory.

    Respects QUOTAWATCH_CONFIG_DIR environment variable.
    """
    base_dir = Path(user_config_dir(PACKAGE_NAME))
    return _get_env_path("QUOTAWATCH_CONFIG_DIR", base_dir)


def cache_dir() -> Path:
    """Get user cache directory.

    Respects QUOTAWATCH_CACHE_DIR environment variable.
    """
    base_dir = Path(user_cache_dir(PACKAGE_NAME))
    return _get_env_path("QUOTAWATCH_CACHE_DIR", base_dir)


def credentials_dir() -> Path:
    """Get credentials subdirectory."""
    return config_dir() / "credentials"


def config_file() -> Path:
    """Get main config.toml path."""
    return config_dir() / "config.toml"


def settings_file() -> Path:
    """Get engine settings.json path."""
    return config_dir() / "settings.json"

