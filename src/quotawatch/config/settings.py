"""Application configuration structures and loading for quotawatch."""

import os
import tomllib
from pathlib import Path
from typing import Literal

import msgspec
import tomli_w


# Default values
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_CONCURRENT = 5
DEFAULT_LOG_LEVEL = "warning"

LogLevel = Literal["debug", "info", "warning", "error"]


# Fetch configuration
class FetchConfig(msgspec.Struct, omit_defaults=True):
    """Fetch behavior settings."""

    timeout: float = DEFAULT_TIMEOUT
    max_concurrent: int = DEFAULT_MAX_CONCURRENT


# Logging configuration
class LoggingConfig(msgspec.Struct, omit_defaults=True):
    """Log output settings."""

    level: LogLevel = DEFAULT_LOG_LEVEL
    json: bool = False


# Credentials configuration
class CredentialsConfig(msgspec.Struct, omit_defaults=True):
    """Credential management settings."""

    use_keyring: bool = True


# Main configuration
class Config(msgspec.Struct, omit_defaults=True):
    """Main configuration structure."""

    fetch: FetchConfig = msgspec.field(default_factory=FetchConfig)
    logging: LoggingConfig = msgspec.field(default_factory=LoggingConfig)
    credentials: CredentialsConfig = msgspec.field(default_factory=CredentialsConfig)


def _load_from_toml(path: Path) -> dict:
    """Load configuration from TOML file."""
    if not path.exists():
        return {}

    with path.open("rb") as f:
        return tomllib.load(f)


def _save_to_toml(data: dict, path: Path) -> None:
    """Save configuration to TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(data, f)


def convert_config(data: dict) -> Config:
    """Convert raw dict to Config struct."""
    return msgspec.convert(data, type=Config)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config.

    QUOTAWATCH_LOG_LEVEL: debug, info, warning or error
    QUOTAWATCH_LOG_JSON: Emit JSON log lines when set to 1/true
    QUOTAWATCH_FETCH_TIMEOUT: Per-provider fetch timeout in seconds
    """
    if level := os.environ.get("QUOTAWATCH_LOG_LEVEL"):
        level = level.strip().lower()
        if level in ("debug", "info", "warning", "error"):
            logging = msgspec.structs.replace(config.logging, level=level)
            config = msgspec.structs.replace(config, logging=logging)

    if "QUOTAWATCH_LOG_JSON" in os.environ:
        as_json = os.environ["QUOTAWATCH_LOG_JSON"].strip().lower() in ("1", "true", "yes")
        logging = msgspec.structs.replace(config.logging, json=as_json)
        config = msgspec.structs.replace(config, logging=logging)

    if timeout := os.environ.get("QUOTAWATCH_FETCH_TIMEOUT"):
        try:
            fetch = msgspec.structs.replace(config.fetch, timeout=float(timeout))
            config = msgspec.structs.replace(config, fetch=fetch)
        except ValueError:
            pass

    return config


# Config state storage
_config: Config | None = None


def get_config() -> Config:
    """Get the current configuration (singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from disk."""
    global _config
    _config = load_config()
    return _config


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file with defaults."""
    from .paths import config_file

    config_path = path or config_file()

    raw_data = _load_from_toml(config_path)
    if not raw_data:
        config = Config()
    else:
        config = convert_config(raw_data)

    return _apply_env_overrides(config)


def save_config(config: Config, path: Path | None = None) -> None:
    """Save configuration to file."""
    from .paths import config_file

    config_path = path or config_file()
    _save_to_toml(msgspec.to_builtins(config), config_path)

    global _config
    _config = config
