"""Configuration management for quotawatch."""

from quotawatch.config.credentials import (
    check_credential_permissions,
    credential_path,
    delete_credential,
    provider_cli_credential_path,
    read_credential,
    write_credential,
)
from quotawatch.config.keyring import (
    delete_api_key,
    get_api_key,
    keyring_key,
    store_api_key,
    use_keyring,
)
from quotawatch.config.paths import (
    cache_dir,
    config_dir,
    config_file,
    credentials_dir,
    settings_file,
)
from quotawatch.config.settings import (
    Config,
    CredentialsConfig,
    FetchConfig,
    LoggingConfig,
    get_config,
    load_config,
    reload_config,
    save_config,
)
from quotawatch.config.store import (
    DEFAULT_ENABLED_PROVIDERS,
    JsonSettingsRepository,
    SettingsRepository,
    settings_from_dict,
    settings_to_dict,
)

__all__ = [
    # paths
    "config_dir",
    "cache_dir",
    "credentials_dir",
    "config_file",
    "settings_file",
    # settings
    "Config",
    "CredentialsConfig",
    "FetchConfig",
    "LoggingConfig",
    "get_config",
    "load_config",
    "reload_config",
    "save_config",
    # engine settings store
    "DEFAULT_ENABLED_PROVIDERS",
    "SettingsRepository",
    "JsonSettingsRepository",
    "settings_from_dict",
    "settings_to_dict",
    # credentials
    "credential_path",
    "provider_cli_credential_path",
    "write_credential",
    "read_credential",
    "delete_credential",
    "check_credential_permissions",
    # keyring
    "use_keyring",
    "keyring_key",
    "store_api_key",
    "get_api_key",
    "delete_api_key",
]
