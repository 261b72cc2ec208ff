"""System keyring integration for provider secrets."""

from __future__ import annotations

import keyring
from keyring.errors import KeyringError

from quotawatch.config.settings import get_config

SERVICE_NAME = "quotawatch"


def use_keyring() -> bool:
    """Check if keyring should be used."""
    return get_config().credentials.use_keyring


def keyring_key(provider_id: str, credential_type: str = "apikey") -> str:
    """Generate a keyring key for storage."""
    return f"{provider_id}:{credential_type}"


def store_api_key(provider_id: str, secret: str) -> bool:
    """Store a provider secret in the system keyring.

    Returns:
        True if stored successfully, False otherwise
    """
    if not use_keyring():
        return False

    try:
        keyring.set_password(SERVICE_NAME, keyring_key(provider_id), secret)
        return True
    except KeyringError:
        return False


def get_api_key(provider_id: str) -> str | None:
    """Retrieve a provider secret from the system keyring."""
    if not use_keyring():
        return None

    try:
        return keyring.get_password(SERVICE_NAME, keyring_key(provider_id))
    except KeyringError:
        return None


def delete_api_key(provider_id: str) -> bool:
    """Delete a provider secret from the system keyring.

    Returns:
        True if deleted, False if absent or the keyring refused
    """
    if not use_keyring():
        return False

    try:
        keyring.delete_password(SERVICE_NAME, keyring_key(provider_id))
        return True
    except KeyringError:
        # PasswordDeleteError when nothing is stored
        return False
