"""Credential file management for quotawatch."""

from __future__ import annotations

import stat
from pathlib import Path

from quotawatch.config.paths import credentials_dir

# Provider CLI credential locations
PROVIDER_CREDENTIAL_PATHS: dict[str, str] = {
    "claude": "~/.claude/.credentials.json",
}


def credential_path(provider_id: str, credential_type: str) -> Path:
    """Get the path for a provider's credential file."""
    return credentials_dir() / provider_id / f"{credential_type}.json"


def provider_cli_credential_path(provider_id: str) -> Path | None:
    """Get the provider CLI's own credential file, if one is known."""
    path = PROVIDER_CREDENTIAL_PATHS.get(provider_id)
    return Path(path).expanduser() if path else None


def write_credential(path: Path, content: bytes) -> None:
    """Securely write credential to file with 0o600 permissions."""
    path.parent.mkdir(parents=True, exist_ok=True)

    # Write to temp file first, then rename for atomicity
    temp_path = path.with_suffix(".tmp")
    temp_path.write_bytes(content)

    # Set restrictive permissions
    temp_path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0o600

    # Atomic rename
    temp_path.replace(path)


def read_credential(path: Path) -> bytes | None:
    """Read credential file if it exists and has secure permissions."""
    if not path.exists():
        return None

    if not check_credential_permissions(path):
        return None

    return path.read_bytes()


def delete_credential(path: Path) -> bool:
    """Delete credential file.

    Returns:
        True if deleted, False if didn't exist
    """
    if not path.exists():
        return False

    path.unlink()
    return True


def check_credential_permissions(path: Path) -> bool:
    """Verify credential file has secure permissions (0o600 or stricter)."""
    if not path.exists():
        return True

    mode = path.stat().st_mode
    return not (mode & (stat.S_IRGRP | stat.S_IWGRP | stat.S_IROTH | stat.S_IWOTH))
