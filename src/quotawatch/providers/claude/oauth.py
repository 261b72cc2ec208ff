"""OAuth usage client for the Claude provider.

Reuses the tokens the Claude CLI writes to ~/.claude/.credentials.json. An
expired access token is exchanged once with the refresh token; refreshed
tokens are stored in quotawatch's own credential directory.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import structlog

from quotawatch.config.credentials import (
    credential_path,
    provider_cli_credential_path,
    read_credential,
    write_credential,
)
from quotawatch.core.http import get_http_client
from quotawatch.errors.exceptions import AuthError, ProviderConnectionError
from quotawatch.errors.messages import get_auth_error_message

logger = structlog.get_logger(__name__)

PROVIDER_ID = "claude"

# OAuth endpoints
TOKEN_URL = "https://console.anthropic.com/v1/oauth/token"
USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
OAUTH_BETA = "oauth-2025-04-20"


def credential_paths() -> list[Path]:
    """Credential locations in lookup order."""
    paths = [credential_path(PROVIDER_ID, "oauth")]
    cli_path = provider_cli_credential_path(PROVIDER_ID)
    if cli_path is not None:
        paths.append(cli_path)
    return paths


class ClaudeOAuthClient:
    """Fetch Claude usage using OAuth tokens."""

    def has_credentials(self) -> bool:
        return any(path.exists() for path in credential_paths())

    async def fetch_usage(self) -> dict:
        """Return the raw usage payload.

        Raises:
            AuthError: If no usable token is available
            ProviderConnectionError: On transport failures or non-auth HTTP errors
        """
        credentials = self.load_credentials()
        if not credentials or not credentials.get("access_token"):
            raise AuthError(
                get_auth_error_message(PROVIDER_ID, "no_credentials"),
                provider_id=PROVIDER_ID,
            )

        if self.needs_refresh(credentials):
            credentials = await self.refresh_token(credentials)

        try:
            async with get_http_client() as client:
                response = await client.get(
                    USAGE_URL,
                    headers={
                        "Authorization": f"Bearer {credentials['access_token']}",
                        "anthropic-beta": OAUTH_BETA,
                    },
                )
        except httpx.TransportError as e:
            raise ProviderConnectionError(
                f"Failed to reach Claude usage endpoint: {e}", provider_id=PROVIDER_ID
            ) from e

        if response.status_code in (401, 403):
            raise AuthError(
                get_auth_error_message(PROVIDER_ID, str(response.status_code)),
                provider_id=PROVIDER_ID,
            )
        if response.status_code != 200:
            raise ProviderConnectionError(
                f"Usage request failed: HTTP {response.status_code}",
                provider_id=PROVIDER_ID,
            )

        # JSON errors surface as parse failures via classify_exception
        return response.json()

    def load_credentials(self) -> dict | None:
        """Load OAuth credentials from file.

        Handles two formats:
        1. Claude CLI format: {"claudeAiOauth": {"accessToken": "...", ...}}
        2. quotawatch format: {"access_token": "...", ...}
        """
        for path in credential_paths():
            content = read_credential(path)
            if not content:
                continue
            try:
                data = json.loads(content)
            except json.JSONDecodeError:
                logger.warning("credential_unreadable", path=str(path))
                continue

            if "claudeAiOauth" in data:
                data = convert_claude_cli_format(data["claudeAiOauth"])
            return data
        return None

    def needs_refresh(self, credentials: dict) -> bool:
        expires_at = credentials.get("expires_at")
        if not expires_at:
            return False

        try:
            expiry = datetime.fromisoformat(expires_at)
        except (ValueError, TypeError):
            return True
        return datetime.now(timezone.utc) >= expiry

    async def refresh_token(self, credentials: dict) -> dict:
        """Exchange the refresh token for a new access token.

        Raises:
            AuthError: If there is no refresh token or the exchange fails
        """
        refresh_token = credentials.get("refresh_token")
        if not refresh_token:
            raise AuthError(
                get_auth_error_message(PROVIDER_ID, "refresh_failed"),
                provider_id=PROVIDER_ID,
            )

        try:
            async with get_http_client() as client:
                response = await client.post(
                    TOKEN_URL,
                    json={
                        "grant_type": "refresh_token",
                        "refresh_token": refresh_token,
                        "client_id": CLIENT_ID,
                    },
                )
        except httpx.TransportError as e:
            raise ProviderConnectionError(
                f"Failed to reach Claude token endpoint: {e}", provider_id=PROVIDER_ID
            ) from e

        if response.status_code != 200:
            logger.warning("token_refresh_failed", status=response.status_code)
            raise AuthError(
                get_auth_error_message(PROVIDER_ID, "refresh_failed"),
                provider_id=PROVIDER_ID,
            )

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise AuthError(
                get_auth_error_message(PROVIDER_ID, "refresh_failed"),
                provider_id=PROVIDER_ID,
            ) from e

        if "expires_in" in data:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=data["expires_in"])
            data["expires_at"] = expires_at.isoformat()
        data.setdefault("refresh_token", refresh_token)

        self.save_credentials(data)
        logger.info("token_refreshed", provider_id=PROVIDER_ID)
        return data

    def save_credentials(self, credentials: dict) -> None:
        path = credential_path(PROVIDER_ID, "oauth")
        write_credential(path, json.dumps(credentials).encode())


def convert_claude_cli_format(data: dict) -> dict:
    """Convert Claude CLI credential format to standard format.

    Claude CLI uses camelCase keys, convert to snake_case:
    - accessToken -> access_token
    - refreshToken -> refresh_token
    - expiresAt (epoch millis) -> expires_at (ISO string)
    """
    result = {}
    for key, value in data.items():
        snake_key = "".join("_" + c.lower() if c.isupper() else c for c in key).lstrip("_")

        if snake_key == "expires_at" and isinstance(value, (int, float)):
            value = datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()

        result[snake_key] = value
    return result
