"""Tests for the Claude OAuth usage client."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import httpx
import pytest

from quotawatch.config.credentials import credential_path
from quotawatch.config.credentials import write_credential
from quotawatch.core.http import build_client
from quotawatch.core.http import set_http_client
from quotawatch.errors.exceptions import AuthError
from quotawatch.errors.exceptions import ProviderConnectionError
from quotawatch.providers.claude import ClaudeProvider
from quotawatch.providers.claude.oauth import OAUTH_BETA
from quotawatch.providers.claude.oauth import TOKEN_URL
from quotawatch.providers.claude.oauth import USAGE_URL
from quotawatch.providers.claude.oauth import ClaudeOAuthClient
from quotawatch.providers.claude.oauth import convert_claude_cli_format


def _store(credentials: dict) -> None:
    write_credential(credential_path("claude", "oauth"), json.dumps(credentials).encode())


def _mock_transport(handler) -> list[httpx.Request]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    set_http_client(build_client(transport=httpx.MockTransport(record)))
    return requests


@pytest.fixture
def only_local_credentials():
    """Keep the real ~/.claude credentials out of the lookup."""
    with patch(
        "quotawatch.providers.claude.oauth.credential_paths",
        return_value=[credential_path("claude", "oauth")],
    ):
        yield


class TestConvertClaudeCliFormat:
    """Tests for convert_claude_cli_format."""

    def test_converts_keys_and_expiry(self):
        result = convert_claude_cli_format(
            {"accessToken": "at", "refreshToken": "rt", "expiresAt": 1768000000000}
        )

        assert result["access_token"] == "at"
        assert result["refresh_token"] == "rt"
        assert datetime.fromisoformat(result["expires_at"]) == datetime.fromtimestamp(
            1768000000, tz=timezone.utc
        )


@pytest.mark.usefixtures("only_local_credentials")
class TestLoadCredentials:
    """Tests for credential loading."""

    def test_quotawatch_format(self):
        _store({"access_token": "at"})

        assert ClaudeOAuthClient().load_credentials() == {"access_token": "at"}

    def test_cli_format(self):
        _store({"claudeAiOauth": {"accessToken": "at"}})

        assert ClaudeOAuthClient().load_credentials() == {"access_token": "at"}

    def test_missing(self):
        client = ClaudeOAuthClient()

        assert client.load_credentials() is None
        assert client.has_credentials() is False

    def test_unreadable_json(self):
        write_credential(credential_path("claude", "oauth"), b"{oops")

        assert ClaudeOAuthClient().load_credentials() is None


class TestNeedsRefresh:
    """Tests for token expiry checks."""

    def test_no_expiry(self):
        assert ClaudeOAuthClient().needs_refresh({"access_token": "at"}) is False

    def test_expired(self):
        past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()

        assert ClaudeOAuthClient().needs_refresh({"expires_at": past}) is True

    def test_valid(self):
        future = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()

        assert ClaudeOAuthClient().needs_refresh({"expires_at": future}) is False

    def test_garbage_expiry(self):
        assert ClaudeOAuthClient().needs_refresh({"expires_at": "tomorrow"}) is True


@pytest.mark.usefixtures("only_local_credentials")
class TestFetchUsage:
    """Tests for ClaudeOAuthClient.fetch_usage."""

    @pytest.mark.asyncio
    async def test_success(self, claude_usage_payload):
        _store({"access_token": "at"})
        requests = _mock_transport(
            lambda request: httpx.Response(200, json=claude_usage_payload)
        )

        result = await ClaudeOAuthClient().fetch_usage()

        assert result == claude_usage_payload
        assert str(requests[0].url) == USAGE_URL
        assert requests[0].headers["Authorization"] == "Bearer at"
        assert requests[0].headers["anthropic-beta"] == OAUTH_BETA

    @pytest.mark.asyncio
    async def test_no_credentials(self):
        with pytest.raises(AuthError) as exc_info:
            await ClaudeOAuthClient().fetch_usage()

        assert exc_info.value.provider_id == "claude"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_rejected(self, status):
        _store({"access_token": "at"})
        _mock_transport(lambda request: httpx.Response(status))

        with pytest.raises(AuthError):
            await ClaudeOAuthClient().fetch_usage()

    @pytest.mark.asyncio
    async def test_server_error(self):
        _store({"access_token": "at"})
        _mock_transport(lambda request: httpx.Response(503))

        with pytest.raises(ProviderConnectionError, match="HTTP 503"):
            await ClaudeOAuthClient().fetch_usage()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        _store({"access_token": "at"})

        def fail(request):
            raise httpx.ConnectError("refused", request=request)

        _mock_transport(fail)

        with pytest.raises(ProviderConnectionError):
            await ClaudeOAuthClient().fetch_usage()

    @pytest.mark.asyncio
    async def test_refreshes_expired_token(self, claude_usage_payload):
        """An expired token is exchanged once and the new one is stored."""
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
        _store({"access_token": "old", "refresh_token": "rt", "expires_at": past})

        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "new", "expires_in": 3600})
            return httpx.Response(200, json=claude_usage_payload)

        requests = _mock_transport(handler)

        await ClaudeOAuthClient().fetch_usage()

        body = json.loads(requests[0].content)
        assert body["grant_type"] == "refresh_token"
        assert body["refresh_token"] == "rt"
        assert requests[1].headers["Authorization"] == "Bearer new"

        stored = ClaudeOAuthClient().load_credentials()
        assert stored["access_token"] == "new"
        assert stored["refresh_token"] == "rt"
        assert datetime.fromisoformat(stored["expires_at"]) > datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_refresh_rejected(self):
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
        _store({"access_token": "old", "refresh_token": "rt", "expires_at": past})
        _mock_transport(lambda request: httpx.Response(400))

        with pytest.raises(AuthError):
            await ClaudeOAuthClient().fetch_usage()

    @pytest.mark.asyncio
    async def test_expired_without_refresh_token(self):
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
        _store({"access_token": "old", "expires_at": past})

        with pytest.raises(AuthError):
            await ClaudeOAuthClient().fetch_usage()


@pytest.mark.usefixtures("only_local_credentials")
class TestClaudeProvider:
    """Tests for ClaudeProvider."""

    def test_metadata(self):
        provider = ClaudeProvider()

        assert provider.id == "claude"
        assert provider.name == "Claude"
        assert provider.metadata.usage_shape == "utilization_window"

    def test_is_configured(self):
        provider = ClaudeProvider()
        assert provider.is_configured() is False

        _store({"access_token": "at"})
        assert provider.is_configured() is True
