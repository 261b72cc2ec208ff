"""Tests for errors/messages.py (provider-specific error message templates)."""

from __future__ import annotations

import pytest

from quotawatch.errors.messages import AUTH_ERROR_TEMPLATES
from quotawatch.errors.messages import NEEDS_RECONNECT
from quotawatch.errors.messages import get_auth_error_message
from quotawatch.errors.messages import get_provider_remediation
from quotawatch.errors.types import ErrorCategory


class TestAuthErrorTemplates:
    """Tests for AUTH_ERROR_TEMPLATES constant."""

    @pytest.mark.parametrize("provider", ["claude", "openai"])
    def test_required_keys(self, provider):
        templates = AUTH_ERROR_TEMPLATES[provider]

        for key in ("401", "403", "no_credentials"):
            assert templates[key]


class TestGetAuthErrorMessage:
    """Tests for get_auth_error_message."""

    def test_known_template(self):
        message = get_auth_error_message("openai", "no_credentials")

        assert "quotawatch key set openai" in message

    def test_unknown_provider_mentions_reconnect(self):
        """Unknown providers get a generic needs-reconnect message."""
        message = get_auth_error_message("mystery", "401")

        assert message == f"Authentication error for mystery: {NEEDS_RECONNECT}."

    def test_unknown_error_type(self):
        assert NEEDS_RECONNECT in get_auth_error_message("claude", "418")


class TestGetProviderRemediation:
    """Tests for get_provider_remediation."""

    def test_auth_names_provider(self):
        remediation = get_provider_remediation("claude", ErrorCategory.AUTHENTICATION)

        assert "claude" in remediation

    def test_parse(self):
        remediation = get_provider_remediation("openai", ErrorCategory.PARSE)

        assert "openai" in remediation

    def test_unknown_category(self):
        assert get_provider_remediation("claude", ErrorCategory.UNKNOWN) is None
