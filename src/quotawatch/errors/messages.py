"""Provider-specific error message templates with remediation."""

from __future__ import annotations

from quotawatch.errors.types import ErrorCategory

NEEDS_RECONNECT = "needs reconnect"

AUTH_ERROR_TEMPLATES: dict[str, dict[str, str]] = {
    "claude": {
        "401": "Claude session expired or invalid. Sign in again with the Claude CLI.",
        "403": "Access denied. Your account may not have a Claude Pro/Max subscription.",
        "no_credentials": (
            "No Claude credentials found. Sign in with the Claude CLI "
            "(~/.claude/.credentials.json)."
        ),
        "refresh_failed": "Claude token expired and could not be refreshed.",
    },
    "openai": {
        "401": "OpenAI admin key rejected.",
        "403": "OpenAI key lacks access to organization usage. Use an Admin API key.",
        "no_credentials": (
            "No OpenAI admin key found. Run 'quotawatch key set openai'."
        ),
    },
}


def get_auth_error_message(
    provider_id: str,
    error_type: str,
) -> str:
    """Get provider-specific auth error message.

    Args:
        provider_id: Provider identifier (e.g., "claude", "openai")
        error_type: Error type key (e.g., "401", "no_credentials")

    Returns:
        Error message string with remediation steps
    """
    templates = AUTH_ERROR_TEMPLATES.get(provider_id, {})
    return templates.get(
        error_type,
        f"Authentication error for {provider_id}: {NEEDS_RECONNECT}.",
    )


def get_provider_remediation(provider_id: str, category: str) -> str | None:
    """Get remediation message for a provider error category."""
    general_remediation = {
        ErrorCategory.AUTHENTICATION: (
            f"Reconnect {provider_id}: run 'quotawatch key set {provider_id}' "
            "or sign in again."
        ),
        ErrorCategory.NETWORK: "Check your internet connection and try again.",
        ErrorCategory.PROVIDER: (
            f"The {provider_id} service may be experiencing issues."
        ),
        ErrorCategory.PARSE: (
            f"The {provider_id} usage response changed shape. Please report this."
        ),
        ErrorCategory.CONFIGURATION: (
            "Run 'quotawatch config show' to check your configuration."
        ),
    }

    return general_remediation.get(category)
