"""Exception classification for structured error handling."""

from __future__ import annotations

import asyncio
import json

import httpx
import msgspec

from quotawatch.errors.exceptions import QuotawatchError
from quotawatch.errors.messages import get_provider_remediation
from quotawatch.errors.types import ErrorCategory
from quotawatch.errors.types import ErrorSeverity
from quotawatch.errors.types import UsageError
from quotawatch.errors.types import classify_http_error

_SEVERITY_BY_CATEGORY = {
    ErrorCategory.AUTHENTICATION: ErrorSeverity.RECOVERABLE,
    ErrorCategory.NETWORK: ErrorSeverity.TRANSIENT,
    ErrorCategory.PROVIDER: ErrorSeverity.TRANSIENT,
    ErrorCategory.PARSE: ErrorSeverity.RECOVERABLE,
    ErrorCategory.CONFIGURATION: ErrorSeverity.RECOVERABLE,
    ErrorCategory.VALIDATION: ErrorSeverity.WARNING,
}


def classify_http_status_error(error: httpx.HTTPStatusError) -> UsageError:
    """Classify HTTP status errors into structured errors."""

    status = error.response.status_code
    mapping = classify_http_error(status)

    # Try to extract error message from response
    try:
        body = error.response.json()
        detail = body.get("error", body.get("message", str(status)))
        if isinstance(detail, dict):
            detail = detail.get("message", str(status))
    except (ValueError, AttributeError):
        detail = error.response.text[:200] if error.response.text else str(status)

    return UsageError(
        message=f"HTTP {status}: {detail}",
        category=mapping.category,
        severity=mapping.severity,
        details={"status_code": status, "response": detail},
    )


def classify_exception(
    e: BaseException,
    provider_id: str | None = None,
) -> UsageError:
    """Classify any exception into a structured error."""

    if isinstance(e, QuotawatchError):
        provider = e.provider_id or provider_id
        return UsageError(
            message=e.message,
            category=e.category,
            severity=_SEVERITY_BY_CATEGORY.get(e.category, ErrorSeverity.RECOVERABLE),
            provider=provider,
            remediation=get_provider_remediation(provider, e.category)
            if provider
            else None,
        )

    # Network errors - httpx specific
    if isinstance(e, httpx.TimeoutException):
        return UsageError(
            message="Request timed out",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            provider=provider_id,
            remediation="Check your network connection and try again.",
        )

    if isinstance(e, httpx.ConnectError):
        return UsageError(
            message="Failed to connect to server",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            provider=provider_id,
            remediation="Check your internet connection. The provider may be down.",
        )

    if isinstance(e, httpx.HTTPStatusError):
        error = classify_http_status_error(e)
        if provider_id is not None:
            return _with_provider(error, provider_id)
        return error

    if isinstance(e, httpx.TransportError):
        return UsageError(
            message=f"Transport error: {e}",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            provider=provider_id,
        )

    # Parse errors
    if isinstance(e, json.JSONDecodeError):
        return UsageError(
            message="Failed to parse response",
            category=ErrorCategory.PARSE,
            severity=ErrorSeverity.RECOVERABLE,
            provider=provider_id,
            details={"error": str(e)},
        )

    # Async errors
    if isinstance(e, asyncio.TimeoutError):
        return UsageError(
            message="Fetch timed out",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            provider=provider_id,
            remediation="Try again. If the issue persists, check provider status.",
        )

    # Unknown
    return UsageError(
        message=str(e) or type(e).__name__,
        category=ErrorCategory.UNKNOWN,
        severity=ErrorSeverity.RECOVERABLE,
        provider=provider_id,
        details={"type": type(e).__name__},
    )


def _with_provider(error: UsageError, provider_id: str) -> UsageError:
    """Return a copy of error attributed to provider_id, with remediation."""
    return msgspec.structs.replace(
        error,
        provider=provider_id,
        remediation=error.remediation
        or get_provider_remediation(provider_id, error.category),
    )
