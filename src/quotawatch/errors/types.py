"""Error types and classifications."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

import msgspec


class ErrorCategory(StrEnum):
    """Error categories for handling decisions."""

    AUTHENTICATION = "authentication"
    NETWORK = "network"
    PROVIDER = "provider"
    PARSE = "parse"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorSeverity(StrEnum):
    """Error severity levels."""

    FATAL = "fatal"
    RECOVERABLE = "recoverable"
    TRANSIENT = "transient"
    WARNING = "warning"


class UsageError(msgspec.Struct, frozen=True):
    """Structured error with category and remediation."""

    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    provider: str | None = None
    remediation: str | None = None
    details: dict | None = None
    timestamp: datetime = msgspec.field(
        default_factory=lambda: datetime.now().astimezone()
    )


class HTTPErrorMapping(msgspec.Struct, frozen=True):
    """How to handle an HTTP status code."""

    category: ErrorCategory
    severity: ErrorSeverity


HTTP_ERROR_MAPPINGS: dict[int, HTTPErrorMapping] = {
    401: HTTPErrorMapping(
        category=ErrorCategory.AUTHENTICATION,
        severity=ErrorSeverity.RECOVERABLE,
    ),
    403: HTTPErrorMapping(
        category=ErrorCategory.AUTHENTICATION,
        severity=ErrorSeverity.RECOVERABLE,
    ),
    429: HTTPErrorMapping(
        category=ErrorCategory.PROVIDER,
        severity=ErrorSeverity.TRANSIENT,
    ),
}


def classify_http_error(status_code: int) -> HTTPErrorMapping:
    """Classify an HTTP error by status code."""
    if status_code in HTTP_ERROR_MAPPINGS:
        return HTTP_ERROR_MAPPINGS[status_code]

    if 500 <= status_code < 600:
        return HTTPErrorMapping(
            category=ErrorCategory.PROVIDER,
            severity=ErrorSeverity.TRANSIENT,
        )
    return HTTPErrorMapping(
        category=ErrorCategory.UNKNOWN,
        severity=ErrorSeverity.RECOVERABLE,
    )
