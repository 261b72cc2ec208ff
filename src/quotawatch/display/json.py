"""JSON output utilities for quotawatch."""

from __future__ import annotations

import sys
from datetime import datetime

import msgspec

from quotawatch.errors.types import UsageError
from quotawatch.models import AlertRule
from quotawatch.models import ProviderStatus

__all__ = [
    "ErrorResponse",
    "ErrorData",
    "output_json",
    "output_json_pretty",
    "output_json_error",
    "from_usage_error",
    "status_to_dict",
    "rule_to_dict",
]


class ErrorData(msgspec.Struct, frozen=True, omit_defaults=True):
    """Error data with category, severity, and remediation."""

    message: str
    category: str
    severity: str
    provider: str | None = None
    remediation: str | None = None
    details: dict | None = None
    timestamp: str = msgspec.field(
        default_factory=lambda: datetime.now().astimezone().isoformat()
    )


class ErrorResponse(msgspec.Struct, frozen=True):
    """Structured error response for JSON output."""

    error: ErrorData


def output_json(data: object) -> None:
    """Output data as compact JSON to stdout."""
    sys.stdout.buffer.write(msgspec.json.encode(data))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.flush()


def output_json_pretty(data: object) -> None:
    """Output data as pretty-printed JSON to stdout."""
    sys.stdout.write(msgspec.json.format(msgspec.json.encode(data)).decode())
    sys.stdout.write("\n")


def output_json_error(
    message: str,
    category: str = "unknown",
    severity: str = "recoverable",
    provider: str | None = None,
    remediation: str | None = None,
) -> None:
    """Output an error in the standard JSON error envelope."""
    output_json_pretty(
        ErrorResponse(
            error=ErrorData(
                message=message,
                category=category,
                severity=severity,
                provider=provider,
                remediation=remediation,
            )
        )
    )


def from_usage_error(error: UsageError) -> ErrorResponse:
    """Create an ErrorResponse from a classified UsageError."""
    return ErrorResponse(
        error=ErrorData(
            message=error.message,
            category=error.category.value,
            severity=error.severity.value,
            provider=error.provider,
            remediation=error.remediation,
            details=error.details,
            timestamp=error.timestamp.isoformat(),
        )
    )


def status_to_dict(status: ProviderStatus) -> dict:
    """Serialize a status with a needs_reconnect flag for scripting."""
    data = msgspec.to_builtins(status)
    data["needs_reconnect"] = status.needs_reconnect
    return data


def rule_to_dict(rule: AlertRule) -> dict:
    return msgspec.to_builtins(rule)
