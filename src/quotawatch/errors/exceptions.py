"""Exception hierarchy raised inside quotawatch."""

from __future__ import annotations

from quotawatch.errors.types import ErrorCategory


class QuotawatchError(Exception):
    """Base class for all quotawatch errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(self, message: str, provider_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider_id = provider_id


class ProviderConnectionError(QuotawatchError):
    """Provider backend unreachable or returned a transport-level failure."""

    category = ErrorCategory.NETWORK


class AuthError(QuotawatchError):
    """Credential missing, invalid or expired."""

    category = ErrorCategory.AUTHENTICATION


class NormalizationError(QuotawatchError):
    """Payload shape does not match the provider's declared usage shape."""

    category = ErrorCategory.PARSE


class ProviderNotFoundError(QuotawatchError):
    """No provider is registered under the requested id."""

    category = ErrorCategory.CONFIGURATION


class PersistenceError(QuotawatchError):
    """Settings could not be read or written."""

    category = ErrorCategory.CONFIGURATION


class ValidationError(QuotawatchError, ValueError):
    """Caller supplied an out-of-range value."""

    category = ErrorCategory.VALIDATION

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = errors
        super().__init__("; ".join(errors))
