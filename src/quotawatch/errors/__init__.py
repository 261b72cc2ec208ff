"""Error handling for quotawatch."""

from quotawatch.errors.classify import classify_exception
from quotawatch.errors.classify import classify_http_status_error
from quotawatch.errors.exceptions import (
    AuthError,
    NormalizationError,
    PersistenceError,
    ProviderConnectionError,
    ProviderNotFoundError,
    QuotawatchError,
    ValidationError,
)
from quotawatch.errors.messages import (
    AUTH_ERROR_TEMPLATES,
    NEEDS_RECONNECT,
    get_auth_error_message,
    get_provider_remediation,
)
from quotawatch.errors.types import (
    ErrorCategory,
    ErrorSeverity,
    HTTPErrorMapping,
    HTTP_ERROR_MAPPINGS,
    UsageError,
    classify_http_error,
)

__all__ = [
    # Core types
    "ErrorCategory",
    "ErrorSeverity",
    "UsageError",
    "HTTPErrorMapping",
    "HTTP_ERROR_MAPPINGS",
    # Exceptions
    "QuotawatchError",
    "ProviderConnectionError",
    "AuthError",
    "NormalizationError",
    "PersistenceError",
    "ProviderNotFoundError",
    "ValidationError",
    # Classification functions
    "classify_http_error",
    "classify_exception",
    "classify_http_status_error",
    # Message templates
    "AUTH_ERROR_TEMPLATES",
    "NEEDS_RECONNECT",
    "get_auth_error_message",
    "get_provider_remediation",
]
