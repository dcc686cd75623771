"""
Custom exceptions for the ingestion pipeline with structured error context.

This module provides the exception hierarchy used by the provider client,
the rate governor, the retry engine and the resource ingesters. Each
exception carries context information for logging, plus an ``error_type``
tag that is surfaced in per-record outcomes and run summaries.

Exception Hierarchy:
    IngestionException (base)
    ├── ProviderError
    │   ├── ProviderHTTPError
    │   │   ├── ProviderServerError
    │   │   ├── RateLimitError
    │   │   ├── AuthenticationError
    │   │   └── ResourceNotFoundError
    │   ├── ProviderApplicationError
    │   ├── ProviderResponseError
    │   └── NetworkError
    ├── QuotaExceededError
    ├── TransformationError
    │   └── SchemaValidationError
    ├── MissingDependencyError
    ├── PersistenceError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class IngestionException(Exception):
    """
    Base exception for all ingestion-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (resource, entity, attempt, etc.)
        original_exception: The original exception that was caught (if any)
        error_type: Short tag used in run summaries
    """

    error_type = "unexpected-error"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        context = {k: v for k, v in self.context.items() if k != "error_timestamp"}
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.error_type,
            "exception": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(IngestionException):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts
    - Connection resets
    - Provider server faults (HTTP 5xx)
    """

    error_type = "transient-error"


class NonRetryableError(IngestionException):
    """
    Mixin for errors that should NOT trigger retry logic.

    Use this for permanent errors like:
    - Daily quota exhaustion
    - Authentication failures (HTTP 401, 403)
    - Malformed requests reported in the provider envelope
    - Schema validation errors
    """
    pass


# ============================================================================
# Provider Errors
# ============================================================================

class ProviderError(IngestionException):
    """Base exception for failures talking to the data provider."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        status_code: int = 0
    ):
        super().__init__(message, context, original_exception)
        self.status_code = status_code
        if status_code:
            self.context["status_code"] = status_code


class ProviderHTTPError(ProviderError):
    """
    Provider answered with a non-2xx HTTP status.

    Context should include:
        - url: The endpoint that failed
        - status_code: HTTP status code
        - response_body: Response body (truncated)
    """

    error_type = "client-error"


class ProviderServerError(RetryableError, ProviderHTTPError):
    """Provider returned a 5xx status; transient."""

    error_type = "transient-error"


class RateLimitError(ProviderHTTPError):
    """
    Provider rejected the call with HTTP 429.

    Classified as a client error: the governor is responsible for pacing,
    hammering the provider with retries would only burn more quota.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        status_code: int = 429,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception, status_code=status_code)
        self.retry_after = retry_after
        if retry_after:
            self.context["retry_after"] = retry_after


class AuthenticationError(NonRetryableError, ProviderHTTPError):
    """Authentication failures (HTTP 401, 403)."""

    error_type = "client-error"


class ResourceNotFoundError(NonRetryableError, ProviderHTTPError):
    """Resource not found errors (HTTP 404)."""

    error_type = "client-error"


class ProviderApplicationError(NonRetryableError, ProviderError):
    """
    Provider answered 2xx but reported errors in the response envelope.

    Context should include:
        - errors: The ``errors`` payload from the envelope
        - resource: The endpoint path
    """

    error_type = "client-error"


class ProviderResponseError(NonRetryableError, ProviderError):
    """Provider body could not be decoded into the expected envelope."""

    error_type = "client-error"


class NetworkError(RetryableError, ProviderError):
    """Transport-level failure (connect, read timeout, reset)."""

    error_type = "transient-error"


# ============================================================================
# Quota
# ============================================================================

class QuotaExceededError(NonRetryableError):
    """
    Daily provider call budget has been used up.

    Context should include:
        - provider: Provider name
        - total_calls: Calls used today
        - daily_limit: Configured ceiling
    """

    error_type = "quota-exceeded"


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(IngestionException):
    """Base exception for mapping provider payloads into the internal schema."""
    pass


class SchemaValidationError(NonRetryableError, TransformationError):
    """
    Mapped record failed schema validation.

    Context should include:
        - entity: Entity type being validated
        - field_errors: List of field-level errors
    """

    error_type = "validation-error"


# ============================================================================
# Dependency / Persistence Errors
# ============================================================================

class MissingDependencyError(NonRetryableError):
    """
    A record references a parent that does not exist (league for a team,
    team for a player, stats snapshot for a ranking patch).
    """

    error_type = "missing-dependency"


class PersistenceError(IngestionException):
    """
    Exception raised when store operations fail.

    Context should include:
        - operation: find, insert, patch, increment
        - collection: Name of the collection/table
    """

    error_type = "persistence-error"


def error_type_of(error: BaseException) -> str:
    """Return the summary tag for any exception."""
    if isinstance(error, IngestionException):
        return error.error_type
    return "unexpected-error"
