"""
Tests for the ingestion exception hierarchy
"""

from core.exceptions import (
    AuthenticationError,
    IngestionException,
    MissingDependencyError,
    NetworkError,
    NonRetryableError,
    ProviderServerError,
    QuotaExceededError,
    RateLimitError,
    RetryableError,
    SchemaValidationError,
    error_type_of,
)


def test_context_and_cause_in_str():
    cause = ConnectionResetError("reset by peer")
    error = NetworkError("Network error for /teams", context={"resource": "/teams"}, original_exception=cause)

    text = str(error)

    assert text.startswith("NetworkError: Network error for /teams")
    assert "resource=/teams" in text
    assert "Caused by: ConnectionResetError: reset by peer" in text
    assert error.__cause__ is cause


def test_to_dict():
    error = QuotaExceededError("Daily API limit exceeded", context={"total_calls": 7000})

    data = error.to_dict()

    assert data["error_type"] == "quota-exceeded"
    assert data["exception"] == "QuotaExceededError"
    assert data["context"]["total_calls"] == 7000
    assert data["original_error"] is None


def test_retry_classification_mixins():
    assert isinstance(ProviderServerError("x", status_code=500), RetryableError)
    assert isinstance(NetworkError("x"), RetryableError)
    assert isinstance(AuthenticationError("x", status_code=401), NonRetryableError)
    assert isinstance(QuotaExceededError("x"), NonRetryableError)
    assert isinstance(SchemaValidationError("x"), NonRetryableError)
    assert not isinstance(RateLimitError("x"), RetryableError)


def test_rate_limit_defaults():
    error = RateLimitError("Rate limit exceeded", retry_after=30)

    assert error.status_code == 429
    assert error.context["retry_after"] == 30


def test_error_type_of():
    assert error_type_of(SchemaValidationError("bad")) == "validation-error"
    assert error_type_of(MissingDependencyError("no league")) == "missing-dependency"
    assert error_type_of(ProviderServerError("x", status_code=502)) == "transient-error"
    assert error_type_of(AuthenticationError("x", status_code=403)) == "client-error"
    assert error_type_of(IngestionException("x")) == "unexpected-error"
    assert error_type_of(KeyError("x")) == "unexpected-error"
