"""
Core utilities and configuration for the football ingestion backend.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Database engine and async session factory
    exceptions: Custom exception hierarchy with error_type tags
    logging: Logging configuration (adds a SUCCESS level)

Usage:
    from core.config import settings
    from core.database import async_session_maker
    from core.exceptions import QuotaExceededError, ProviderServerError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "async_session_maker",
    "setup_logging",
    # Exceptions
    "IngestionException",
    "RetryableError",
    "NonRetryableError",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderServerError",
    "RateLimitError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "ProviderApplicationError",
    "ProviderResponseError",
    "NetworkError",
    "QuotaExceededError",
    "TransformationError",
    "SchemaValidationError",
    "MissingDependencyError",
    "PersistenceError",
]
