"""
Retry engine with exponential backoff and per-attempt accounting.

Every attempt, successful or not, produces exactly one UsageLedger record
and one api_ingest_log event. Classification:

- NonRetryableError, or a message mentioning "validation": fail at once
- RetryableError (network failures, HTTP 5xx): retry
- anything else: retry only when its status code is >= 500

Delay before attempt k (k >= 2) is ``base_delay_ms * 2 ** (k - 2)``.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from core.exceptions import NonRetryableError, RetryableError
from ingestion.ingestion_logger import IngestionLogger
from ingestion.usage_ledger import UsageLedger
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUCCESS_STATUS = 200


def status_code_of(error: BaseException) -> int:
    """HTTP status carried by an error, 0 when there is none."""
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else 0


def format_params(params: Optional[Dict[str, Any]]) -> Optional[str]:
    """k=v&k2=v2 form used in the api_ingest_log table"""
    if not params:
        return None
    return "&".join(f"{k}={v}" for k, v in params.items())


class RetryEngine:
    """
    Wraps a provider operation in bounded retries.

    Attributes:
        ledger: UsageLedger receiving one record per attempt
        log: Job logger receiving one API-call event per attempt
        provider: Provider name for the audit events
        max_attempts: Default attempt ceiling
        base_delay_ms: Default backoff base
        server_error_threshold: Status at and above which errors are retried
    """

    def __init__(
        self,
        ledger: UsageLedger,
        log: IngestionLogger,
        provider: str,
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
        server_error_threshold: int = 500,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.ledger = ledger
        self.log = log
        self.provider = provider
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.server_error_threshold = server_error_threshold
        self.sleep = sleep

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, NonRetryableError):
            return False
        if "validation" in str(error).lower():
            return False
        if isinstance(error, RetryableError):
            return True
        return status_code_of(error) >= self.server_error_threshold

    async def _account(
        self,
        resource: str,
        started: float,
        status_code: int,
        params: Optional[Dict[str, Any]],
        error: Optional[str] = None
    ):
        elapsed_ms = int((time.monotonic() - started) * 1000)
        await self.ledger.record_call(resource, elapsed_ms, status_code, params, error)
        await self.log.log_api_call(
            provider=self.provider,
            resource=resource,
            response_time_ms=elapsed_ms,
            status_code=status_code,
            params=format_params(params),
            error=error,
        )

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        max_attempts: Optional[int] = None,
        base_delay_ms: Optional[int] = None
    ) -> T:
        """
        Run ``operation`` until it succeeds, fails non-retryably, or the
        attempt ceiling is reached; the last error is re-raised unchanged.
        """
        attempts = max_attempts or self.max_attempts
        base_delay = self.base_delay_ms if base_delay_ms is None else base_delay_ms

        for attempt in range(1, attempts + 1):
            started = time.monotonic()
            try:
                result = await operation()
            except Exception as e:
                status = status_code_of(e)
                message = str(e) or type(e).__name__
                await self._account(resource, started, status, params, message)

                if not self.is_retryable(e):
                    raise

                if attempt == attempts:
                    await self.log.error(f"Max retries exceeded for {resource}", {
                        "attempts": attempts,
                        "final_error": message,
                        "status_code": status,
                    })
                    raise

                delay_ms = base_delay * 2 ** (attempt - 1)
                await self.log.warn(f"Retrying {resource} after error", {
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "delay_ms": delay_ms,
                    "error": message,
                })
                await self.sleep(delay_ms / 1000)
                continue

            await self._account(resource, started, SUCCESS_STATUS, params)
            return result

        # attempts < 1
        raise ValueError(f"max_attempts must be >= 1, got {attempts}")
