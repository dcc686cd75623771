"""
Job-scoped structured logger.

Every event goes to the standard ``logging`` module and is persisted to the
``ingestion_logs`` collection together with a snapshot of the job's running
counters. Provider calls are additionally persisted to ``api_ingest_log``.
Persistence failures are reported through the module logger and never
propagate into the job.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional
from core.logging import SUCCESS
from models.base import LogLevel, utcnow
from storage.base import Collection, Store
import logging
import time

logger = logging.getLogger(__name__)

_STD_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SUCCESS: SUCCESS,
}


@dataclass
class JobMetrics:
    job_type: str
    api_calls: int = 0
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    errors: int = 0


class IngestionLogger:
    """
    Leveled logger bound to one ingestion job.

    Usage:
        log = IngestionLogger("ingest-teams", store)
        await log.info("Starting team ingestion", {"league_id": 3})
        ...
        metrics = await log.finish()
    """

    def __init__(self, job_type: str, store: Optional[Store] = None):
        self.job_type = job_type
        self.store = store
        self.metrics = JobMetrics(job_type=job_type)
        self._started = time.monotonic()
        self._log = logging.getLogger(f"ingestion.{job_type}")

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._started) * 1000)

    async def _emit(self, level: LogLevel, message: str, data: Optional[Dict[str, Any]] = None):
        if data:
            self._log.log(_STD_LEVELS[level], f"{message} | {data}")
        else:
            self._log.log(_STD_LEVELS[level], message)

        if self.store is None:
            return

        try:
            await self.store.insert(Collection.INGESTION_LOGS, {
                "job_type": self.job_type,
                "level": level,
                "message": message,
                "data": _jsonable(data or {}),
                "timestamp": utcnow(),
                "api_calls": self.metrics.api_calls,
                "records_processed": self.metrics.records_processed,
                "records_created": self.metrics.records_created,
                "records_updated": self.metrics.records_updated,
                "errors": self.metrics.errors,
                "duration_ms": self.elapsed_ms(),
            })
        except Exception as e:
            logger.error(f"Failed to write to ingestion_logs: {e}")

    async def debug(self, message: str, data: Optional[Dict[str, Any]] = None):
        await self._emit(LogLevel.DEBUG, message, data)

    async def info(self, message: str, data: Optional[Dict[str, Any]] = None):
        await self._emit(LogLevel.INFO, message, data)

    async def warn(self, message: str, data: Optional[Dict[str, Any]] = None):
        await self._emit(LogLevel.WARN, message, data)

    async def error(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.metrics.errors += 1
        await self._emit(LogLevel.ERROR, message, data)

    async def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        await self._emit(LogLevel.SUCCESS, message, data)

    async def log_api_call(
        self,
        provider: str,
        resource: str,
        response_time_ms: int,
        status_code: int,
        params: Optional[str] = None,
        error: Optional[str] = None
    ):
        """Persist one provider attempt to the api_ingest_log collection."""
        self.metrics.api_calls += 1

        if self.store is None:
            return

        try:
            await self.store.insert(Collection.API_INGEST_LOGS, {
                "provider": provider,
                "resource": resource,
                "provider_params": params,
                "ok": error is None and 200 <= status_code < 300,
                "status_code": status_code,
                "duration_ms": response_time_ms,
                "error": error,
                "created_at": utcnow(),
            })
        except Exception as e:
            logger.error(f"Failed to write to api_ingest_log: {e}")

    def increment_processed(self, count: int = 1):
        self.metrics.records_processed += count

    def increment_created(self, count: int = 1):
        self.metrics.records_created += count

    def increment_updated(self, count: int = 1):
        self.metrics.records_updated += count

    async def finish(self) -> Dict[str, Any]:
        """Emit the final job summary and return the counters."""
        duration = self.elapsed_ms()
        summary = asdict(self.metrics)
        summary["duration_ms"] = duration
        summary["records_per_second"] = (
            round(self.metrics.records_processed / (duration / 1000)) if duration else 0
        )
        await self.success("Job completed", summary)
        return summary


def _jsonable(value: Any) -> Any:
    """Coerce log payloads into JSON-safe primitives."""
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
