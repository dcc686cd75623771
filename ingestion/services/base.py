"""
Shared machinery for the resource ingesters.

Each ingester follows the same per-record pipeline:

    fetch (FootballService) -> map -> validate (pydantic)
        -> find by natural key -> insert or patch -> RecordOutcome

Per-record failures become ``error`` outcomes tagged with the exception's
``error_type``; they never abort the batch. Stage-level failures (missing
parent records, quota exhaustion, store outages while loading the batch)
propagate to the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type
from pydantic import BaseModel, ValidationError
from core.exceptions import QuotaExceededError, SchemaValidationError, error_type_of
from ingestion.football_service import FootballService
from ingestion.ingestion_logger import IngestionLogger
from ingestion.provider.client import FootballApiClient
from ingestion.rate_governor import RateGovernor, RateGovernorConfig
from ingestion.retry import RetryEngine
from ingestion.usage_ledger import UsageLedger
from models.base import RecordOutcomeType, utcnow
from storage.base import Collection, Store


# ============================================================================
# Outcomes and metrics
# ============================================================================

@dataclass
class RecordOutcome:
    """Result of ingesting one record"""
    type: RecordOutcomeType
    name: Optional[str] = None
    record_id: Optional[int] = None
    error_type: Optional[str] = None
    message: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def created(cls, record_id: int, name: Optional[str] = None) -> "RecordOutcome":
        return cls(RecordOutcomeType.CREATED, name=name, record_id=record_id)

    @classmethod
    def updated(cls, record_id: int, name: Optional[str] = None) -> "RecordOutcome":
        return cls(RecordOutcomeType.UPDATED, name=name, record_id=record_id)

    @classmethod
    def skipped(cls, message: str, name: Optional[str] = None, **context) -> "RecordOutcome":
        return cls(RecordOutcomeType.SKIPPED, name=name, message=message, context=context)

    @classmethod
    def failed(cls, error: BaseException, name: Optional[str] = None, **context) -> "RecordOutcome":
        return cls(
            RecordOutcomeType.ERROR,
            name=name,
            error_type=error_type_of(error),
            message=str(error),
            context=context,
        )


@dataclass
class IngestionRunMetrics:
    """Per-entity counters aggregated by an ingester"""
    entity: str
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: List[Dict[str, Any]] = field(default_factory=list)

    def add(self, outcome: RecordOutcome):
        self.processed += 1
        if outcome.type == RecordOutcomeType.CREATED:
            self.created += 1
        elif outcome.type == RecordOutcomeType.UPDATED:
            self.updated += 1
        elif outcome.type == RecordOutcomeType.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1
            self.error_details.append({
                "type": outcome.error_type,
                "message": outcome.message,
                "context": {"name": outcome.name, **outcome.context},
            })

    def extend(self, outcomes: List[RecordOutcome]):
        for outcome in outcomes:
            self.add(outcome)

    def merge(self, other: "IngestionRunMetrics"):
        self.processed += other.processed
        self.created += other.created
        self.updated += other.updated
        self.skipped += other.skipped
        self.errors += other.errors
        self.error_details.extend(other.error_details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "error_details": list(self.error_details),
        }


# ============================================================================
# Dependencies
# ============================================================================

class ServiceContext:
    """
    Long-lived collaborators shared by every ingester in the process.

    The RateGovernor is owned here so every job talking to the provider
    draws from the same token bucket.
    """

    def __init__(
        self,
        store: Store,
        client: FootballApiClient,
        settings,
        ledger: Optional[UsageLedger] = None,
        governor: Optional[RateGovernor] = None,
        retry_sleep=None
    ):
        self.store = store
        self.client = client
        self.settings = settings
        self.ledger = ledger or UsageLedger(store, settings.PROVIDER_NAME)
        self.governor = governor or RateGovernor(self.ledger, RateGovernorConfig.from_settings(settings))
        self.retry_sleep = retry_sleep

    def logger(self, job_type: str) -> IngestionLogger:
        return IngestionLogger(job_type, self.store)

    def football_service(self, log: IngestionLogger) -> FootballService:
        """Provider facade whose retries report to ``log``."""
        kwargs = {}
        if self.retry_sleep is not None:
            kwargs["sleep"] = self.retry_sleep
        retry = RetryEngine(
            self.ledger,
            log,
            self.settings.PROVIDER_NAME,
            max_attempts=self.settings.RETRY_MAX_ATTEMPTS,
            base_delay_ms=self.settings.RETRY_BASE_DELAY_MS,
            server_error_threshold=self.settings.RETRY_SERVER_ERROR_THRESHOLD,
            **kwargs
        )
        return FootballService(self.client, self.governor, retry, self.ledger, self.settings, log)


def resolve_season(season: Optional[str], settings, fallback: Optional[str] = None) -> str:
    """Explicit season, then the caller's fallback, then DEFAULT_SEASON, then the current year."""
    if season:
        return str(season)
    if fallback:
        return str(fallback)
    if settings.DEFAULT_SEASON:
        return str(settings.DEFAULT_SEASON)
    return str(datetime.now().year)


# ============================================================================
# Base ingester
# ============================================================================

class ResourceIngester:
    """
    Base class for entity ingesters.

    Subclasses set ``job_type``, ``entity``, ``collection`` and ``schema``
    and implement their own ``ingest`` entry point.
    """

    job_type = "ingest"
    entity = "record"
    collection: Collection
    schema: Type[BaseModel]

    def __init__(self, ctx: ServiceContext, log: Optional[IngestionLogger] = None):
        self.ctx = ctx
        self.store = ctx.store
        self.settings = ctx.settings
        self.provider = ctx.settings.PROVIDER_NAME
        self.log = log or ctx.logger(self.job_type)
        self.football = ctx.football_service(self.log)

    def validate(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a mapped record; raises SchemaValidationError."""
        try:
            return self.schema(**record).model_dump()
        except ValidationError as e:
            raise SchemaValidationError(
                f"Invalid {self.entity}: {e.error_count()} validation error(s)",
                context={
                    "entity": self.entity,
                    "field_errors": [
                        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                        for err in e.errors()
                    ],
                },
                original_exception=e
            )

    async def upsert(
        self,
        natural_key: Dict[str, Any],
        record: Dict[str, Any],
        name: Optional[str] = None
    ) -> RecordOutcome:
        """Insert or patch by natural key; created_at is never overwritten."""
        existing = await self.store.find_one(self.collection, **natural_key)
        now = utcnow()

        if existing:
            fields = {k: v for k, v in record.items() if k not in ("id", "created_at")}
            fields["updated_at"] = now
            await self.store.patch(self.collection, existing["id"], fields)
            self.log.increment_updated()
            return RecordOutcome.updated(existing["id"], name)

        record_id = await self.store.insert(self.collection, {**record, "created_at": now, "updated_at": now})
        self.log.increment_created()
        return RecordOutcome.created(record_id, name)

    async def isolate(
        self,
        work: Callable[[], Awaitable[RecordOutcome]],
        name: Optional[str] = None,
        **context
    ) -> RecordOutcome:
        """
        Run one record's work, turning any failure into an error outcome.

        QuotaExceededError is not a per-record problem and is re-raised.
        """
        self.log.increment_processed()
        try:
            return await work()
        except QuotaExceededError:
            raise
        except Exception as e:
            await self.log.error(f"Failed to process {self.entity}", {
                "name": name,
                "error_type": error_type_of(e),
                "error": str(e),
                **context,
            })
            return RecordOutcome.failed(e, name, **context)
