"""
Football data ingestion pipeline.

Modules:
    usage_ledger: Daily provider-call counter with per-call detail rows
    rate_governor: Daily quota gate, token bucket and concurrency cap
    retry: Exponential-backoff retry engine with per-attempt accounting
    football_service: Provider facade composing the three above
    concurrency: Bounded fan-out helper
    ingestion_logger: Job-scoped logger persisting events and counters
    orchestrator: Full and per-league pipeline runs
    scheduler: APScheduler cron jobs and fire-and-forget triggers

Subpackages:
    provider: Async API-Football HTTP client
    transformers: Provider payload -> record mappers
    services: Per-entity ingesters (leagues, teams, players, statistics)

Architecture:
    Every provider call is composed as

        RateGovernor.schedule(RetryEngine.with_retry(client call))

    so the daily quota is checked once per logical call, retries happen
    inside the reserved slot, and every attempt is recorded in the ledger.
    Ingesters map and validate each record and upsert it by natural key;
    one failing record never aborts its batch.

Usage:
    from ingestion.services.base import ServiceContext
    from ingestion.orchestrator import IngestionOrchestrator

    ctx = ServiceContext(store, client, settings)
    summary = await IngestionOrchestrator(ctx).run_full(season="2024")
    print(summary.to_dict())
"""

__all__ = [
    "UsageLedger",
    "RateGovernor",
    "RetryEngine",
    "FootballService",
    "IngestionLogger",
    "IngestionOrchestrator",
    "IngestionScheduler",
    "bounded_map",
]
