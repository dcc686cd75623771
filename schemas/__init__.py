"""
Pydantic schemas for data validation and serialization.

Schemas:
    provider: Optional-field models of API-Football response envelopes
    normalized: Validated records written to the store by the ingesters
    api: API endpoint request/response schemas

Usage:
    from schemas.provider import ApiEnvelope, TeamEntry
    from schemas.normalized import TeamCreate
    from schemas.api import TriggerResponse, UsageResponse

Validation:
    Provider models accept anything the API omits or nulls out; the
    normalized schemas are strict (unknown fields are rejected, names must
    be non-blank) and are the last check before a record is persisted.
"""

__all__ = [
    "ApiEnvelope",
    "LeagueEntry",
    "TeamEntry",
    "SquadEntry",
    "PlayerEntry",
    "TeamStatistics",
    "LeagueCreate",
    "TeamCreate",
    "PlayerCreate",
    "PlayerStatsCreate",
    "TeamStatsCreate",
    "TriggerResponse",
    "IngestionStatusResponse",
    "UsageResponse",
    "UsageStatsResponse",
    "HealthCheckResponse",
]
