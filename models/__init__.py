"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (LogLevel, TopStatCategory)
    football: League, Team, Player and the Position/Window reference tables
    stats: Player and team statistics snapshots (JSONB stat groups)
    usage: Daily provider call counter and per-call detail rows
    logs: Ingestion event log and provider call audit log

Database Schema:
    All models inherit from the Base declarative class. Entities are keyed by
    (provider, provider id); snapshots by (subject, season, provider).

Usage:
    from models.football import League, Team, Player
    from models.stats import PlayerStatsSnapshot
"""

__all__ = [
    "Base",
    "LogLevel",
    "TopStatCategory",
    "League",
    "Team",
    "Player",
    "Position",
    "Window",
    "PlayerStatsSnapshot",
    "TeamStatsSnapshot",
    "ApiUsageDaily",
    "ApiCall",
    "IngestionLog",
    "ApiIngestLog",
]
