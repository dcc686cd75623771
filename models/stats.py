from sqlalchemy import Column, String, BigInteger, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB
from models.base import Base, utcnow


class PlayerStatsSnapshot(Base):
    """
    Point-in-time statistics for one player and season.

    Purpose:
    - One row per (player_id, season, provider); re-ingestion overwrites
    - Denormalized player/team names so reads need no joins
    - league_positions is patched separately by the top-statistics ingester

    Design:
    - Each statistical group is an optional JSONB object; the provider omits
      whole sections for players without minutes
    - league_positions: {"<league_id>": {"goals": 1, "assists": 4, "yellow_cards": 2, ...}}
    """
    __tablename__ = "player_stats_snapshots"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    player_id = Column(BigInteger, ForeignKey("players.id"), nullable=False)
    league_id = Column(BigInteger, ForeignKey("leagues.id"), nullable=False, index=True)
    team_id = Column(BigInteger, ForeignKey("teams.id"), nullable=False, index=True)
    season = Column(String(10), nullable=False)
    provider = Column(String(50), nullable=False)

    # Denormalized
    player_name = Column(String(200), nullable=False)
    player_photo_url = Column(String(2048), nullable=True)
    team_name = Column(String(200), nullable=False)
    team_logo_url = Column(String(2048), nullable=True)

    # Grouped stats
    games = Column(JSONB, nullable=True)
    substitutes = Column(JSONB, nullable=True)
    shots = Column(JSONB, nullable=True)
    goals = Column(JSONB, nullable=True)
    passes = Column(JSONB, nullable=True)
    tackles = Column(JSONB, nullable=True)
    duels = Column(JSONB, nullable=True)
    dribbles = Column(JSONB, nullable=True)
    fouls = Column(JSONB, nullable=True)
    cards = Column(JSONB, nullable=True)
    penalty = Column(JSONB, nullable=True)

    league_positions = Column(JSONB, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_player_stats_key", "player_id", "season", "provider", unique=True),
        Index("idx_player_stats_league_season", "league_id", "season"),
    )


class TeamStatsSnapshot(Base):
    """Point-in-time season statistics for one team; same overwrite semantics."""
    __tablename__ = "team_stats_snapshots"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    team_id = Column(BigInteger, ForeignKey("teams.id"), nullable=False)
    league_id = Column(BigInteger, ForeignKey("leagues.id"), nullable=False, index=True)
    season = Column(String(10), nullable=False)
    provider = Column(String(50), nullable=False)

    team_name = Column(String(200), nullable=False)
    team_logo_url = Column(String(2048), nullable=True)
    league_name = Column(String(200), nullable=False)

    form = Column(String(200), nullable=True)
    fixtures = Column(JSONB, nullable=True)
    goals = Column(JSONB, nullable=True)
    biggest = Column(JSONB, nullable=True)
    clean_sheet = Column(JSONB, nullable=True)
    failed_to_score = Column(JSONB, nullable=True)
    penalty = Column(JSONB, nullable=True)
    cards = Column(JSONB, nullable=True)
    lineups = Column(JSONB, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_team_stats_key", "team_id", "season", "provider", unique=True),
        Index("idx_team_stats_league_season", "league_id", "season"),
    )
