from sqlalchemy import Column, String, BigInteger, Integer, DateTime, ForeignKey, Index, Text
from models.base import Base, utcnow


class League(Base):
    """
    Competition ingested from the provider.

    Natural key: (provider, provider_league_id). Rows are created on first
    sighting and patched on every later run; never deleted.
    """
    __tablename__ = "leagues"

    id = Column(BigInteger, primary_key=True, autoincrement=True)

    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=True)  # provider league type ("League", "Cup")
    season = Column(String(10), nullable=False)
    country = Column(String(100), nullable=True)
    logo_url = Column(String(2048), nullable=True)

    provider = Column(String(50), nullable=False)
    provider_league_id = Column(String(50), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_league_provider", "provider", "provider_league_id", unique=True),
    )


class Team(Base):
    """Club participating in a league."""
    __tablename__ = "teams"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    league_id = Column(BigInteger, ForeignKey("leagues.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    short_name = Column(String(20), nullable=True)
    crest_url = Column(String(2048), nullable=True)

    provider = Column(String(50), nullable=False)
    provider_team_id = Column(String(50), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_team_provider", "provider", "provider_team_id", unique=True),
    )


class Player(Base):
    """Squad member. Moves between teams are handled by patching team_id."""
    __tablename__ = "players"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    team_id = Column(BigInteger, ForeignKey("teams.id"), nullable=False, index=True)
    league_id = Column(BigInteger, ForeignKey("leagues.id"), nullable=False, index=True)
    position_id = Column(BigInteger, ForeignKey("positions.id"), nullable=True)

    name = Column(String(200), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    nationality = Column(String(100), nullable=True)
    photo_url = Column(String(2048), nullable=True)
    date_of_birth = Column(String(10), nullable=True)

    provider = Column(String(50), nullable=False)
    provider_player_id = Column(String(50), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_player_provider", "provider", "provider_player_id", unique=True),
    )


class Position(Base):
    """Reference data: GK, DF, MF, FW."""
    __tablename__ = "positions"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    code = Column(String(10), nullable=False, unique=True)
    name = Column(String(50), nullable=False)
    sort_order = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Window(Base):
    """Reference data: statistic time windows (season, last5, ...)."""
    __tablename__ = "windows"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
