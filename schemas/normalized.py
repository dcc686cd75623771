"""
Pydantic schemas for normalized football entities with validation
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any


class EntityCreate(BaseModel):
    """
    Common validation for provider-sourced entities.

    Ensures:
    - Name is present and non-empty after stripping
    - Provider identifiers are present
    """

    name: str = Field(..., min_length=1, max_length=200)
    provider: str = Field(..., min_length=1, max_length=50)

    @validator("name")
    def clean_name(cls, v):
        """Strip and reject blank names"""
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty after stripping")
        return v

    class Config:
        extra = "forbid"


class LeagueCreate(EntityCreate):
    provider_league_id: str = Field(..., min_length=1, max_length=50)
    code: Optional[str] = Field(None, max_length=50)
    season: str = Field(..., min_length=4, max_length=10)
    country: Optional[str] = Field(None, max_length=100)
    logo_url: Optional[str] = Field(None, max_length=2048)


class TeamCreate(EntityCreate):
    provider_team_id: str = Field(..., min_length=1, max_length=50)
    league_id: int
    short_name: Optional[str] = Field(None, max_length=20)
    crest_url: Optional[str] = Field(None, max_length=2048)


class PlayerCreate(EntityCreate):
    provider_player_id: str = Field(..., min_length=1, max_length=50)
    team_id: int
    league_id: int
    position_id: Optional[int] = None
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    nationality: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = Field(None, max_length=2048)
    date_of_birth: Optional[str] = Field(None, max_length=10)


class SnapshotCreate(BaseModel):
    """Shared identity for statistics snapshots"""
    league_id: int
    team_id: int
    season: str = Field(..., min_length=4, max_length=10)
    provider: str = Field(..., min_length=1, max_length=50)
    team_name: str = Field(..., min_length=1)
    team_logo_url: Optional[str] = None

    class Config:
        extra = "forbid"


class PlayerStatsCreate(SnapshotCreate):
    player_id: int
    player_name: str = Field(..., min_length=1)
    player_photo_url: Optional[str] = None

    games: Optional[Dict[str, Any]] = None
    substitutes: Optional[Dict[str, Any]] = None
    shots: Optional[Dict[str, Any]] = None
    goals: Optional[Dict[str, Any]] = None
    passes: Optional[Dict[str, Any]] = None
    tackles: Optional[Dict[str, Any]] = None
    duels: Optional[Dict[str, Any]] = None
    dribbles: Optional[Dict[str, Any]] = None
    fouls: Optional[Dict[str, Any]] = None
    cards: Optional[Dict[str, Any]] = None
    penalty: Optional[Dict[str, Any]] = None


class TeamStatsCreate(SnapshotCreate):
    league_name: str = Field(..., min_length=1)

    form: Optional[str] = None
    fixtures: Optional[Dict[str, Any]] = None
    goals: Optional[Dict[str, Any]] = None
    biggest: Optional[Dict[str, Any]] = None
    clean_sheet: Optional[Dict[str, Any]] = None
    failed_to_score: Optional[Dict[str, Any]] = None
    penalty: Optional[Dict[str, Any]] = None
    cards: Optional[Dict[str, Any]] = None
    lineups: Optional[Dict[str, Any]] = None
