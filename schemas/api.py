"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import utcnow


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    database_connected: bool
    scheduler_running: bool = False
    api_usage_percent: Optional[float] = None
    timestamp: datetime = Field(default_factory=utcnow)
    # declared last so the validator sees the fields above
    status: str = Field("unknown", description="Overall system status: healthy, degraded, unhealthy")

    @validator("status", pre=True, always=True)
    def determine_status(cls, v, values):
        """Determine overall health status"""
        if not values.get("database_connected", False):
            return "unhealthy"
        if not values.get("scheduler_running", False):
            return "degraded"
        return "healthy"

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "scheduler_running": True,
                "api_usage_percent": 12
            }
        }


# ============================================================================
# Trigger Schemas
# ============================================================================

class TriggerResponse(BaseModel):
    """Acknowledgement of a scheduled (not yet finished) job"""
    success: bool
    message: str
    timestamp: str


class FullIngestionRequest(BaseModel):
    season: Optional[str] = Field(None, description="Season year, e.g. 2024")
    skip_reference_data: bool = False
    skip_leagues: bool = False
    skip_teams: bool = False
    skip_players: bool = False
    skip_team_stats: bool = False
    skip_player_stats: bool = False
    skip_top_stats: bool = False

    @validator("season")
    def validate_season(cls, v):
        if v is not None and not (len(v) == 4 and v.isdigit()):
            raise ValueError("season must be a four digit year")
        return v


class LeagueIngestionRequest(BaseModel):
    league_id: int = Field(..., ge=1, description="Internal league ID")
    season: Optional[str] = None
    include_players: bool = True


class StatsIngestionRequest(BaseModel):
    season: Optional[str] = None
    league_id: Optional[int] = Field(None, ge=1, description="Restrict to one internal league ID")
    team_id: Optional[int] = Field(None, ge=1, description="Restrict to one internal team ID (player stats only)")


class TopStatsIngestionRequest(BaseModel):
    season: Optional[str] = None
    provider_league_id: Optional[str] = Field(None, description="Provider league ID; all top leagues when omitted")


# ============================================================================
# Status / Logs Schemas
# ============================================================================

class UsageResponse(BaseModel):
    """Today's provider usage against the daily limit"""
    used: int
    limit: int
    remaining: int
    percent_used: float
    date: str


class DataCounts(BaseModel):
    leagues: int
    teams: int
    players: int
    last_updated: Optional[datetime] = None


class IngestionLogEntry(BaseModel):
    timestamp: datetime
    job_type: str
    level: str
    message: str
    data: Optional[Dict[str, Any]] = None
    api_calls: Optional[int] = None
    records_processed: Optional[int] = None
    records_created: Optional[int] = None
    records_updated: Optional[int] = None
    errors: Optional[int] = None
    duration_ms: Optional[int] = None

    class Config:
        from_attributes = True
        use_enum_values = True


class IngestionStatusResponse(BaseModel):
    data: DataCounts
    recent_logs: List[IngestionLogEntry] = Field(default_factory=list)
    api_usage: UsageResponse
    scheduled_jobs: Dict[str, Optional[datetime]] = Field(default_factory=dict)
    last_runs: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class LeagueSummary(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    season: str
    updated_at: datetime


# ============================================================================
# Usage Schemas
# ============================================================================

class DailyUsage(BaseModel):
    date: str
    total_calls: int
    last_updated: Optional[datetime] = None


class UsageStatsResponse(BaseModel):
    provider: str
    start_date: str
    end_date: str
    total_calls: int
    avg_calls_per_day: float
    days_with_usage: int
    daily_breakdown: List[DailyUsage] = Field(default_factory=list)


class ApiCallEntry(BaseModel):
    resource: str
    response_time_ms: int
    status_code: int
    params: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    timestamp: datetime


# ============================================================================
# Error Response Schema
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Resource not found",
                "detail": "League 42 does not exist",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }
