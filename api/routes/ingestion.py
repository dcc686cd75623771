"""
Ingestion triggers, status and logs
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from api.dependencies import get_context, get_scheduler, get_store
from ingestion.football_service import usage_summary
from ingestion.scheduler import IngestionScheduler
from ingestion.services.base import ServiceContext
from ingestion.services.reference_data import ReferenceDataSeeder
from models.base import LogLevel
from schemas.api import (
    FullIngestionRequest,
    IngestionLogEntry,
    IngestionStatusResponse,
    LeagueIngestionRequest,
    LeagueSummary,
    StatsIngestionRequest,
    TopStatsIngestionRequest,
    TriggerResponse,
)
from storage.base import Collection, Store
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Ingestion"])


def _log_entry(row: Dict[str, Any]) -> IngestionLogEntry:
    level = row["level"]
    return IngestionLogEntry(**{**row, "level": getattr(level, "value", level)})


# ============================================================================
# Triggers
# ============================================================================

@router.post("/ingestion/full", response_model=TriggerResponse, status_code=202)
async def trigger_full_ingestion(
    request: Request,
    body: FullIngestionRequest,
    scheduler: IngestionScheduler = Depends(get_scheduler)
):
    """Schedule the full pipeline and return immediately."""
    logger.info(f"[{request.state.request_id}] POST /ingestion/full season={body.season}")
    return scheduler.trigger_full_ingestion(**body.model_dump())


@router.post("/ingestion/league", response_model=TriggerResponse, status_code=202)
async def trigger_league_ingestion(
    body: LeagueIngestionRequest,
    store: Store = Depends(get_store),
    scheduler: IngestionScheduler = Depends(get_scheduler)
):
    if await store.get(Collection.LEAGUES, body.league_id) is None:
        raise HTTPException(status_code=404, detail=f"League {body.league_id} does not exist")
    return scheduler.trigger_league_ingestion(body.league_id, body.season, body.include_players)


@router.post("/ingestion/team-stats", response_model=TriggerResponse, status_code=202)
async def trigger_team_stats(
    body: StatsIngestionRequest,
    scheduler: IngestionScheduler = Depends(get_scheduler)
):
    return scheduler.trigger_team_stats(body.season, body.league_id)


@router.post("/ingestion/player-stats", response_model=TriggerResponse, status_code=202)
async def trigger_player_stats(
    body: StatsIngestionRequest,
    scheduler: IngestionScheduler = Depends(get_scheduler)
):
    return scheduler.trigger_player_stats(body.season, body.league_id, body.team_id)


@router.post("/ingestion/top-stats", response_model=TriggerResponse, status_code=202)
async def trigger_top_stats(
    body: TopStatsIngestionRequest,
    scheduler: IngestionScheduler = Depends(get_scheduler)
):
    return scheduler.trigger_top_stats(body.season, body.provider_league_id)


@router.post("/ingestion/reference-data")
async def initialize_reference_data(store: Store = Depends(get_store)):
    """Seed positions and windows inline (idempotent)."""
    return await ReferenceDataSeeder(store).seed()


# ============================================================================
# Reads
# ============================================================================

@router.get("/ingestion/status", response_model=IngestionStatusResponse)
async def get_ingestion_status(
    ctx: ServiceContext = Depends(get_context),
    scheduler: IngestionScheduler = Depends(get_scheduler)
):
    """
    Entity counts, the latest full-ingestion log events, today's usage and
    the outcome of the most recent scheduled or triggered jobs.
    """
    store = ctx.store
    leagues = await store.find_many(Collection.LEAGUES)
    recent_logs = await store.find_many(
        Collection.INGESTION_LOGS, limit=10, order_by="timestamp", descending=True, job_type="full-ingestion"
    )

    return IngestionStatusResponse(
        data={
            "leagues": len(leagues),
            "teams": await store.count(Collection.TEAMS),
            "players": await store.count(Collection.PLAYERS),
            "last_updated": max((league["updated_at"] for league in leagues if league.get("updated_at")), default=None),
        },
        recent_logs=[_log_entry(row) for row in recent_logs],
        api_usage=await usage_summary(ctx.ledger, ctx.settings.DAILY_LIMIT),
        scheduled_jobs=scheduler.next_runs() if scheduler.scheduler.running else {},
        last_runs=scheduler.last_runs,
    )


@router.get("/ingestion/logs", response_model=List[IngestionLogEntry])
async def get_ingestion_logs(
    job_type: Optional[str] = Query(None, description="Filter by job type"),
    level: Optional[LogLevel] = Query(None, description="Filter by level"),
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of entries"),
    store: Store = Depends(get_store)
):
    """Ingestion log events, newest first."""
    criteria = {}
    if job_type:
        criteria["job_type"] = job_type
    if level:
        criteria["level"] = level

    rows = await store.find_many(
        Collection.INGESTION_LOGS, limit=limit, order_by="timestamp", descending=True, **criteria
    )
    return [_log_entry(row) for row in rows]


@router.get("/leagues", response_model=List[LeagueSummary])
async def get_available_leagues(
    ctx: ServiceContext = Depends(get_context)
):
    leagues = await ctx.store.find_many(Collection.LEAGUES, provider=ctx.settings.PROVIDER_NAME)
    return [LeagueSummary(**league) for league in leagues]
