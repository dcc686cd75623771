"""
Health check endpoint with database, scheduler and quota status
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_context, get_scheduler
from ingestion.scheduler import IngestionScheduler
from ingestion.services.base import ServiceContext
from schemas.api import HealthCheckResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    ctx: ServiceContext = Depends(get_context),
    scheduler: IngestionScheduler = Depends(get_scheduler)
):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Whether the ingestion scheduler is running
    - Share of today's provider quota already used
    """
    db_connected = await ctx.store.ping()

    usage_percent = None
    if db_connected:
        usage = await ctx.ledger.get_usage()
        limit = ctx.settings.DAILY_LIMIT
        usage_percent = round(usage.total_calls / limit * 100, 2) if limit else 0

    return HealthCheckResponse(
        database_connected=db_connected,
        scheduler_running=bool(scheduler and scheduler.scheduler.running),
        api_usage_percent=usage_percent,
    )
