"""
Provider usage endpoints
"""

from datetime import timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from api.dependencies import get_context, get_ledger
from ingestion.football_service import usage_summary
from ingestion.services.base import ServiceContext
from ingestion.usage_ledger import UsageLedger, day_of
from schemas.api import ApiCallEntry, UsageResponse, UsageStatsResponse

router = APIRouter(tags=["Usage"])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


@router.get("/usage", response_model=UsageResponse)
async def get_usage(ctx: ServiceContext = Depends(get_context)):
    return await usage_summary(ctx.ledger, ctx.settings.DAILY_LIMIT)


@router.get("/usage/stats", response_model=UsageStatsResponse)
async def get_usage_stats(
    start_date: Optional[str] = Query(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, default 7 days ago"),
    end_date: Optional[str] = Query(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, default today"),
    ledger: UsageLedger = Depends(get_ledger)
):
    """Daily call totals for an inclusive date range."""
    today = ledger.clock()
    end = end_date or day_of(today)
    start = start_date or day_of(today - timedelta(days=7))
    if start > end:
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")
    return await ledger.get_usage_stats(start, end)


@router.get("/usage/calls", response_model=List[ApiCallEntry])
async def get_call_history(
    date: Optional[str] = Query(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, default today"),
    resource: Optional[str] = Query(None, description="Filter by resource, e.g. teams"),
    limit: int = Query(100, ge=1, le=1000),
    ledger: UsageLedger = Depends(get_ledger)
):
    """Provider call detail rows, newest first."""
    return await ledger.get_call_history(date, resource, limit)
