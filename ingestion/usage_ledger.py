"""
Daily provider-usage ledger.

Tracks how many provider calls were made per (provider, UTC date) plus a
detail row per call. Reads fail open: if the store cannot be read the ledger
reports zero usage and logs a warning, so the quota check never becomes the
reason an ingestion run fails.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from models.base import utcnow
from storage.base import Collection, Store
import logging

logger = logging.getLogger(__name__)


def day_of(moment: datetime) -> str:
    """UTC calendar day as YYYY-MM-DD"""
    return moment.strftime("%Y-%m-%d")


@dataclass
class UsageSnapshot:
    provider: str
    date: str
    total_calls: int


class UsageLedger:
    """
    Usage counter for a single provider.

    Attributes:
        store: Persistence collaborator
        provider: Provider name the counters are keyed on
        clock: Returns the current UTC datetime (injectable for tests)
    """

    def __init__(
        self,
        store: Store,
        provider: str,
        clock: Callable[[], datetime] = utcnow
    ):
        self.store = store
        self.provider = provider
        self.clock = clock

    def today(self) -> str:
        return day_of(self.clock())

    async def get_usage(self, date: Optional[str] = None) -> UsageSnapshot:
        """
        Current count for ``date`` (default: today).

        Returns a zero record when nothing was recorded yet or when the store
        cannot be read.
        """
        target = date or self.today()
        try:
            row = await self.store.find_one(
                Collection.API_USAGE_DAILY, provider=self.provider, date=target
            )
        except Exception as e:
            logger.warning(f"Failed to get API usage from store: {e}")
            return UsageSnapshot(provider=self.provider, date=target, total_calls=0)

        if row is None:
            return UsageSnapshot(provider=self.provider, date=target, total_calls=0)
        return UsageSnapshot(provider=self.provider, date=target, total_calls=row["total_calls"])

    async def record_call(
        self,
        resource: str,
        response_time_ms: int,
        status_code: int,
        params: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> Optional[int]:
        """
        Append a call detail row and bump the day's counter.

        The counter is bumped even when the detail row cannot be written.
        Returns the new daily total, or None when the counter update failed
        (failures are logged, never raised).
        """
        moment = timestamp or self.clock()
        date = day_of(moment)

        try:
            await self.store.insert(Collection.API_CALLS, {
                "provider": self.provider,
                "resource": resource,
                "response_time_ms": response_time_ms,
                "status_code": status_code,
                "params": params,
                "error": error,
                "timestamp": moment,
                "date": date,
            })
        except Exception as e:
            logger.warning(
                f"Failed to record API call detail: {e} "
                f"(resource={resource}, status_code={status_code})"
            )

        try:
            return await self.store.increment_usage(self.provider, date, moment)
        except Exception as e:
            logger.warning(f"Failed to increment daily API usage: {e} (date={date})")
            return None

    async def get_usage_stats(self, start_date: str, end_date: str) -> Dict[str, Any]:
        """Totals and per-day breakdown for an inclusive date range."""
        rows = await self.store.find_many(
            Collection.API_USAGE_DAILY, order_by="date", provider=self.provider
        )
        days = [r for r in rows if start_date <= r["date"] <= end_date]

        total = sum(d["total_calls"] for d in days)
        average = total / len(days) if days else 0

        return {
            "provider": self.provider,
            "start_date": start_date,
            "end_date": end_date,
            "total_calls": total,
            "avg_calls_per_day": round(average, 2),
            "days_with_usage": len(days),
            "daily_breakdown": [
                {"date": d["date"], "total_calls": d["total_calls"], "last_updated": d["last_updated"]}
                for d in days
            ],
        }

    async def get_call_history(
        self,
        date: Optional[str] = None,
        resource: Optional[str] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """Call detail rows for a day, newest first."""
        criteria = {"provider": self.provider, "date": date or self.today()}
        if resource:
            criteria["resource"] = resource
        return await self.store.find_many(
            Collection.API_CALLS, limit=limit, order_by="timestamp", descending=True, **criteria
        )
