"""
Rate governor for provider calls.

Two layers of protection:
- Daily quota: every scheduled operation first checks the UsageLedger and
  fails fast with QuotaExceededError once the configured limit is reached.
- Per-minute throughput: a token bucket (reservoir, periodic refill, minimum
  spacing between dispatches) plus a cap on concurrently running operations.

Operations that cannot run yet are queued FIFO and wait without a timeout.
State is process-local; one RateGovernor instance is shared by every
service talking to the same provider connection.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar
from core.exceptions import QuotaExceededError
from ingestion.usage_ledger import UsageLedger
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RateGovernorConfig:
    """Governor configuration; defaults mirror the provider's free tier"""
    daily_limit: int = 7000
    warning_threshold: float = 0.9
    reservoir: int = 300
    refill_amount: int = 300
    refill_interval: float = 60.0
    min_time: float = 0.2
    max_concurrent: int = 10

    @classmethod
    def from_settings(cls, settings) -> "RateGovernorConfig":
        return cls(
            daily_limit=settings.DAILY_LIMIT,
            warning_threshold=settings.LIMIT_WARNING_THRESHOLD,
            reservoir=settings.RATE_LIMIT_RESERVOIR,
            refill_amount=settings.RATE_LIMIT_REFILL_AMOUNT,
            refill_interval=settings.RATE_LIMIT_REFILL_INTERVAL_SECONDS,
            min_time=settings.RATE_LIMIT_MIN_TIME_SECONDS,
            max_concurrent=settings.RATE_LIMIT_MAX_CONCURRENT,
        )


@dataclass
class RateGovernorState:
    """Read-only view of the governor"""
    tokens: int
    last_refill: float
    running: int
    queued: int


class RateGovernor:
    """
    Token-bucket limiter with a daily quota gate.

    Usage:
        governor = RateGovernor(ledger, RateGovernorConfig.from_settings(settings))
        envelope = await governor.schedule(lambda: client.get_teams(39, 2024))

    ``clock`` and ``sleep`` are injectable so tests can drive time by hand;
    a fake ``sleep`` must advance the fake ``clock``.
    """

    def __init__(
        self,
        ledger: UsageLedger,
        config: Optional[RateGovernorConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.ledger = ledger
        self.config = config or RateGovernorConfig()
        self.clock = clock
        self.sleep = sleep

        self._tokens = self.config.reservoir
        self._last_refill = clock()
        self._last_dispatch: Optional[float] = None
        self._running = 0
        self._queued = 0

        self._slots = asyncio.Semaphore(self.config.max_concurrent)
        # asyncio.Lock wakes waiters in arrival order; holding it while waiting
        # for a token and a slot keeps dispatch FIFO.
        self._dispatch_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Daily quota
    # ------------------------------------------------------------------

    async def check_daily_limit(self):
        """
        Raise QuotaExceededError when today's usage reached the limit; log a
        warning once usage passes the warning threshold.
        """
        usage = await self.ledger.get_usage()
        limit = self.config.daily_limit

        if usage.total_calls >= limit:
            raise QuotaExceededError(
                f"Daily API limit exceeded: {usage.total_calls}/{limit} calls used",
                context={
                    "provider": usage.provider,
                    "total_calls": usage.total_calls,
                    "daily_limit": limit,
                    "date": usage.date,
                }
            )

        if usage.total_calls >= limit * self.config.warning_threshold:
            logger.warning(
                f"Approaching API limit: {usage.total_calls}/{limit} calls "
                f"({round(usage.total_calls / limit * 100)}% used)"
            )

    # ------------------------------------------------------------------
    # Token bucket
    # ------------------------------------------------------------------

    def _refill(self):
        interval = self.config.refill_interval
        elapsed = self.clock() - self._last_refill
        if elapsed < interval:
            return

        intervals = int(elapsed // interval)
        self._tokens = min(self.config.reservoir, self._tokens + intervals * self.config.refill_amount)
        self._last_refill += intervals * interval

    async def _wait_for_token(self):
        while True:
            self._refill()
            if self._tokens > 0:
                return

            wait = max(self._last_refill + self.config.refill_interval - self.clock(), 0.0)
            logger.warning(
                f"Rate limit reservoir depleted; waiting {wait:.2f}s for refill "
                f"({self._queued} queued)"
            )
            await self.sleep(wait)

    async def _wait_for_spacing(self):
        if self._last_dispatch is None or self.config.min_time <= 0:
            return
        wait = self._last_dispatch + self.config.min_time - self.clock()
        if wait > 0:
            await self.sleep(wait)

    async def _acquire(self):
        async with self._dispatch_lock:
            await self._slots.acquire()
            try:
                await self._wait_for_token()
                await self._wait_for_spacing()
            except BaseException:
                self._slots.release()
                raise

            self._tokens -= 1
            self._last_dispatch = self.clock()
            self._running += 1

    async def schedule(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` once quota, a token and a concurrency slot allow.

        Returns (or raises) exactly what the operation returns (or raises).
        Raises QuotaExceededError without queueing when the daily limit is
        exhausted.
        """
        await self.check_daily_limit()

        self._queued += 1
        try:
            await self._acquire()
        finally:
            self._queued -= 1

        try:
            return await operation()
        finally:
            self._running -= 1
            self._slots.release()

    def state(self) -> RateGovernorState:
        self._refill()
        return RateGovernorState(
            tokens=self._tokens,
            last_refill=self._last_refill,
            running=self._running,
            queued=self._queued,
        )
