import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from ingestion.orchestrator import IngestionOrchestrator
from ingestion.services.base import ServiceContext
from ingestion.services.player_stats import PlayerStatsIngester
from ingestion.services.team_stats import TeamStatsIngester
from ingestion.services.top_stats import TopStatsIngester
from models.base import utcnow

logger = logging.getLogger(__name__)


class IngestionScheduler:
    """
    Daily cron jobs plus fire-and-forget triggers for ad-hoc runs.

    Triggers hand the job to APScheduler and return at once; the job runs on
    the event loop and reports through its own ingestion logs.
    """

    def __init__(self, ctx: ServiceContext, scheduler: Optional[AsyncIOScheduler] = None):
        self.ctx = ctx
        self.settings = ctx.settings
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self.last_runs: Dict[str, Dict[str, Any]] = {}

    async def _run(self, name: str, job: Callable[[], Awaitable[Any]]):
        """Run a job, recording its outcome; failures are logged, not raised."""
        started = utcnow()
        self.last_runs[name] = {"status": "running", "started_at": started.isoformat()}
        logger.info(f"Scheduler: Starting {name} job")
        try:
            await job()
        except Exception as e:
            logger.error(f"Scheduler: {name} job failed - {e}")
            self.last_runs[name].update({
                "status": "failed", "error": str(e), "finished_at": utcnow().isoformat()
            })
            return
        self.last_runs[name].update({"status": "success", "finished_at": utcnow().isoformat()})
        logger.info(f"Scheduler: {name} job finished")

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def run_full_job(self, season: Optional[str] = None, **skip_flags):
        await self._run("full-ingestion", lambda: IngestionOrchestrator(self.ctx).run_full(season, **skip_flags))

    async def run_league_job(self, league_id: int, season: Optional[str] = None, include_players: bool = True):
        await self._run(
            f"league-ingestion:{league_id}",
            lambda: IngestionOrchestrator(self.ctx).run_league(league_id, season, include_players)
        )

    async def run_team_stats_job(self, season: Optional[str] = None, league_id: Optional[int] = None):
        await self._run("team-stats", lambda: TeamStatsIngester(self.ctx).ingest(season, league_id))

    async def run_player_stats_job(
        self,
        season: Optional[str] = None,
        league_id: Optional[int] = None,
        team_id: Optional[int] = None
    ):
        await self._run("player-stats", lambda: PlayerStatsIngester(self.ctx).ingest(season, league_id, team_id))

    async def run_top_stats_job(self, season: Optional[str] = None, provider_league_id: Optional[str] = None):
        ingester = TopStatsIngester(self.ctx)
        if provider_league_id:
            await self._run("top-stats", lambda: ingester.ingest_league(provider_league_id, season))
        else:
            await self._run("top-stats", lambda: ingester.ingest_all_leagues(season))

    # ------------------------------------------------------------------
    # Fire-and-forget triggers
    # ------------------------------------------------------------------

    def _submit(self, job: Callable[..., Awaitable[None]], message: str, **kwargs) -> Dict[str, Any]:
        self.scheduler.add_job(job, kwargs=kwargs, misfire_grace_time=None)
        logger.info(f"Scheduler: {message}")
        return {
            "success": True,
            "message": message,
            "timestamp": utcnow().isoformat(),
        }

    def trigger_full_ingestion(self, season: Optional[str] = None, **skip_flags) -> Dict[str, Any]:
        return self._submit(self.run_full_job, "Full ingestion pipeline scheduled", season=season, **skip_flags)

    def trigger_league_ingestion(
        self,
        league_id: int,
        season: Optional[str] = None,
        include_players: bool = True
    ) -> Dict[str, Any]:
        return self._submit(
            self.run_league_job, "League ingestion scheduled",
            league_id=league_id, season=season, include_players=include_players
        )

    def trigger_team_stats(self, season: Optional[str] = None, league_id: Optional[int] = None) -> Dict[str, Any]:
        return self._submit(self.run_team_stats_job, "Team stats ingestion scheduled", season=season, league_id=league_id)

    def trigger_player_stats(
        self,
        season: Optional[str] = None,
        league_id: Optional[int] = None,
        team_id: Optional[int] = None
    ) -> Dict[str, Any]:
        return self._submit(
            self.run_player_stats_job, "Player stats ingestion scheduled",
            season=season, league_id=league_id, team_id=team_id
        )

    def trigger_top_stats(self, season: Optional[str] = None, provider_league_id: Optional[str] = None) -> Dict[str, Any]:
        return self._submit(
            self.run_top_stats_job, "Top statistics ingestion scheduled",
            season=season, provider_league_id=provider_league_id
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Register the daily jobs (when enabled) and start the scheduler"""
        if self.settings.SCHEDULER_ENABLED:
            self.scheduler.add_job(
                self.run_team_stats_job,
                trigger=CronTrigger(hour=self.settings.TEAM_STATS_CRON_HOUR, minute=0, timezone="UTC"),
                id="daily_team_stats",
                replace_existing=True
            )
            self.scheduler.add_job(
                self.run_player_stats_job,
                trigger=CronTrigger(hour=self.settings.PLAYER_STATS_CRON_HOUR, minute=0, timezone="UTC"),
                id="daily_player_stats",
                replace_existing=True
            )
        self.scheduler.start()
        logger.info("Ingestion Scheduler started")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Ingestion Scheduler stopped")

    def next_runs(self) -> Dict[str, Optional[datetime]]:
        return {job.id: job.next_run_time for job in self.scheduler.get_jobs() if job.id.startswith("daily_")}
