"""
Fan-out orchestrator for a full ingestion run.

Stages run in dependency order with a barrier between them:

    reference data -> leagues -> teams -> players     (load-bearing)
    -> team stats -> player stats -> top statistics   (best-effort)

A load-bearing stage failure is logged and re-raised because every later
stage reads what it writes. A best-effort stage failure is logged and the
run carries on.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional
from ingestion.concurrency import bounded_map
from ingestion.services.base import IngestionRunMetrics, ServiceContext, resolve_season
from ingestion.services.leagues import LeagueIngester
from ingestion.services.player_stats import PlayerStatsIngester
from ingestion.services.players import PlayerIngester
from ingestion.services.reference_data import ReferenceDataSeeder
from ingestion.services.team_stats import TeamStatsIngester
from ingestion.services.teams import TeamIngester
from ingestion.services.top_stats import TopStatsIngester
from models.base import utcnow
from storage.base import Collection

STAGES = (
    "reference_data",
    "leagues",
    "teams",
    "players",
    "team_stats",
    "player_stats",
    "top_stats",
)
BEST_EFFORT_STAGES = ("team_stats", "player_stats", "top_stats")


@dataclass
class RunSummary:
    """Outcome of ``IngestionOrchestrator.run_full``"""
    season: str
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    leagues: int = 0
    teams: int = 0
    players: int = 0
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "leagues": self.leagues,
            "teams": self.teams,
            "players": self.players,
            "stages": self.stages,
            "skipped": list(self.skipped),
            "succeeded": list(self.succeeded),
            "failed": dict(self.failed),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


def combine(entity: str, results: List[IngestionRunMetrics]) -> IngestionRunMetrics:
    total = IngestionRunMetrics(entity)
    for metrics in results:
        total.merge(metrics)
    return total


class IngestionOrchestrator:
    """
    Runs the resource ingesters in order over one ServiceContext.

    Teams are fanned out per top league and players per team; each fan-out
    has its own concurrency ceiling from settings.
    """

    job_type = "full-ingestion"

    def __init__(self, ctx: ServiceContext):
        self.ctx = ctx
        self.store = ctx.store
        self.settings = ctx.settings
        self.log = ctx.logger(self.job_type)
        # shared so ranking patches and snapshot upserts use one positions lock
        self._player_stats_ingester = PlayerStatsIngester(ctx)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _reference_data(self, season: str) -> Dict[str, Any]:
        return await ReferenceDataSeeder(self.store).seed()

    async def _leagues(self, season: str) -> Dict[str, Any]:
        metrics = await LeagueIngester(self.ctx).ingest(season=season)
        return metrics.to_dict()

    async def _teams(self, season: str) -> Dict[str, Any]:
        leagues = await self.store.list_top_leagues(self.settings.TOP_LEAGUES_LIMIT)
        await self.log.info(f"Ingesting teams for {len(leagues)} leagues")

        ingester = TeamIngester(self.ctx)
        results = await bounded_map(
            leagues,
            lambda league: ingester.ingest(league["id"], season),
            self.settings.CONCURRENCY_LEAGUE_TEAMS,
        )
        return combine(ingester.entity, results).to_dict()

    async def _players(self, season: str) -> Dict[str, Any]:
        leagues = await self.store.list_top_leagues(self.settings.TOP_LEAGUES_LIMIT)
        teams = []
        for league in leagues:
            teams.extend(await self.store.list_teams_by_league(league["id"], self.settings.TEAMS_PER_LEAGUE_LIMIT))
        await self.log.info(f"Ingesting players for {len(teams)} teams")

        ingester = PlayerIngester(self.ctx)
        results = await bounded_map(
            teams,
            lambda team: ingester.ingest(team["id"], season),
            self.settings.CONCURRENCY_TEAM_PLAYERS,
        )
        return combine(ingester.entity, results).to_dict()

    async def _team_stats(self, season: str) -> Dict[str, Any]:
        metrics = await TeamStatsIngester(self.ctx).ingest(season)
        return metrics.to_dict()

    async def _player_stats(self, season: str) -> Dict[str, Any]:
        metrics = await self._player_stats_ingester.ingest(season)
        return metrics.to_dict()

    async def _top_stats(self, season: str) -> Dict[str, Any]:
        ingester = TopStatsIngester(self.ctx, player_stats=self._player_stats_ingester)
        return await ingester.ingest_all_leagues(season)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run_full(
        self,
        season: Optional[str] = None,
        skip_reference_data: bool = False,
        skip_leagues: bool = False,
        skip_teams: bool = False,
        skip_players: bool = False,
        skip_team_stats: bool = False,
        skip_player_stats: bool = False,
        skip_top_stats: bool = False
    ) -> RunSummary:
        """
        Run every non-skipped stage for ``season``.

        Raises:
            Exception: Whatever a load-bearing stage raised, after logging it
        """
        resolved_season = resolve_season(season, self.settings)
        skip = {
            "reference_data": skip_reference_data,
            "leagues": skip_leagues,
            "teams": skip_teams,
            "players": skip_players,
            "team_stats": skip_team_stats,
            "player_stats": skip_player_stats,
            "top_stats": skip_top_stats,
        }
        runners: Dict[str, Callable[[str], Awaitable[Dict[str, Any]]]] = {
            "reference_data": self._reference_data,
            "leagues": self._leagues,
            "teams": self._teams,
            "players": self._players,
            "team_stats": self._team_stats,
            "player_stats": self._player_stats,
            "top_stats": self._top_stats,
        }
        summary = RunSummary(season=resolved_season)
        await self.log.info("Starting full ingestion", {
            "season": resolved_season,
            "skipped": [stage for stage in STAGES if skip[stage]],
        })

        for stage in STAGES:
            if skip[stage]:
                summary.skipped.append(stage)
                continue

            await self.log.info(f"Stage started: {stage}")
            try:
                summary.stages[stage] = await runners[stage](resolved_season)
                summary.succeeded.append(stage)
                await self.log.info(f"Stage completed: {stage}")
            except Exception as e:
                summary.failed[stage] = str(e)
                if stage in BEST_EFFORT_STAGES:
                    await self.log.warn(f"Best-effort stage failed, continuing: {stage}", {"error": str(e)})
                    continue
                await self.log.error(f"Load-bearing stage failed, aborting run: {stage}", {"error": str(e)})
                raise

        summary.leagues = await self.store.count(Collection.LEAGUES)
        summary.teams = await self.store.count(Collection.TEAMS)
        summary.players = await self.store.count(Collection.PLAYERS)
        summary.completed_at = utcnow()

        await self.log.success("Full ingestion completed", {
            k: v for k, v in summary.to_dict().items() if k != "stages"
        })
        await self.log.finish()
        return summary

    async def run_league(
        self,
        league_id: int,
        season: Optional[str] = None,
        include_players: bool = True
    ) -> Dict[str, Any]:
        """Teams of one stored league and, optionally, their squads."""
        league = await self.store.get(Collection.LEAGUES, league_id)
        resolved_season = resolve_season(season, self.settings, league.get("season") if league else None)
        await self.log.info("Starting league ingestion", {
            "league_id": league_id, "season": resolved_season, "include_players": include_players
        })

        teams_metrics = await TeamIngester(self.ctx).ingest(league_id, resolved_season)
        result = {
            "league_id": league_id,
            "season": resolved_season,
            "teams": teams_metrics.to_dict(),
        }

        if include_players:
            teams = await self.store.list_teams_by_league(league_id)
            ingester = PlayerIngester(self.ctx)
            results = await bounded_map(
                teams,
                lambda team: ingester.ingest(team["id"], resolved_season),
                self.settings.CONCURRENCY_LEAGUE_TEAMS,
            )
            result["players"] = combine(ingester.entity, results).to_dict()

        await self.log.success("League ingestion completed", {"league_id": league_id, "season": resolved_season})
        return result
