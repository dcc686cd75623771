"""
Team statistics snapshots
"""

from typing import Any, Dict, List, Optional
from core.exceptions import QuotaExceededError
from ingestion.concurrency import bounded_map
from ingestion.services.base import IngestionRunMetrics, RecordOutcome, ResourceIngester, resolve_season
from ingestion.transformers.mappers import map_team_stats
from schemas.normalized import TeamStatsCreate
from storage.base import Collection


class TeamStatsIngester(ResourceIngester):
    """Upserts one snapshot per (team_id, season, provider)."""

    job_type = "ingest-team-stats"
    entity = "team_stats"
    collection = Collection.TEAM_STATS
    schema = TeamStatsCreate

    async def _leagues_to_process(self, league_id: Optional[int]) -> List[Dict[str, Any]]:
        if league_id is not None:
            league = await self.store.get(Collection.LEAGUES, league_id)
            return [league] if league else []
        return await self.store.list_top_leagues(self.settings.TOP_LEAGUES_LIMIT)

    async def ingest(self, season: Optional[str] = None, league_id: Optional[int] = None) -> IngestionRunMetrics:
        resolved_season = resolve_season(season, self.settings)
        metrics = IngestionRunMetrics(self.entity)

        try:
            await self.log.info("Starting team stats ingestion", {"season": resolved_season, "league_id": league_id})

            leagues = await self._leagues_to_process(league_id)

            async def ingest_league(league: Dict[str, Any]) -> List[RecordOutcome]:
                try:
                    await self.log.info("Fetching teams for league", {"league": league["name"], "season": resolved_season})
                    teams = await self.store.list_teams_by_league(league["id"])
                except Exception as e:
                    await self.log.error("Failed to load teams for team stats", {
                        "league": league["name"], "error": str(e)
                    })
                    return [RecordOutcome.failed(e, league["name"], league_id=league["id"])]

                async def ingest_team(team: Dict[str, Any]) -> RecordOutcome:
                    return await self.isolate(
                        lambda: self._ingest_team(team, league, resolved_season),
                        team["name"],
                        league=league["name"],
                    )

                return await bounded_map(teams, ingest_team, self.settings.CONCURRENCY_TEAMS)

            results = await bounded_map(leagues, ingest_league, self.settings.CONCURRENCY_LEAGUE_TEAMS)
            for outcomes in results:
                metrics.extend(outcomes)

            await self.log.success("Team stats ingestion completed", {"season": resolved_season, **metrics.to_dict()})
            return metrics

        except QuotaExceededError as e:
            await self.log.error("Team stats ingestion stopped: daily quota exhausted", e.to_dict())
            raise
        except Exception as e:
            await self.log.error("Team stats ingestion failed", {"error": str(e)})
            raise

    async def _ingest_team(self, team: Dict[str, Any], league: Dict[str, Any], season: str) -> RecordOutcome:
        raw = await self.football.get_team_stats(team["provider_team_id"], league["provider_league_id"], season)
        if raw is None:
            return RecordOutcome.skipped("No statistics returned", team["name"])

        record = self.validate({
            "team_id": team["id"],
            "league_id": league["id"],
            "season": season,
            "provider": self.provider,
            "team_name": team["name"],
            "team_logo_url": team.get("crest_url"),
            "league_name": league["name"],
            **map_team_stats(raw),
        })

        outcome = await self.upsert(
            {"team_id": team["id"], "season": season, "provider": self.provider},
            record,
            team["name"],
        )
        await self.log.info(f"{outcome.type.value.capitalize()} team stats snapshot", {
            "team": team["name"], "league": league["name"]
        })
        return outcome
