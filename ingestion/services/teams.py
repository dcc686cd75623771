"""
Team ingestion for one league
"""

from typing import Optional
from core.exceptions import MissingDependencyError
from ingestion.concurrency import bounded_map
from ingestion.services.base import IngestionRunMetrics, RecordOutcome, ResourceIngester, resolve_season
from ingestion.transformers.mappers import map_team
from schemas.normalized import TeamCreate
from schemas.provider import TeamEntry
from storage.base import Collection


class TeamIngester(ResourceIngester):
    """Upserts the teams of a league by (provider, provider_team_id)."""

    job_type = "ingest-teams"
    entity = "team"
    collection = Collection.TEAMS
    schema = TeamCreate

    async def ingest(self, league_id: int, season: Optional[str] = None) -> IngestionRunMetrics:
        """
        Fetch and upsert every team of ``league_id`` for the season.

        Raises:
            MissingDependencyError: League is not in the store
        """
        metrics = IngestionRunMetrics(self.entity)

        try:
            await self.log.info("Starting team ingestion", {"league_id": league_id, "season": season})

            league = await self.store.get(Collection.LEAGUES, league_id)
            if league is None:
                raise MissingDependencyError(
                    f"League not found: {league_id}",
                    context={"league_id": league_id}
                )
            resolved_season = resolve_season(season, self.settings, league.get("season"))

            entries = await self.football.get_teams_by_league(league["provider_league_id"], resolved_season)
            await self.log.info(f"Fetched {len(entries)} teams from API for league: {league['name']}")

            async def ingest_one(entry: TeamEntry) -> RecordOutcome:
                name = entry.team.name if entry.team else None

                async def work():
                    record = self.validate(map_team(entry, league["id"], self.provider))
                    outcome = await self.upsert(
                        {"provider": self.provider, "provider_team_id": record["provider_team_id"]},
                        record,
                        record["name"],
                    )
                    await self.log.info(f"{outcome.type.value.capitalize()} team: {record['name']}")
                    return outcome

                return await self.isolate(work, name, league=league["name"])

            metrics.extend(await bounded_map(entries, ingest_one, self.settings.CONCURRENCY_TEAMS))

            await self.log.success("Team ingestion completed", {
                "league": league["name"], "season": resolved_season, **metrics.to_dict()
            })
            return metrics

        except Exception as e:
            await self.log.error("Team ingestion failed", {"league_id": league_id, "error": str(e)})
            raise
