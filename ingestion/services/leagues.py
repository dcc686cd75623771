"""
League ingestion
"""

from typing import List, Optional
from ingestion.concurrency import bounded_map
from ingestion.services.base import IngestionRunMetrics, RecordOutcome, ResourceIngester, resolve_season
from ingestion.transformers.mappers import map_league
from schemas.normalized import LeagueCreate
from schemas.provider import LeagueEntry
from storage.base import Collection


class LeagueIngester(ResourceIngester):
    """Upserts leagues by (provider, provider_league_id)."""

    job_type = "ingest-leagues"
    entity = "league"
    collection = Collection.LEAGUES
    schema = LeagueCreate

    async def ingest(self, league_ids: Optional[List[int]] = None, season: Optional[str] = None) -> IngestionRunMetrics:
        ids = league_ids or self.settings.TOP_LEAGUE_IDS
        default_season = resolve_season(season, self.settings)
        metrics = IngestionRunMetrics(self.entity)

        try:
            await self.log.info("Starting league ingestion", {"league_ids": ids})
            await self.log.info("Current API usage", await self.football.get_api_usage())

            entries = await self.football.get_leagues_by_ids(ids)
            await self.log.info(f"Fetched {len(entries)} leagues from API")

            async def ingest_one(entry: LeagueEntry) -> RecordOutcome:
                name = entry.league.name if entry.league else None

                async def work():
                    record = self.validate(map_league(entry, self.provider, default_season))
                    outcome = await self.upsert(
                        {"provider": self.provider, "provider_league_id": record["provider_league_id"]},
                        record,
                        record["name"],
                    )
                    await self.log.info(f"{outcome.type.value.capitalize()} league: {record['name']}")
                    return outcome

                return await self.isolate(work, name)

            metrics.extend(await bounded_map(entries, ingest_one, self.settings.CONCURRENCY_LEAGUES))

            await self.log.info("Final API usage", await self.football.get_api_usage())
            await self.log.success("League ingestion completed", metrics.to_dict())
            return metrics

        except Exception as e:
            await self.log.error("League ingestion failed", {"error": str(e)})
            raise
