"""
League top statistics (ranked goals, assists, yellow and red cards)
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from core.exceptions import MissingDependencyError
from ingestion.services.base import IngestionRunMetrics, RecordOutcome, ResourceIngester, resolve_season
from ingestion.services.player_stats import PlayerStatsIngester
from models.base import TopStatCategory
from schemas.provider import PlayerEntry
from storage.base import Collection

ENDPOINTS = {
    TopStatCategory.GOALS: "topscorers",
    TopStatCategory.ASSISTS: "topassists",
    TopStatCategory.YELLOW_CARDS: "topyellowcards",
    TopStatCategory.RED_CARDS: "topredcards",
}


@dataclass
class LeagueTopStatsResult:
    provider_league_id: str
    season: str
    success: bool = True
    results: Dict[str, int] = field(default_factory=dict)
    metrics: Optional[IngestionRunMetrics] = None
    league_name: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider_league_id": self.provider_league_id,
            "league_name": self.league_name,
            "season": self.season,
            "success": self.success,
            "results": dict(self.results),
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "error": self.error,
        }


class TopStatsIngester(ResourceIngester):
    """
    Applies provider rankings to existing player statistics snapshots.

    For each category the ranked list is fetched and every entry resolved by
    provider player ID. Resolved players get ``{category: rank}`` (1-based)
    merged into their snapshot's ``league_positions``; entries without an ID
    or without a matching player are skipped and counted.
    """

    job_type = "league-top-statistics-ingestion"
    entity = "ranking"
    collection = Collection.PLAYER_STATS

    def __init__(self, ctx, log=None, player_stats: Optional[PlayerStatsIngester] = None):
        super().__init__(ctx, log)
        self.player_stats = player_stats or PlayerStatsIngester(ctx, self.log)

    async def _apply_category(
        self,
        category: TopStatCategory,
        league: Dict[str, Any],
        season: str
    ) -> List[RecordOutcome]:
        entries = await self.football.get_top_players(ENDPOINTS[category], league["provider_league_id"], season)
        outcomes = []

        for index, entry in enumerate(entries):
            outcomes.append(await self.isolate(
                lambda: self._apply_rank(category, index + 1, entry, league, season),
                entry.player.name if entry.player else None,
                category=category.value,
                rank=index + 1,
            ))

        return outcomes

    async def _apply_rank(
        self,
        category: TopStatCategory,
        rank: int,
        entry: PlayerEntry,
        league: Dict[str, Any],
        season: str
    ) -> RecordOutcome:
        provider_player_id = entry.player.id if entry.player else None
        if provider_player_id is None:
            await self.log.warn("Skipping ranked entry without player ID", {"category": category.value, "rank": rank})
            return RecordOutcome.skipped("Missing provider player ID", category=category.value, rank=rank)

        player = await self.store.find_one(
            Collection.PLAYERS, provider=self.provider, provider_player_id=str(provider_player_id)
        )
        if player is None:
            await self.log.warn("Skipping ranked entry with unknown player", {
                "category": category.value, "rank": rank, "provider_player_id": provider_player_id
            })
            return RecordOutcome.skipped(
                "Player not found", category=category.value, rank=rank, provider_player_id=provider_player_id
            )

        snapshot_id = await self.player_stats.update_positions(
            player["id"], season, league["id"], {category.value: rank}
        )
        self.log.increment_updated()
        return RecordOutcome.updated(snapshot_id, player["name"])

    async def ingest_league(
        self,
        provider_league_id: str,
        season: Optional[str] = None,
        include_goals: bool = True,
        include_assists: bool = True,
        include_yellow_cards: bool = True,
        include_red_cards: bool = True
    ) -> LeagueTopStatsResult:
        """
        Raises:
            MissingDependencyError: League is not in the store
        """
        resolved_season = resolve_season(season, self.settings)
        flags = {
            TopStatCategory.GOALS: include_goals,
            TopStatCategory.ASSISTS: include_assists,
            TopStatCategory.YELLOW_CARDS: include_yellow_cards,
            TopStatCategory.RED_CARDS: include_red_cards,
        }
        categories = [c for c, enabled in flags.items() if enabled]

        try:
            await self.log.info("Starting league top statistics ingestion", {
                "league_id": provider_league_id,
                "season": resolved_season,
                "categories": [c.value for c in categories],
            })

            league = await self.store.find_one(
                Collection.LEAGUES, provider=self.provider, provider_league_id=str(provider_league_id)
            )
            if league is None:
                raise MissingDependencyError(
                    f"League not found: {provider_league_id}",
                    context={"provider_league_id": provider_league_id}
                )

            # every category runs to completion before a failure is re-raised
            per_category = await asyncio.gather(
                *(self._apply_category(c, league, resolved_season) for c in categories),
                return_exceptions=True
            )

            metrics = IngestionRunMetrics(self.entity)
            results = {}
            failures = []
            for category, outcomes in zip(categories, per_category):
                if isinstance(outcomes, BaseException):
                    failures.append((category, outcomes))
                    continue
                results[category.value] = len(outcomes)
                metrics.extend(outcomes)

            if failures:
                await self.log.warn("Top statistics categories failed", {
                    "league_id": provider_league_id,
                    "failed": {category.value: str(error) for category, error in failures},
                    "applied": metrics.updated,
                })
                raise failures[0][1]

            await self.log.info("League top statistics ingestion completed", {
                "league_id": provider_league_id,
                "season": resolved_season,
                "results": results,
                "applied": metrics.updated,
                "skipped": metrics.skipped,
                "errors": metrics.errors,
            })
            return LeagueTopStatsResult(
                provider_league_id=str(provider_league_id),
                season=resolved_season,
                results=results,
                metrics=metrics,
                league_name=league["name"],
            )

        except Exception as e:
            await self.log.error("League top statistics ingestion failed", {
                "league_id": provider_league_id, "season": resolved_season, "error": str(e)
            })
            raise

    async def ingest_all_leagues(self, season: Optional[str] = None, limit_leagues: Optional[int] = None) -> Dict[str, Any]:
        """Top statistics for the top leagues, one league at a time."""
        resolved_season = resolve_season(season, self.settings)
        limit = limit_leagues or self.settings.TOP_STATS_LEAGUES_LIMIT

        leagues = await self.store.list_top_leagues(limit)
        await self.log.info(f"Processing {len(leagues)} leagues for top statistics", {"season": resolved_season})

        results: List[LeagueTopStatsResult] = []
        for league in leagues:
            try:
                result = await self.ingest_league(league["provider_league_id"], resolved_season)
                await self.log.info(f"Completed top statistics for league: {league['name']}", result.results)
            except Exception as e:
                await self.log.error(f"Failed to process league: {league['name']}", {
                    "league_id": league["provider_league_id"], "error": str(e)
                })
                result = LeagueTopStatsResult(
                    provider_league_id=league["provider_league_id"],
                    season=resolved_season,
                    success=False,
                    league_name=league["name"],
                    error=str(e),
                )
            results.append(result)

        success_count = sum(1 for r in results if r.success)
        metrics = IngestionRunMetrics(self.entity)
        for r in results:
            if r.metrics:
                metrics.merge(r.metrics)

        summary = {
            "season": resolved_season,
            "total_leagues": len(leagues),
            "success_count": success_count,
            "failure_count": len(results) - success_count,
            "metrics": metrics.to_dict(),
            "results": [r.to_dict() for r in results],
        }
        await self.log.info("All leagues top statistics ingestion completed", {
            k: v for k, v in summary.items() if k not in ("results", "metrics")
        })
        return summary
