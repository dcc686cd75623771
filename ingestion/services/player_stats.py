"""
Player statistics snapshots
"""

import asyncio
from typing import Any, Dict, List, Optional
from core.exceptions import MissingDependencyError, QuotaExceededError
from ingestion.concurrency import bounded_map
from ingestion.services.base import IngestionRunMetrics, RecordOutcome, ResourceIngester, resolve_season
from ingestion.transformers.mappers import map_player_stats
from models.base import utcnow
from schemas.normalized import PlayerStatsCreate
from storage.base import Collection


class PlayerStatsIngester(ResourceIngester):
    """
    Upserts one snapshot per (player_id, season, provider).

    Re-ingestion overwrites the statistic groups but keeps ``created_at`` and
    the ``league_positions`` map, which only ``update_positions`` writes.
    """

    job_type = "ingest-player-stats"
    entity = "player_stats"
    collection = Collection.PLAYER_STATS
    schema = PlayerStatsCreate

    def __init__(self, ctx, log=None):
        super().__init__(ctx, log)
        self._positions_lock = asyncio.Lock()

    async def _teams_to_process(self, league_id: Optional[int], team_id: Optional[int]) -> List[Dict[str, Any]]:
        if team_id is not None:
            team = await self.store.get(Collection.TEAMS, team_id)
            return [team] if team else []
        if league_id is not None:
            league = await self.store.get(Collection.LEAGUES, league_id)
            return await self.store.list_teams_by_league(league_id) if league else []

        leagues = await self.store.list_top_leagues(self.settings.TOP_LEAGUES_LIMIT)
        teams = []
        for league in leagues:
            teams.extend(await self.store.list_teams_by_league(league["id"]))
        return teams

    async def ingest(
        self,
        season: Optional[str] = None,
        league_id: Optional[int] = None,
        team_id: Optional[int] = None
    ) -> IngestionRunMetrics:
        resolved_season = resolve_season(season, self.settings)
        metrics = IngestionRunMetrics(self.entity)

        try:
            await self.log.info("Starting player stats ingestion", {
                "season": resolved_season, "league_id": league_id, "team_id": team_id
            })

            teams = await self._teams_to_process(league_id, team_id)
            leagues: Dict[int, Optional[Dict[str, Any]]] = {}

            async def ingest_team(team: Dict[str, Any]) -> List[RecordOutcome]:
                try:
                    if team["league_id"] not in leagues:
                        leagues[team["league_id"]] = await self.store.get(Collection.LEAGUES, team["league_id"])
                    league = leagues[team["league_id"]]
                    if league is None:
                        return []

                    players = await self.store.list_players_by_team(team["id"])
                    if not players:
                        await self.log.warn(
                            "No players found for team when ingesting stats (skipping)",
                            {"team": team["name"]}
                        )
                        return []

                    async def ingest_player(player: Dict[str, Any]) -> RecordOutcome:
                        return await self.isolate(
                            lambda: self._ingest_player(player, team, league, resolved_season),
                            player["name"],
                            team=team["name"],
                        )

                    return await bounded_map(players, ingest_player, self.settings.CONCURRENCY_PLAYERS)

                except (MissingDependencyError, QuotaExceededError):
                    raise
                except Exception as e:
                    await self.log.error("Failed to process team for player stats", {
                        "team": team.get("name"), "error": str(e)
                    })
                    return [RecordOutcome.failed(e, team.get("name"), team_id=team.get("id"))]

            results = await bounded_map(teams, ingest_team, self.settings.CONCURRENCY_LEAGUE_TEAMS)
            for outcomes in results:
                metrics.extend(outcomes)

            await self.log.success("Player stats ingestion completed", {
                "season": resolved_season, **metrics.to_dict()
            })
            return metrics

        except Exception as e:
            await self.log.error("Player stats ingestion failed", {"error": str(e)})
            raise

    async def _ingest_player(
        self,
        player: Dict[str, Any],
        team: Dict[str, Any],
        league: Dict[str, Any],
        season: str
    ) -> RecordOutcome:
        stats = await self.football.get_player_stats(player["provider_player_id"], season)
        if stats is None:
            return RecordOutcome.skipped("No statistics returned", player["name"])

        record = self.validate({
            "player_id": player["id"],
            "league_id": league["id"],
            "team_id": team["id"],
            "season": season,
            "provider": self.provider,
            "player_name": player["name"],
            "player_photo_url": player.get("photo_url"),
            "team_name": team["name"],
            "team_logo_url": team.get("crest_url"),
            **map_player_stats(stats),
        })

        outcome = await self.upsert(
            {"player_id": player["id"], "season": season, "provider": self.provider},
            record,
            player["name"],
        )
        await self.log.info(f"{outcome.type.value.capitalize()} player stats snapshot", {
            "player": player["name"], "team": team["name"]
        })
        return outcome

    async def update_positions(
        self,
        player_id: int,
        season: str,
        league_id: int,
        positions: Dict[str, int]
    ) -> int:
        """
        Merge ranking positions for one league into the player's snapshot.

        Only ``league_positions`` and ``updated_at`` are written.

        Raises:
            MissingDependencyError: No snapshot exists yet for the player and
                season (player statistics must be ingested first)
        """
        async with self._positions_lock:
            existing = await self.store.find_one(
                self.collection, player_id=player_id, season=season, provider=self.provider
            )
            if existing is None:
                raise MissingDependencyError(
                    "Player stats snapshot not found; ingest player stats before top statistics",
                    context={"player_id": player_id, "season": season, "league_id": league_id}
                )

            league_positions = dict(existing.get("league_positions") or {})
            key = str(league_id)
            league_positions[key] = {**league_positions.get(key, {}), **positions}

            await self.store.patch(self.collection, existing["id"], {
                "league_positions": league_positions,
                "updated_at": utcnow(),
            })
            return existing["id"]
