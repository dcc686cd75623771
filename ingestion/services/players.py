"""
Player ingestion for one team
"""

from typing import Dict, Optional
from core.exceptions import MissingDependencyError
from ingestion.concurrency import bounded_map
from ingestion.services.base import IngestionRunMetrics, RecordOutcome, ResourceIngester, resolve_season
from ingestion.transformers.mappers import DEFAULT_POSITION_CODE, map_player, resolve_position_code
from schemas.normalized import PlayerCreate
from schemas.provider import PlayerEntry, SquadPlayer
from storage.base import Collection


class PlayerIngester(ResourceIngester):
    """
    Upserts a team's squad by (provider, provider_player_id).

    The squad endpoint gives the roster; each player is then looked up on
    the detailed endpoint for name parts, birth date and nationality. When a
    detailed lookup is missing the squad data is used on its own.
    """

    job_type = "ingest-players"
    entity = "player"
    collection = Collection.PLAYERS
    schema = PlayerCreate

    async def _position_ids(self) -> Dict[str, int]:
        positions = await self.store.find_many(Collection.POSITIONS)
        return {p["code"]: p["id"] for p in positions}

    async def ingest(self, team_id: int, season: Optional[str] = None) -> IngestionRunMetrics:
        """
        Raises:
            MissingDependencyError: Team or its league is not in the store
        """
        metrics = IngestionRunMetrics(self.entity)

        try:
            await self.log.info("Starting player ingestion", {"team_id": team_id})

            team = await self.store.get(Collection.TEAMS, team_id)
            if team is None:
                raise MissingDependencyError(f"Team not found: {team_id}", context={"team_id": team_id})

            league = await self.store.get(Collection.LEAGUES, team["league_id"])
            if league is None:
                raise MissingDependencyError(
                    f"League not found: {team['league_id']}",
                    context={"team_id": team_id, "league_id": team["league_id"]}
                )
            resolved_season = resolve_season(season, self.settings, league.get("season"))

            squad = await self.football.get_players_by_team(team["provider_team_id"])
            await self.log.info(f"Fetched {len(squad)} players from API for team: {team['name']}")

            player_ids = [p.id for p in squad if p.id is not None]
            detailed = await self.football.get_players_by_ids(player_ids, resolved_season)
            detailed_by_id: Dict[int, PlayerEntry] = {
                entry.player.id: entry for entry in detailed if entry.player and entry.player.id is not None
            }

            position_ids = await self._position_ids()

            async def ingest_one(basic: SquadPlayer) -> RecordOutcome:
                async def work():
                    detail = detailed_by_id.get(basic.id)
                    code = resolve_position_code(basic, detail)
                    position_id = position_ids.get(code) or position_ids.get(DEFAULT_POSITION_CODE)

                    record = self.validate(
                        map_player(basic, detail, team["id"], league["id"], position_id, self.provider)
                    )
                    outcome = await self.upsert(
                        {"provider": self.provider, "provider_player_id": record["provider_player_id"]},
                        record,
                        record["name"],
                    )
                    suffix = " (with detailed data)" if detail else ""
                    await self.log.info(f"{outcome.type.value.capitalize()} player: {record['name']}{suffix}")
                    return outcome

                return await self.isolate(work, basic.name, team=team["name"])

            metrics.extend(await bounded_map(squad, ingest_one, self.settings.CONCURRENCY_PLAYERS))

            await self.log.success("Player ingestion completed", {
                "team": team["name"], "league": league["name"], **metrics.to_dict()
            })
            return metrics

        except Exception as e:
            await self.log.error("Player ingestion failed", {"team_id": team_id, "error": str(e)})
            raise
