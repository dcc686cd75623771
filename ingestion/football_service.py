"""
Provider facade used by the resource ingesters.

Every call is composed the same way:

    RateGovernor.schedule(  # daily quota + token bucket + concurrency cap
        RetryEngine.with_retry(  # backoff, one ledger record per attempt
            FootballApiClient.<endpoint>()))

and the envelope is parsed into the optional-field models from
``schemas.provider``.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from core.exceptions import ProviderError, ProviderResponseError
from ingestion.concurrency import bounded_map
from ingestion.ingestion_logger import IngestionLogger
from ingestion.provider.client import FootballApiClient
from ingestion.rate_governor import RateGovernor
from ingestion.retry import RetryEngine
from ingestion.usage_ledger import UsageLedger
from schemas.provider import (
    ApiEnvelope,
    LeagueEntry,
    PlayerEntry,
    PlayerStatistics,
    SquadEntry,
    SquadPlayer,
    TeamEntry,
    TeamStatistics,
)

M = TypeVar("M", bound=BaseModel)


class Resource:
    """Resource names recorded in the usage ledger"""
    LEAGUES = "leagues"
    TEAMS = "teams"
    PLAYERS = "players"
    PLAYER_STATS = "player-stats"
    SQUADS = "squads"
    TEAM_STATS = "team-stats"
    TOP_PLAYERS = "top-players"


def parse_items(model: Type[M], envelope: ApiEnvelope, resource: str) -> List[M]:
    try:
        return [model.model_validate(item) for item in envelope.items()]
    except ValidationError as e:
        raise ProviderResponseError(
            f"Unexpected {resource} payload shape",
            context={"resource": resource, "errors": e.errors()[:5]},
            original_exception=e
        )


async def usage_summary(ledger: UsageLedger, limit: int) -> Dict[str, Any]:
    """Today's usage against the daily limit"""
    usage = await ledger.get_usage()
    return {
        "used": usage.total_calls,
        "limit": limit,
        "remaining": max(limit - usage.total_calls, 0),
        "percent_used": round(usage.total_calls / limit * 100) if limit else 0,
        "date": usage.date,
    }


class FootballService:
    """
    Rate-limited, retried access to API-Football.

    Attributes:
        client: Raw HTTP client
        governor: Shared RateGovernor for this provider connection
        retry: RetryEngine bound to the current job's logger
        ledger: UsageLedger for usage reporting
        settings: Application settings (concurrency ceilings, daily limit)
        log: Job logger
    """

    def __init__(
        self,
        client: FootballApiClient,
        governor: RateGovernor,
        retry: RetryEngine,
        ledger: UsageLedger,
        settings,
        log: IngestionLogger
    ):
        self.client = client
        self.governor = governor
        self.retry = retry
        self.ledger = ledger
        self.settings = settings
        self.log = log

    async def _call(self, operation, resource: str, params: Dict[str, Any]) -> ApiEnvelope:
        return await self.governor.schedule(
            lambda: self.retry.with_retry(operation, resource, params)
        )

    # ------------------------------------------------------------------
    # Leagues / teams
    # ------------------------------------------------------------------

    async def get_leagues_by_ids(self, league_ids: List[int], current: bool = True) -> List[LeagueEntry]:
        """One provider call per league ID, fanned out and flattened."""
        await self.log.info("Fetching leagues by IDs from API-Football", {
            "league_ids": league_ids, "count": len(league_ids)
        })

        async def fetch(league_id: int) -> List[LeagueEntry]:
            envelope = await self._call(
                lambda: self.client.get_leagues(id=league_id, current=current),
                Resource.LEAGUES,
                {"id": league_id},
            )
            return parse_items(LeagueEntry, envelope, Resource.LEAGUES)

        responses = await bounded_map(league_ids, fetch, self.settings.CONCURRENCY_LEAGUES)
        leagues = [entry for batch in responses for entry in batch]

        await self.log.info(
            f"Successfully fetched {len(leagues)} leagues from {len(league_ids)} API calls"
        )
        return leagues

    async def get_teams_by_league(self, provider_league_id: str, season: str) -> List[TeamEntry]:
        await self.log.info("Fetching teams", {"league_id": provider_league_id, "season": season})
        envelope = await self._call(
            lambda: self.client.get_teams(league=int(provider_league_id), season=int(season)),
            Resource.TEAMS,
            {"league": provider_league_id, "season": season},
        )
        return parse_items(TeamEntry, envelope, Resource.TEAMS)

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    async def get_players_by_team(self, provider_team_id: str) -> List[SquadPlayer]:
        """Current squad of a team (response[0].players)."""
        await self.log.info("Fetching players", {"team_id": provider_team_id})
        envelope = await self._call(
            lambda: self.client.get_squad(team=int(provider_team_id)),
            Resource.SQUADS,
            {"team": provider_team_id},
        )
        squads = parse_items(SquadEntry, envelope, Resource.SQUADS)
        if not squads:
            return []
        return squads[0].players or []

    async def get_players_by_ids(self, player_ids: List[int], season: str) -> List[PlayerEntry]:
        """
        Detailed player records. A lookup that fails at the provider is logged
        and left out so the squad data can still be used for that player.
        """
        await self.log.info("Fetching detailed player data by IDs from API-Football", {
            "count": len(player_ids), "season": season
        })

        async def fetch(player_id: int) -> List[PlayerEntry]:
            try:
                envelope = await self._call(
                    lambda: self.client.get_players(id=player_id, season=int(season)),
                    Resource.PLAYERS,
                    {"id": player_id, "season": season},
                )
            except ProviderError as e:
                await self.log.warn("Detailed player lookup failed", {
                    "player_id": player_id, "error": str(e)
                })
                return []
            return parse_items(PlayerEntry, envelope, Resource.PLAYERS)

        responses = await bounded_map(player_ids, fetch, self.settings.CONCURRENCY_PLAYER_LOOKUPS)
        players = [entry for batch in responses for entry in batch]

        await self.log.info(
            f"Successfully fetched {len(players)} detailed players from {len(player_ids)} API calls"
        )
        return players

    async def get_player_stats(self, provider_player_id: str, season: str) -> Optional[PlayerStatistics]:
        """First statistics block of the player for the season, if any."""
        envelope = await self._call(
            lambda: self.client.get_players(id=int(provider_player_id), season=int(season)),
            Resource.PLAYER_STATS,
            {"id": provider_player_id, "season": season},
        )
        entries = parse_items(PlayerEntry, envelope, Resource.PLAYER_STATS)
        if not entries or not entries[0].statistics:
            return None
        return entries[0].statistics[0]

    async def get_top_players(self, category: str, provider_league_id: str, season: str) -> List[PlayerEntry]:
        """Ranked list, best first."""
        envelope = await self._call(
            lambda: self.client.get_top_players(category, league=int(provider_league_id), season=int(season)),
            f"{Resource.TOP_PLAYERS}:{category}",
            {"league": provider_league_id, "season": season},
        )
        return parse_items(PlayerEntry, envelope, Resource.TOP_PLAYERS)

    # ------------------------------------------------------------------
    # Team statistics
    # ------------------------------------------------------------------

    async def get_team_stats(
        self,
        provider_team_id: str,
        provider_league_id: str,
        season: str
    ) -> Optional[TeamStatistics]:
        await self.log.info("Fetching team stats", {
            "team_id": provider_team_id, "league_id": provider_league_id, "season": season
        })
        envelope = await self._call(
            lambda: self.client.get_team_statistics(
                team=int(provider_team_id), league=int(provider_league_id), season=int(season)
            ),
            Resource.TEAM_STATS,
            {"team": provider_team_id, "league": provider_league_id, "season": season},
        )
        items = parse_items(TeamStatistics, envelope, Resource.TEAM_STATS)
        return items[0] if items else None

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------

    async def get_api_usage(self) -> Dict[str, Any]:
        return await usage_summary(self.ledger, self.settings.DAILY_LIMIT)
