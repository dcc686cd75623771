"""
Abstract persistence collaborator used by the ingestion pipeline.

Records cross this boundary as plain dicts keyed by column name. Every
implementation assigns an integer ``id`` on insert and treats
``find_one``/``find_many`` criteria as equality filters.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
import enum


class Collection(str, enum.Enum):
    """Named record collections; values match the PostgreSQL table names."""
    LEAGUES = "leagues"
    TEAMS = "teams"
    PLAYERS = "players"
    POSITIONS = "positions"
    WINDOWS = "windows"
    PLAYER_STATS = "player_stats_snapshots"
    TEAM_STATS = "team_stats_snapshots"
    API_USAGE_DAILY = "api_usage_daily"
    API_CALLS = "api_calls"
    INGESTION_LOGS = "ingestion_logs"
    API_INGEST_LOGS = "api_ingest_log"


class Store(ABC):
    """
    Persistence interface.

    Implementations must make ``increment_usage`` atomic: concurrent callers
    incrementing the same (provider, date) must never lose an increment.
    """

    @abstractmethod
    async def get(self, collection: Collection, record_id: int) -> Optional[Dict[str, Any]]:
        """Fetch a record by primary key."""
        pass

    @abstractmethod
    async def find_one(self, collection: Collection, **criteria) -> Optional[Dict[str, Any]]:
        """Fetch the first record matching all criteria."""
        pass

    @abstractmethod
    async def find_many(
        self,
        collection: Collection,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        **criteria
    ) -> List[Dict[str, Any]]:
        """Fetch records matching all criteria, ordered by ``order_by`` then id."""
        pass

    @abstractmethod
    async def count(self, collection: Collection, **criteria) -> int:
        pass

    @abstractmethod
    async def insert(self, collection: Collection, record: Dict[str, Any]) -> int:
        """Insert a record and return its new id."""
        pass

    @abstractmethod
    async def patch(self, collection: Collection, record_id: int, fields: Dict[str, Any]) -> None:
        """Update only the given fields of an existing record."""
        pass

    @abstractmethod
    async def increment_usage(self, provider: str, date: str, timestamp: datetime) -> int:
        """
        Add one call to the (provider, date) counter, creating it at 1 when
        absent. Returns the counter value after the increment.
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """True when the backing store answers a trivial query."""
        pass

    # ------------------------------------------------------------------
    # Query helpers shared by all implementations
    # ------------------------------------------------------------------

    async def list_top_leagues(self, limit: int) -> List[Dict[str, Any]]:
        """Leagues in ingestion order (first ingested first)."""
        return await self.find_many(Collection.LEAGUES, limit=limit, order_by="id")

    async def list_teams_by_league(self, league_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self.find_many(Collection.TEAMS, limit=limit, order_by="id", league_id=league_id)

    async def list_players_by_team(self, team_id: int) -> List[Dict[str, Any]]:
        return await self.find_many(Collection.PLAYERS, order_by="id", team_id=team_id)
