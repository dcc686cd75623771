"""
PostgreSQL store on the SQLAlchemy async ORM.

Each call opens its own short-lived session so that concurrent fan-out
workers never share a connection.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy import select, update, func, text
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from core.exceptions import PersistenceError
from models.football import League, Team, Player, Position, Window
from models.stats import PlayerStatsSnapshot, TeamStatsSnapshot
from models.usage import ApiUsageDaily, ApiCall
from models.logs import IngestionLog, ApiIngestLog
from storage.base import Collection, Store
import logging

logger = logging.getLogger(__name__)


MODELS = {
    Collection.LEAGUES: League,
    Collection.TEAMS: Team,
    Collection.PLAYERS: Player,
    Collection.POSITIONS: Position,
    Collection.WINDOWS: Window,
    Collection.PLAYER_STATS: PlayerStatsSnapshot,
    Collection.TEAM_STATS: TeamStatsSnapshot,
    Collection.API_USAGE_DAILY: ApiUsageDaily,
    Collection.API_CALLS: ApiCall,
    Collection.INGESTION_LOGS: IngestionLog,
    Collection.API_INGEST_LOGS: ApiIngestLog,
}


def _to_dict(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


class PostgresStore(Store):
    """Store backed by the tables defined under ``models``."""

    def __init__(self, session_maker: Callable[[], AsyncSession]):
        self.session_maker = session_maker

    def _where(self, model, criteria: Dict[str, Any]):
        return [getattr(model, field) == value for field, value in criteria.items()]

    async def get(self, collection: Collection, record_id: int) -> Optional[Dict[str, Any]]:
        model = MODELS[collection]
        try:
            async with self.session_maker() as session:
                row = await session.get(model, record_id)
                return _to_dict(row) if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to get {collection.value} record",
                context={"operation": "get", "collection": collection.value, "id": record_id},
                original_exception=e
            )

    async def find_one(self, collection: Collection, **criteria) -> Optional[Dict[str, Any]]:
        rows = await self.find_many(collection, limit=1, order_by="id", **criteria)
        return rows[0] if rows else None

    async def find_many(
        self,
        collection: Collection,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        **criteria
    ) -> List[Dict[str, Any]]:
        model = MODELS[collection]
        stmt = select(model).where(*self._where(model, criteria))

        order_column = getattr(model, order_by or "id")
        if descending:
            stmt = stmt.order_by(order_column.desc(), model.id.desc())
        else:
            stmt = stmt.order_by(order_column.asc(), model.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                return [_to_dict(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to query {collection.value}",
                context={"operation": "find", "collection": collection.value},
                original_exception=e
            )

    async def count(self, collection: Collection, **criteria) -> int:
        model = MODELS[collection]
        stmt = select(func.count()).select_from(model).where(*self._where(model, criteria))
        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                return result.scalar_one()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to count {collection.value}",
                context={"operation": "count", "collection": collection.value},
                original_exception=e
            )

    async def insert(self, collection: Collection, record: Dict[str, Any]) -> int:
        model = MODELS[collection]
        try:
            async with self.session_maker() as session:
                row = model(**record)
                session.add(row)
                await session.commit()
                return row.id
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to insert into {collection.value}",
                context={"operation": "insert", "collection": collection.value},
                original_exception=e
            )

    async def patch(self, collection: Collection, record_id: int, fields: Dict[str, Any]) -> None:
        model = MODELS[collection]
        stmt = update(model).where(model.id == record_id).values(**fields)
        try:
            async with self.session_maker() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to patch {collection.value} record",
                context={"operation": "patch", "collection": collection.value, "id": record_id},
                original_exception=e
            )

    async def increment_usage(self, provider: str, date: str, timestamp: datetime) -> int:
        # PostgreSQL INSERT ... ON CONFLICT (atomic counter)
        stmt = insert(ApiUsageDaily).values(
            provider=provider,
            date=date,
            total_calls=1,
            last_updated=timestamp,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["provider", "date"],
            set_={
                "total_calls": ApiUsageDaily.total_calls + 1,
                "last_updated": stmt.excluded.last_updated,
            }
        ).returning(ApiUsageDaily.total_calls)

        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                total = result.scalar_one()
                await session.commit()
                return total
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to increment API usage",
                context={"operation": "increment", "collection": Collection.API_USAGE_DAILY.value,
                         "provider": provider, "date": date},
                original_exception=e
            )

    async def ping(self) -> bool:
        try:
            async with self.session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {str(e)}")
            return False
