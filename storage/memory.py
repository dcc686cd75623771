"""
In-process store for tests and dry runs.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from storage.base import Collection, Store
import copy
import itertools


class MemoryStore(Store):
    """
    Dict-backed store with the same semantics as PostgresStore.

    No awaits happen between read and write inside a single method, so each
    call is atomic with respect to other coroutines on the same loop.
    """

    def __init__(self):
        self.tables: Dict[Collection, Dict[int, Dict[str, Any]]] = {c: {} for c in Collection}
        self._ids = {c: itertools.count(1) for c in Collection}

    def rows(self, collection: Collection) -> List[Dict[str, Any]]:
        """Copies of every row in insertion order (test helper)."""
        return [copy.deepcopy(r) for r in self.tables[collection].values()]

    @staticmethod
    def _matches(row: Dict[str, Any], criteria: Dict[str, Any]) -> bool:
        return all(row.get(field) == value for field, value in criteria.items())

    async def get(self, collection: Collection, record_id: int) -> Optional[Dict[str, Any]]:
        row = self.tables[collection].get(record_id)
        return copy.deepcopy(row) if row is not None else None

    async def find_one(self, collection: Collection, **criteria) -> Optional[Dict[str, Any]]:
        rows = await self.find_many(collection, limit=1, **criteria)
        return rows[0] if rows else None

    async def find_many(
        self,
        collection: Collection,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        **criteria
    ) -> List[Dict[str, Any]]:
        rows = [r for r in self.tables[collection].values() if self._matches(r, criteria)]
        rows.sort(key=lambda r: r["id"], reverse=descending)
        if order_by and order_by != "id":
            rows.sort(key=lambda r: r.get(order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(r) for r in rows]

    async def count(self, collection: Collection, **criteria) -> int:
        return sum(1 for r in self.tables[collection].values() if self._matches(r, criteria))

    async def insert(self, collection: Collection, record: Dict[str, Any]) -> int:
        record_id = next(self._ids[collection])
        row = copy.deepcopy(record)
        row["id"] = record_id
        self.tables[collection][record_id] = row
        return record_id

    async def patch(self, collection: Collection, record_id: int, fields: Dict[str, Any]) -> None:
        row = self.tables[collection].get(record_id)
        if row is None:
            return
        row.update(copy.deepcopy(fields))

    async def increment_usage(self, provider: str, date: str, timestamp: datetime) -> int:
        for row in self.tables[Collection.API_USAGE_DAILY].values():
            if row["provider"] == provider and row["date"] == date:
                row["total_calls"] += 1
                row["last_updated"] = timestamp
                return row["total_calls"]

        await self.insert(Collection.API_USAGE_DAILY, {
            "provider": provider,
            "date": date,
            "total_calls": 1,
            "last_updated": timestamp,
        })
        return 1

    async def ping(self) -> bool:
        return True
