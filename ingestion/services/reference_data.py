"""
Reference data seeding (positions and statistics windows)
"""

import logging
from typing import Any, Dict, List
from models.base import utcnow
from storage.base import Collection, Store

logger = logging.getLogger(__name__)

POSITIONS: List[Dict[str, Any]] = [
    {"code": "GK", "name": "Goalkeeper", "sort_order": 1},
    {"code": "DF", "name": "Defender", "sort_order": 2},
    {"code": "MF", "name": "Midfielder", "sort_order": 3},
    {"code": "FW", "name": "Forward", "sort_order": 4},
]

WINDOWS: List[Dict[str, Any]] = [
    {"code": "season", "name": "Full Season", "description": "Complete season statistics", "sort_order": 1},
    {"code": "last5", "name": "Last 5 Games", "description": "Statistics from the last 5 matches", "sort_order": 2},
    {"code": "last10", "name": "Last 10 Games", "description": "Statistics from the last 10 matches", "sort_order": 3},
    {
        "code": "calendarYTD",
        "name": "Calendar Year to Date",
        "description": "Statistics from January 1st to current date",
        "sort_order": 4,
    },
]


class ReferenceDataSeeder:
    """Creates missing positions and windows; existing rows are left untouched."""

    def __init__(self, store: Store):
        self.store = store

    async def _seed(self, collection: Collection, rows: List[Dict[str, Any]]) -> int:
        created = 0
        for row in rows:
            if await self.store.find_one(collection, code=row["code"]):
                continue
            await self.store.insert(collection, {**row, "created_at": utcnow()})
            logger.info(f"Created {collection.value[:-1]}: {row['code']}")
            created += 1
        return created

    async def seed(self) -> Dict[str, Any]:
        positions_created = await self._seed(Collection.POSITIONS, POSITIONS)
        windows_created = await self._seed(Collection.WINDOWS, WINDOWS)

        result = {
            "positions_created": positions_created,
            "windows_created": windows_created,
            "message": (
                f"Reference data initialized: {positions_created} positions, "
                f"{windows_created} windows created"
            ),
        }
        logger.info(result["message"])
        return result
