"""
User registry adapters.

Only the ``createdAt`` field of the ``users`` collection is read, to build
the admin view's user-growth series (new accounts per UTC day, ascending).
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from errors import StoreUnavailable
from schemas.models.base import as_utc
from schemas.models.rollup import DayCount, TimeWindow

USERS_COLLECTION = "users"


class MongoUserRegistry:
    def __init__(self, db: AsyncDatabase) -> None:
        self._users = db[USERS_COLLECTION]

    async def growth_by_day(self, window: TimeWindow) -> list[DayCount]:
        pipeline = [
            {"$match": {"createdAt": {"$gte": window.start, "$lte": window.end}}},
            {
                "$group": {
                    "_id": {
                        "$dateToString": {
                            "format": "%Y-%m-%d",
                            "date": "$createdAt",
                            "timezone": "UTC",
                        }
                    },
                    "count": {"$sum": 1},
                }
            },
            {"$sort": {"_id": 1}},
        ]
        try:
            cursor = await self._users.aggregate(pipeline)
            docs = await cursor.to_list(None)
        except PyMongoError as e:
            raise StoreUnavailable("user registry is unavailable") from e
        return [DayCount(date=doc["_id"], count=doc["count"]) for doc in docs]


class MemoryUserRegistry:
    """User registry for the in-memory backend; seeded with ``add_user``."""

    def __init__(self, created: Optional[dict[str, datetime]] = None) -> None:
        self._created: dict[str, datetime] = {
            user_id: as_utc(at) for user_id, at in (created or {}).items()
        }

    def add_user(self, user_id: str, created_at: datetime) -> None:
        self._created[user_id] = as_utc(created_at)

    async def growth_by_day(self, window: TimeWindow) -> list[DayCount]:
        per_day = Counter(
            at.strftime("%Y-%m-%d")
            for at in self._created.values()
            if window.contains(at)
        )
        return [DayCount(date=day, count=per_day[day]) for day in sorted(per_day)]
