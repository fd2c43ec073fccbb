"""MongoDB-backed EventStore.

Collections:
  analytics — one document per link, keyed by the link's ObjectId
              (see schemas.models.analytics)
  visitors  — unique-visitor keys, ``_id`` = key, expired by a TTL index

Every write is a single atomic server-side operation. ``record`` never reads
before writing: the ``$push`` of the event and the ``$inc`` of the counters
travel in the same upsert, so concurrent clicks on one link cannot lose
updates, even across processes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Collection, Optional

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from errors import RecordNotFound, StoreUnavailable
from schemas.models.analytics import AnalyticsRecord, RecordAck
from schemas.models.base import as_object_id
from schemas.models.click import ClickEvent
from schemas.models.rollup import TimeWindow
from shared.logging import get_logger

log = get_logger(__name__)

ANALYTICS_COLLECTION = "analytics"
VISITORS_COLLECTION = "visitors"


class MongoEventStore:
    def __init__(self, db: AsyncDatabase, visitor_key_ttl_seconds: int = 172_800) -> None:
        self._db = db
        self._analytics = db[ANALYTICS_COLLECTION]
        self._visitors = db[VISITORS_COLLECTION]
        self._visitor_ttl = visitor_key_ttl_seconds

    async def record(
        self, subject_id: str, event: ClickEvent, unique_increment: int = 0
    ) -> RecordAck:
        now = datetime.now(timezone.utc)
        query = {"link": as_object_id(subject_id)}
        update = {
            "$push": {"clicks": event.to_mongo()},
            "$inc": {"totalClicks": 1, "uniqueVisitors": unique_increment},
            "$set": {"updatedAt": now},
            "$setOnInsert": {"createdAt": now},
        }
        try:
            try:
                result = await self._analytics.update_one(query, update, upsert=True)
            except DuplicateKeyError:
                # Two first-clicks raced on the unique ``link`` index; the loser
                # wrote nothing, so applying the update again is safe.
                result = await self._analytics.update_one(query, update, upsert=True)
        except PyMongoError as e:
            log.error(
                "store_unavailable",
                operation="record",
                subject_id=subject_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailable("analytics store is unavailable") from e

        return RecordAck(
            subject_id=subject_id,
            created=result.upserted_id is not None,
            unique=unique_increment > 0,
        )

    async def get(self, subject_id: str) -> AnalyticsRecord:
        try:
            doc = await self._analytics.find_one({"link": as_object_id(subject_id)})
        except PyMongoError as e:
            raise StoreUnavailable("analytics store is unavailable") from e
        if doc is None:
            raise RecordNotFound(f"no analytics recorded for {subject_id}")
        return AnalyticsRecord.from_mongo(doc)

    async def records_in_window(
        self, subject_ids: Optional[Collection[str]], window: TimeWindow
    ) -> list[AnalyticsRecord]:
        if subject_ids is not None and not subject_ids:
            return []

        in_window = {"$gte": window.start, "$lte": window.end}
        match: dict = {"clicks": {"$elemMatch": {"timestamp": in_window}}}
        if subject_ids is not None:
            match["link"] = {"$in": [as_object_id(s) for s in sorted(subject_ids)]}

        pipeline = [
            {"$match": match},
            {
                "$project": {
                    "link": 1,
                    "totalClicks": 1,
                    "uniqueVisitors": 1,
                    "createdAt": 1,
                    "updatedAt": 1,
                    "clicks": {
                        "$filter": {
                            "input": "$clicks",
                            "as": "click",
                            "cond": {
                                "$and": [
                                    {"$gte": ["$$click.timestamp", window.start]},
                                    {"$lte": ["$$click.timestamp", window.end]},
                                ]
                            },
                        }
                    },
                }
            },
            {"$sort": {"link": 1}},
        ]
        try:
            cursor = await self._analytics.aggregate(pipeline)
            docs = await cursor.to_list(None)
        except PyMongoError as e:
            log.error(
                "store_unavailable",
                operation="records_in_window",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailable("analytics store is unavailable") from e
        return [AnalyticsRecord.from_mongo(doc) for doc in docs]

    async def mark_visitor(self, visitor_key: str) -> bool:
        try:
            await self._visitors.insert_one(
                {"_id": visitor_key, "createdAt": datetime.now(timezone.utc)}
            )
        except DuplicateKeyError:
            return False
        except PyMongoError as e:
            raise StoreUnavailable("analytics store is unavailable") from e
        return True

    async def forget_visitor(self, visitor_key: str) -> None:
        try:
            await self._visitors.delete_one({"_id": visitor_key})
        except PyMongoError as e:
            raise StoreUnavailable("analytics store is unavailable") from e

    async def ping(self) -> None:
        try:
            await self._db.command("ping")
        except PyMongoError as e:
            raise StoreUnavailable("analytics store is unavailable") from e

    async def ensure_indexes(self) -> None:
        try:
            await self._analytics.create_index([("link", ASCENDING)], unique=True)
            await self._analytics.create_index([("clicks.timestamp", ASCENDING)])
            await self._visitors.create_index(
                [("createdAt", ASCENDING)], expireAfterSeconds=self._visitor_ttl
            )
        except PyMongoError as e:
            log.warning(
                "ensure_indexes_failed", error=str(e), error_type=type(e).__name__
            )
