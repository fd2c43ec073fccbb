"""
Link registry adapters.

The ``links`` collection belongs to the link component; this service only
reads ``_id`` and ``user`` from it. Link ids are exchanged as strings.
"""

from __future__ import annotations

from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from errors import StoreUnavailable
from schemas.models.base import as_object_id

LINKS_COLLECTION = "links"


class MongoLinkRegistry:
    def __init__(self, db: AsyncDatabase) -> None:
        self._links = db[LINKS_COLLECTION]

    async def link_ids_for_user(self, user_id: str) -> list[str]:
        try:
            cursor = self._links.find({"user": as_object_id(user_id)}, {"_id": 1})
            return [str(doc["_id"]) async for doc in cursor]
        except PyMongoError as e:
            raise StoreUnavailable("link registry is unavailable") from e

    async def owner_of(self, link_id: str) -> Optional[str]:
        try:
            doc = await self._links.find_one(
                {"_id": as_object_id(link_id)}, {"user": 1}
            )
        except PyMongoError as e:
            raise StoreUnavailable("link registry is unavailable") from e
        if doc is None or doc.get("user") is None:
            return None
        return str(doc["user"])

    async def exists(self, link_id: str) -> bool:
        try:
            doc = await self._links.find_one({"_id": as_object_id(link_id)}, {"_id": 1})
        except PyMongoError as e:
            raise StoreUnavailable("link registry is unavailable") from e
        return doc is not None


class MemoryLinkRegistry:
    """Link registry for the in-memory backend; seeded with ``add_link``."""

    def __init__(self, links: Optional[dict[str, str]] = None) -> None:
        # link_id -> owner user_id
        self._links: dict[str, str] = dict(links or {})

    def add_link(self, link_id: str, owner_id: str) -> None:
        self._links[link_id] = owner_id

    async def link_ids_for_user(self, user_id: str) -> list[str]:
        return sorted(link for link, owner in self._links.items() if owner == user_id)

    async def owner_of(self, link_id: str) -> Optional[str]:
        return self._links.get(link_id)

    async def exists(self, link_id: str) -> bool:
        return link_id in self._links
