"""
Repository factory: switch storage backend from config.

Centralizes the choice between the MongoDB backend and the in-memory one so
the rest of the app stays ignorant of where data lives.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase

from config import AnalyticsSettings
from repositories.link_registry import MemoryLinkRegistry, MongoLinkRegistry
from repositories.memory_event_store import MemoryEventStore
from repositories.mongo_event_store import MongoEventStore
from repositories.protocol import EventStore, LinkRegistry, UserRegistry
from repositories.user_registry import MemoryUserRegistry, MongoUserRegistry


@dataclass
class Repositories:
    event_store: EventStore
    link_registry: LinkRegistry
    user_registry: UserRegistry


def build_repositories(
    settings: AnalyticsSettings, db: Optional[AsyncDatabase] = None
) -> Repositories:
    """Return the repositories for ``settings.storage_backend``.

    Raises:
        ValueError: the mongo backend was selected without a database handle.
    """
    if settings.storage_backend == "memory":
        return Repositories(
            event_store=MemoryEventStore(),
            link_registry=MemoryLinkRegistry(),
            user_registry=MemoryUserRegistry(),
        )

    if db is None:
        raise ValueError("a MongoDB database is required for the mongo backend")
    return Repositories(
        event_store=MongoEventStore(db, settings.visitor_key_ttl_seconds),
        link_registry=MongoLinkRegistry(db),
        user_registry=MongoUserRegistry(db),
    )
