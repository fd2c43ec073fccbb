"""Repository protocols. Services depend on these, not the concrete backends."""

from __future__ import annotations

from typing import Collection, Optional, Protocol

from schemas.models.analytics import AnalyticsRecord, RecordAck
from schemas.models.click import ClickEvent
from schemas.models.rollup import DayCount, TimeWindow


class EventStore(Protocol):
    """Append-only per-subject click log with co-located counters.

    ``record`` is the only write: create-if-absent, append and increment
    happen as one atomic step per subject.
    """

    async def record(
        self, subject_id: str, event: ClickEvent, unique_increment: int = 0
    ) -> RecordAck: ...

    async def get(self, subject_id: str) -> AnalyticsRecord: ...

    async def records_in_window(
        self, subject_ids: Optional[Collection[str]], window: TimeWindow
    ) -> list[AnalyticsRecord]: ...

    async def mark_visitor(self, visitor_key: str) -> bool: ...

    async def forget_visitor(self, visitor_key: str) -> None: ...

    async def ping(self) -> None: ...

    async def ensure_indexes(self) -> None: ...


class LinkRegistry(Protocol):
    """Read-only view of the links owned by the link component."""

    async def link_ids_for_user(self, user_id: str) -> list[str]: ...

    async def owner_of(self, link_id: str) -> Optional[str]: ...

    async def exists(self, link_id: str) -> bool: ...


class UserRegistry(Protocol):
    """Read-only view of user accounts owned by the auth component."""

    async def growth_by_day(self, window: TimeWindow) -> list[DayCount]: ...
