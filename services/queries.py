"""
Read-side queries composed from Aggregator output.

DashboardQuery — every link of one user, fixed trailing window (30 days)
LinkQuery      — one link the caller owns, caller-chosen window + lifetime counters
               (and, for admins, one user's lifetime counters over all their links)
GlobalQuery    — every link in the system for a timeframe token, plus user growth

None of these mutate the event store. "No data" is a zero-valued result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from errors import NotFoundError, RecordNotFound
from repositories.protocol import EventStore, LinkRegistry, UserRegistry
from schemas.models.rollup import DayCount, RollupResult, TimeWindow
from services.aggregator import Aggregator

DEFAULT_TIMEFRAME = "30d"
TIMEFRAME_DAYS = {"7d": 7, "30d": 30, "90d": 90}


def resolve_timeframe(token: Optional[str]) -> tuple[str, int]:
    """Map a timeframe token to ``(token, days)``; unknown tokens mean 30 days."""
    normalized = (token or "").strip().lower()
    if normalized not in TIMEFRAME_DAYS:
        normalized = DEFAULT_TIMEFRAME
    return normalized, TIMEFRAME_DAYS[normalized]


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


@dataclass(frozen=True)
class LinkAnalytics:
    link_id: str
    window: TimeWindow
    rollup: RollupResult
    lifetime_clicks: int = 0
    lifetime_unique_visitors: int = 0


@dataclass(frozen=True)
class UserLifetime:
    user_id: str
    link_count: int = 0
    total_clicks: int = 0
    unique_visitors: int = 0


@dataclass(frozen=True)
class GlobalAnalytics:
    timeframe: str
    window: TimeWindow
    analytics: RollupResult
    user_growth: list[DayCount] = field(default_factory=list)


class DashboardQuery:
    def __init__(
        self, aggregator: Aggregator, link_registry: LinkRegistry, window_days: int = 30
    ) -> None:
        self._aggregator = aggregator
        self._links = link_registry
        self._window_days = window_days

    async def dashboard(self, user_id: str, now: Optional[datetime] = None) -> RollupResult:
        window = TimeWindow.last_days(self._window_days, _now(now))
        link_ids = await self._links.link_ids_for_user(user_id)
        return await self._aggregator.rollup(set(link_ids), window)


class LinkQuery:
    def __init__(
        self,
        aggregator: Aggregator,
        event_store: EventStore,
        link_registry: LinkRegistry,
        window_days: int = 30,
    ) -> None:
        self._aggregator = aggregator
        self._store = event_store
        self._links = link_registry
        self._window_days = window_days

    async def link_analytics(
        self,
        user_id: str,
        link_id: str,
        window: Optional[TimeWindow] = None,
        now: Optional[datetime] = None,
    ) -> LinkAnalytics:
        owner = await self._links.owner_of(link_id)
        if owner is None or owner != user_id:
            # Missing and foreign links are indistinguishable to the caller
            raise NotFoundError("link not found", field="link_id")

        window = window or TimeWindow.last_days(self._window_days, _now(now))
        rollup = await self._aggregator.rollup({link_id}, window)

        try:
            record = await self._store.get(link_id)
        except RecordNotFound:
            return LinkAnalytics(link_id=link_id, window=window, rollup=rollup)

        return LinkAnalytics(
            link_id=link_id,
            window=window,
            rollup=rollup,
            lifetime_clicks=record.total_clicks,
            lifetime_unique_visitors=record.unique_visitors,
        )

    async def user_lifetime(self, user_id: str) -> UserLifetime:
        """Sum the stored counters of every link *user_id* owns, with no window."""
        link_ids = await self._links.link_ids_for_user(user_id)
        total_clicks = 0
        unique_visitors = 0
        for link_id in link_ids:
            try:
                record = await self._store.get(link_id)
            except RecordNotFound:
                continue
            total_clicks += record.total_clicks
            unique_visitors += record.unique_visitors

        return UserLifetime(
            user_id=user_id,
            link_count=len(link_ids),
            total_clicks=total_clicks,
            unique_visitors=unique_visitors,
        )


class GlobalQuery:
    def __init__(self, aggregator: Aggregator, user_registry: UserRegistry) -> None:
        self._aggregator = aggregator
        self._users = user_registry

    async def global_analytics(
        self, timeframe: Optional[str] = None, now: Optional[datetime] = None
    ) -> GlobalAnalytics:
        token, days = resolve_timeframe(timeframe)
        window = TimeWindow.last_days(days, _now(now))

        analytics = await self._aggregator.rollup(None, window)
        # Growth comes from user accounts, not clicks; merged only in the response
        user_growth = await self._users.growth_by_day(window)

        return GlobalAnalytics(
            timeframe=token,
            window=window,
            analytics=analytics,
            user_growth=user_growth,
        )
