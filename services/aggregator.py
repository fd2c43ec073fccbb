"""
Windowed rollups over recorded click events.

``summarize`` is the whole algorithm and is a pure function of its inputs:
events from every selected subject are filtered to the inclusive window and
pooled *before* bucketing, so day/device/country buckets from different links
merge into one count instead of colliding.

Daily buckets are UTC calendar days, ascending, and sparse: a day with no
clicks has no entry. Breakdown mappings are ordered by descending count, then
key, so identical inputs always serialize identically.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Collection, Iterable, Optional

from repositories.protocol import EventStore
from schemas.models.analytics import AnalyticsRecord
from schemas.models.base import as_utc
from schemas.models.rollup import DayCount, RollupResult, TimeWindow
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

DAY_FORMAT = "%Y-%m-%d"


def day_bucket(instant: datetime) -> str:
    return as_utc(instant).strftime(DAY_FORMAT)


def _ordered(counter: Counter) -> dict[str, int]:
    return dict(sorted(counter.items(), key=lambda item: (-item[1], item[0])))


def summarize(records: Iterable[AnalyticsRecord], window: TimeWindow) -> RollupResult:
    per_day: Counter = Counter()
    devices: Counter = Counter()
    countries: Counter = Counter()
    total_clicks = 0
    unique_visitors = 0

    for record in records:
        events = [e for e in record.events if window.contains(e.timestamp)]
        if not events:
            continue
        # Counter is owned by the visitor policy; only subjects active in the
        # window contribute.
        unique_visitors += record.unique_visitors
        for event in events:
            total_clicks += 1
            per_day[day_bucket(event.timestamp)] += 1
            devices[event.device_label] += 1
            countries[event.location.country] += 1

    return RollupResult(
        total_clicks=total_clicks,
        unique_visitors=unique_visitors,
        clicks_by_day=[DayCount(date=day, count=per_day[day]) for day in sorted(per_day)],
        device_breakdown=_ordered(devices),
        country_breakdown=_ordered(countries),
    )


class Aggregator:
    def __init__(self, event_store: EventStore) -> None:
        self._store = event_store

    async def rollup(
        self, subject_ids: Optional[Collection[str]], window: TimeWindow
    ) -> RollupResult:
        """Roll up *subject_ids* (``None`` = every subject) over *window*."""
        if subject_ids is not None and not subject_ids:
            return RollupResult.empty()

        records = await self._store.records_in_window(subject_ids, window)
        result = summarize(records, window)

        if should_sample("rollup_query"):
            log.info(
                "rollup_computed",
                subjects="all" if subject_ids is None else len(subject_ids),
                window_start=window.start.isoformat(),
                window_end=window.end.isoformat(),
                total_clicks=result.total_clicks,
            )
        return result
