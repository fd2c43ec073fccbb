"""
Derived (never persisted) analytics shapes.

TimeWindow    — inclusive [start, end] range; both bounds required
DayCount      — one (UTC date, count) bucket of a sparse daily series
RollupResult  — output of the Aggregator for one window
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from errors import InvalidWindow
from schemas.models.base import as_utc


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start is None or self.end is None:
            raise InvalidWindow("both start and end of the time window are required")
        start, end = as_utc(self.start), as_utc(self.end)
        if start > end:
            raise InvalidWindow(
                "start of the time window must not be after its end",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def last_days(cls, days: int, now: datetime) -> "TimeWindow":
        """Window covering the *days* days up to and including *now*."""
        now = as_utc(now)
        return cls(start=now - timedelta(days=days), end=now)

    def contains(self, instant: datetime) -> bool:
        return self.start <= as_utc(instant) <= self.end


@dataclass(frozen=True)
class DayCount:
    date: str  # YYYY-MM-DD (UTC)
    count: int

    def to_dict(self) -> dict:
        return {"date": self.date, "count": self.count}


@dataclass(frozen=True)
class RollupResult:
    total_clicks: int = 0
    unique_visitors: int = 0
    clicks_by_day: list[DayCount] = field(default_factory=list)
    device_breakdown: dict[str, int] = field(default_factory=dict)
    country_breakdown: dict[str, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "RollupResult":
        return cls()
