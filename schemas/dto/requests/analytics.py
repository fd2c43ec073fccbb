"""
Request DTOs for the analytics read endpoints.

ExportQuery         — GET /analytics/export          (startDate, endDate required)
LinkAnalyticsQuery  — GET /analytics/links/{link_id} (startDate, endDate optional)
GlobalAnalyticsQuery — GET /analytics/global         (timeframe)

Bounds are kept as raw strings and turned into a TimeWindow by ``window()``,
which raises InvalidWindow (400) instead of FastAPI's generic 422 so window
problems are reported the same way everywhere.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from errors import InvalidWindow
from schemas.models.rollup import TimeWindow
from shared.datetime_utils import parse_window_bound


def _bound(raw: Optional[str], name: str, *, end: bool):
    if raw is None or not raw.strip():
        raise InvalidWindow(f"{name} is required", field=name)
    parsed = parse_window_bound(raw, end=end)
    if parsed is None:
        raise InvalidWindow(
            f"{name} must be an ISO 8601 date or date/time", field=name
        )
    return parsed


class _WindowQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")

    def window(self) -> TimeWindow:
        return TimeWindow(
            start=_bound(self.start_date, "startDate", end=False),
            end=_bound(self.end_date, "endDate", end=True),
        )


class ExportQuery(_WindowQuery):
    # Anything other than "csv" (including nothing) yields JSON rows
    format: Optional[str] = None


class LinkAnalyticsQuery(_WindowQuery):
    def optional_window(self) -> Optional[TimeWindow]:
        """Return the window, or None when neither bound was given."""
        if not self.start_date and not self.end_date:
            return None
        return self.window()


class GlobalAnalyticsQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    timeframe: Optional[str] = None
