"""
Response DTOs for the analytics endpoints.

Response shapes are the API contract and use camelCase keys
(``totalClicks``, ``clicksByDay``, ``locationBreakdown`` ...). Every body is
wrapped in ``{"status": "success", "data": ...}``.

TrackResponse          — POST /track/{subject_id}
DashboardResponse      — GET /dashboard
LinkAnalyticsResponse  — GET /analytics/links/{link_id}
GlobalAnalyticsResponse — GET /analytics/global
UserLifetimeResponse   — GET /analytics/users/{user_id}/lifetime
ExportJsonResponse     — GET /analytics/export?format=json
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.rollup import DayCount, RollupResult
from services.queries import GlobalAnalytics, LinkAnalytics, UserLifetime


class DayCountItem(BaseModel):
    date: str
    count: int

    @classmethod
    def from_day(cls, day: DayCount) -> "DayCountItem":
        return cls(date=day.date, count=day.count)


class RollupBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_clicks: int = Field(alias="totalClicks")
    unique_visitors: int = Field(alias="uniqueVisitors")
    clicks_by_day: list[DayCountItem] = Field(alias="clicksByDay")
    device_breakdown: dict[str, int] = Field(alias="deviceBreakdown")
    location_breakdown: dict[str, int] = Field(alias="locationBreakdown")

    @classmethod
    def from_rollup(cls, rollup: RollupResult) -> "RollupBody":
        return cls(
            total_clicks=rollup.total_clicks,
            unique_visitors=rollup.unique_visitors,
            clicks_by_day=[DayCountItem.from_day(d) for d in rollup.clicks_by_day],
            device_breakdown=rollup.device_breakdown,
            location_breakdown=rollup.country_breakdown,
        )


class LifetimeCounters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_clicks: int = Field(alias="totalClicks")
    unique_visitors: int = Field(alias="uniqueVisitors")


class LinkAnalyticsBody(RollupBody):
    link_id: str = Field(alias="linkId")
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    lifetime: LifetimeCounters

    @classmethod
    def from_link_analytics(cls, result: LinkAnalytics) -> "LinkAnalyticsBody":
        base = RollupBody.from_rollup(result.rollup)
        return cls(
            **base.model_dump(),
            link_id=result.link_id,
            start_date=result.window.start.isoformat(),
            end_date=result.window.end.isoformat(),
            lifetime=LifetimeCounters(
                total_clicks=result.lifetime_clicks,
                unique_visitors=result.lifetime_unique_visitors,
            ),
        )


class GlobalAnalyticsBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timeframe: str
    analytics: RollupBody
    user_growth: list[DayCountItem] = Field(alias="userGrowth")

    @classmethod
    def from_global(cls, result: GlobalAnalytics) -> "GlobalAnalyticsBody":
        return cls(
            timeframe=result.timeframe,
            analytics=RollupBody.from_rollup(result.analytics),
            user_growth=[DayCountItem.from_day(d) for d in result.user_growth],
        )


class UserLifetimeBody(LifetimeCounters):
    user_id: str = Field(alias="userId")
    links: int

    @classmethod
    def from_user_lifetime(cls, result: UserLifetime) -> "UserLifetimeBody":
        return cls(
            user_id=result.user_id,
            links=result.link_count,
            total_clicks=result.total_clicks,
            unique_visitors=result.unique_visitors,
        )


class ExportRow(BaseModel):
    date: str
    device: str
    browser: str
    country: str
    city: str
    referrer: str


class TrackResponse(BaseModel):
    status: str = "success"


class DashboardResponse(BaseModel):
    status: str = "success"
    data: RollupBody


class LinkAnalyticsResponse(BaseModel):
    status: str = "success"
    data: LinkAnalyticsBody


class GlobalAnalyticsResponse(BaseModel):
    status: str = "success"
    data: GlobalAnalyticsBody


class UserLifetimeResponse(BaseModel):
    status: str = "success"
    data: UserLifetimeBody


class ExportJsonResponse(BaseModel):
    status: str = "success"
    data: list[ExportRow]
