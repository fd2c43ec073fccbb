"""
Analytics read endpoints.

GET /dashboard                          — caller's links, last 30 days
GET /analytics/links/{link_id}          — one owned link, optional startDate/endDate
GET /analytics/global                   — admin; timeframe = 7d | 30d | 90d
GET /analytics/users/{user_id}/lifetime — admin; lifetime totals over a user's links
GET /analytics/export                   — admin; startDate & endDate required,
                                          format = csv | json (default json)
"""

from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from dependencies import (
    get_current_user,
    get_dashboard_query,
    get_exporter,
    get_global_query,
    get_link_query,
    require_admin,
)
from schemas.dto.requests.analytics import (
    ExportQuery,
    GlobalAnalyticsQuery,
    LinkAnalyticsQuery,
)
from schemas.dto.responses.analytics import (
    DashboardResponse,
    ExportJsonResponse,
    ExportRow,
    GlobalAnalyticsBody,
    GlobalAnalyticsResponse,
    LinkAnalyticsBody,
    LinkAnalyticsResponse,
    RollupBody,
    UserLifetimeBody,
    UserLifetimeResponse,
)
from schemas.models.identity import CallerIdentity
from services.exporter import Exporter
from services.queries import DashboardQuery, GlobalQuery, LinkQuery

router = APIRouter(tags=["analytics"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user: CallerIdentity = Depends(get_current_user),
    query: DashboardQuery = Depends(get_dashboard_query),
) -> DashboardResponse:
    rollup = await query.dashboard(user.user_id)
    return DashboardResponse(data=RollupBody.from_rollup(rollup))


@router.get("/analytics/links/{link_id}", response_model=LinkAnalyticsResponse)
async def link_analytics(
    link_id: str,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    user: CallerIdentity = Depends(get_current_user),
    query: LinkQuery = Depends(get_link_query),
) -> LinkAnalyticsResponse:
    window = LinkAnalyticsQuery(
        start_date=start_date, end_date=end_date
    ).optional_window()
    result = await query.link_analytics(user.user_id, link_id, window)
    return LinkAnalyticsResponse(data=LinkAnalyticsBody.from_link_analytics(result))


@router.get("/analytics/global", response_model=GlobalAnalyticsResponse)
async def global_analytics(
    timeframe: Optional[str] = Query(default=None),
    _admin: CallerIdentity = Depends(require_admin),
    query: GlobalQuery = Depends(get_global_query),
) -> GlobalAnalyticsResponse:
    params = GlobalAnalyticsQuery(timeframe=timeframe)
    result = await query.global_analytics(params.timeframe)
    return GlobalAnalyticsResponse(data=GlobalAnalyticsBody.from_global(result))


@router.get("/analytics/users/{user_id}/lifetime", response_model=UserLifetimeResponse)
async def user_lifetime(
    user_id: str,
    _admin: CallerIdentity = Depends(require_admin),
    query: LinkQuery = Depends(get_link_query),
) -> UserLifetimeResponse:
    result = await query.user_lifetime(user_id)
    return UserLifetimeResponse(data=UserLifetimeBody.from_user_lifetime(result))


@router.get("/analytics/export", response_model=None)
async def export_analytics(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    export_format: Optional[str] = Query(default=None, alias="format"),
    _admin: CallerIdentity = Depends(require_admin),
    exporter: Exporter = Depends(get_exporter),
) -> Union[Response, ExportJsonResponse]:
    params = ExportQuery(start_date=start_date, end_date=end_date, format=export_format)
    payload = await exporter.export(params.window(), params.format)

    if payload.format == "csv":
        return Response(
            content=payload.content,
            media_type=payload.media_type,
            headers={"Content-Disposition": f"attachment; filename={payload.filename}"},
        )
    return ExportJsonResponse(data=[ExportRow(**row) for row in payload.rows])
