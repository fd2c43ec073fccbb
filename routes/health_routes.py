"""
Health check endpoint.

GET /health: checks event store connectivity.
Rules:
- Store failure → "unhealthy" (503); clicks cannot be recorded without it.
- Geolocation is never checked; failed lookups degrade to Unknown and do
  not affect health.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dependencies import get_event_store
from errors import StoreUnavailable
from repositories.protocol import EventStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(store: EventStore = Depends(get_event_store)) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        await store.ping()
        checks["event_store"] = "ok"
    except StoreUnavailable:
        checks["event_store"] = "error"
        overall = "unhealthy"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
