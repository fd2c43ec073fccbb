"""
Click tracking endpoint.

POST /track/{subject_id}: records one click on a link.

No body is read: the user-agent and referrer come from headers and the
client address from proxy headers (then the socket). 404 for unknown links,
503 when the event store is unreachable (the click is lost).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from dependencies import get_tracking_service
from schemas.dto.responses.analytics import TrackResponse
from services.tracking import TrackingService
from shared.ip_utils import get_client_ip

router = APIRouter(tags=["tracking"])


@router.post("/track/{subject_id}", response_model=TrackResponse)
async def track_click(
    subject_id: str,
    request: Request,
    tracking: TrackingService = Depends(get_tracking_service),
) -> TrackResponse:
    headers = request.headers
    await tracking.track(
        subject_id,
        user_agent=headers.get("User-Agent"),
        source_address=get_client_ip(request) or None,
        referrer=headers.get("Referer") or headers.get("Referrer"),
    )
    return TrackResponse()
