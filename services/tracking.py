"""
Click ingestion pipeline.

    link check → enrich (UA parse + bounded geo lookup) → visitor policy → record

Enrichment always finishes (or degrades) before the store is touched, so a
slow geolocation provider delays only its own click. Store failures are
raised as ``StoreUnavailable``; the click is lost and nothing is retried.
A visitor key claimed for a lost click is released again, so the same
visitor still counts as unique when they click again that day.

Unique visitors: a click is unique when its (link, source address, UTC day)
key has not been seen before. Clicks without a source address never count.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from errors import NotFoundError, StoreUnavailable
from repositories.protocol import EventStore, LinkRegistry
from schemas.models.analytics import RecordAck
from schemas.models.click import ClickEvent
from services.enricher import EventEnricher
from shared.crypto import visitor_key
from shared.logging import get_logger, hash_ip, should_sample

log = get_logger(__name__)


class TrackingService:
    def __init__(
        self,
        enricher: EventEnricher,
        event_store: EventStore,
        link_registry: LinkRegistry,
    ) -> None:
        self._enricher = enricher
        self._store = event_store
        self._links = link_registry

    async def track(
        self,
        subject_id: str,
        *,
        user_agent: Optional[str],
        source_address: Optional[str],
        referrer: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RecordAck:
        if not await self._links.exists(subject_id):
            raise NotFoundError("link not found", field="subject_id")

        timestamp = now if now is not None else datetime.now(timezone.utc)
        device, location = await self._enricher.enrich(user_agent, source_address)

        event = ClickEvent(
            timestamp=timestamp,
            device=device.device,
            os=device.os,
            browser=device.browser,
            location=location,
            referrer=referrer or None,
            source_address=source_address or None,
        )

        first_visit = False
        key = visitor_key(subject_id, source_address, timestamp) if source_address else None
        if key is not None:
            first_visit = await self._store.mark_visitor(key)

        try:
            ack = await self._store.record(subject_id, event, 1 if first_visit else 0)
        except StoreUnavailable:
            if first_visit:
                await self._release_visitor(subject_id, key)
            raise

        if should_sample("click_tracked"):
            log.info(
                "click_recorded",
                subject_id=subject_id,
                device=event.device_label,
                country=location.country,
                unique=ack.unique,
                created=ack.created,
                ip=hash_ip(source_address),
            )
        return ack

    async def _release_visitor(self, subject_id: str, key: str) -> None:
        """Drop a visitor key whose click was never stored."""
        try:
            await self._store.forget_visitor(key)
        except StoreUnavailable as e:
            log.warning(
                "visitor_key_release_failed",
                subject_id=subject_id,
                error=str(e),
                error_type=type(e).__name__,
            )
