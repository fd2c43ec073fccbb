"""Unit tests for the click ingestion pipeline."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from errors import NotFoundError, StoreUnavailable
from repositories.memory_event_store import MemoryEventStore
from schemas.models.click import Location
from schemas.models.rollup import TimeWindow
from services.enricher import EventEnricher
from services.tracking import TrackingService

from factories import utc

IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
NOW = utc(2024, 3, 1, 12)


def _locator(location=None):
    geo = AsyncMock()
    geo.locate.return_value = location or Location(country="United States", city="Austin")
    return geo


@pytest.fixture
def tracking(event_store, link_registry):
    return TrackingService(EventEnricher(_locator()), event_store, link_registry)


class TestTrack:
    async def test_records_enriched_event(self, tracking, event_store):
        ack = await tracking.track(
            "L1",
            user_agent=IPHONE,
            source_address="8.8.8.8",
            referrer="https://instagram.com",
            now=NOW,
        )

        assert ack.created is True
        record = await event_store.get("L1")
        event = record.events[0]
        assert event.timestamp == NOW
        assert event.device == "mobile"
        assert event.location.city == "Austin"
        assert event.referrer == "https://instagram.com"
        assert event.source_address == "8.8.8.8"

    async def test_unknown_link_is_404(self, tracking, event_store):
        with pytest.raises(NotFoundError):
            await tracking.track("missing", user_agent=IPHONE, source_address="8.8.8.8")
        all_time = TimeWindow(utc(2000, 1, 1), utc(2100, 1, 1))
        assert await event_store.records_in_window(None, all_time) == []

    async def test_same_visitor_same_day_counted_once(self, tracking, event_store):
        await tracking.track("L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW)
        ack = await tracking.track(
            "L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW + timedelta(hours=2)
        )
        assert ack.unique is False

        record = await event_store.get("L1")
        assert record.total_clicks == 2
        assert record.unique_visitors == 1

    async def test_same_visitor_next_day_counted_again(self, tracking, event_store):
        await tracking.track("L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW)
        await tracking.track(
            "L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW + timedelta(days=1)
        )
        assert (await event_store.get("L1")).unique_visitors == 2

    async def test_visitor_scoped_per_link(self, tracking, event_store):
        await tracking.track("L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW)
        await tracking.track("L2", user_agent=IPHONE, source_address="8.8.8.8", now=NOW)
        assert (await event_store.get("L2")).unique_visitors == 1

    async def test_missing_address_never_unique(self, tracking, event_store):
        ack = await tracking.track("L1", user_agent=None, source_address=None, now=NOW)
        assert ack.unique is False
        record = await event_store.get("L1")
        assert record.total_clicks == 1
        assert record.unique_visitors == 0
        assert record.events[0].location == Location.unknown()

    async def test_geo_timeout_still_records(self, event_store, link_registry):
        class Slow:
            async def locate(self, ip_address):
                await asyncio.sleep(10)

            async def aclose(self):
                return None

        service = TrackingService(
            EventEnricher(Slow(), timeout_seconds=0.05), event_store, link_registry
        )
        await service.track("L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW)

        record = await event_store.get("L1")
        assert record.total_clicks == 1
        assert record.events[0].location == Location.unknown()

    async def test_store_failure_propagates(self, link_registry):
        store = AsyncMock()
        store.mark_visitor.return_value = True
        store.record.side_effect = StoreUnavailable("down")
        service = TrackingService(EventEnricher(_locator()), store, link_registry)

        with pytest.raises(StoreUnavailable):
            await service.track("L1", user_agent=IPHONE, source_address="8.8.8.8")

    async def test_failed_record_releases_visitor_key(self, link_registry):
        class FlakyStore(MemoryEventStore):
            def __init__(self):
                super().__init__()
                self.failures = 1

            async def record(self, subject_id, event, unique_increment=0):
                if self.failures:
                    self.failures -= 1
                    raise StoreUnavailable("down")
                return await super().record(subject_id, event, unique_increment)

        store = FlakyStore()
        service = TrackingService(EventEnricher(_locator()), store, link_registry)

        with pytest.raises(StoreUnavailable):
            await service.track("L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW)
        ack = await service.track(
            "L1", user_agent=IPHONE, source_address="8.8.8.8", now=NOW + timedelta(minutes=1)
        )

        assert ack.unique is True
        record = await store.get("L1")
        assert record.total_clicks == 1
        assert record.unique_visitors == 1

    async def test_repeat_visitor_key_kept_on_failure(self, link_registry):
        store = AsyncMock()
        store.mark_visitor.return_value = False
        store.record.side_effect = StoreUnavailable("down")
        service = TrackingService(EventEnricher(_locator()), store, link_registry)

        with pytest.raises(StoreUnavailable):
            await service.track("L1", user_agent=IPHONE, source_address="8.8.8.8")
        store.forget_visitor.assert_not_awaited()

    async def test_release_failure_still_raises_original(self, link_registry):
        store = AsyncMock()
        store.mark_visitor.return_value = True
        store.record.side_effect = StoreUnavailable("down")
        store.forget_visitor.side_effect = StoreUnavailable("still down")
        service = TrackingService(EventEnricher(_locator()), store, link_registry)

        with pytest.raises(StoreUnavailable, match="^down$"):
            await service.track("L1", user_agent=IPHONE, source_address="8.8.8.8")
        store.forget_visitor.assert_awaited_once()
