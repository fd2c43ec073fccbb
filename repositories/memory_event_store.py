"""In-process EventStore for tests and single-worker development.

All methods are coroutines that never suspend between reading and writing
shared state, so on one event loop every ``record`` call is applied whole.
The data does not survive a restart and is not shared between processes;
use the Mongo backend for anything with more than one worker.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Collection, Optional

from errors import RecordNotFound
from schemas.models.analytics import AnalyticsRecord, RecordAck
from schemas.models.click import ClickEvent
from schemas.models.rollup import TimeWindow


class MemoryEventStore:
    def __init__(self) -> None:
        self._records: dict[str, AnalyticsRecord] = {}
        self._visitor_keys: set[str] = set()

    async def record(
        self, subject_id: str, event: ClickEvent, unique_increment: int = 0
    ) -> RecordAck:
        now = datetime.now(timezone.utc)
        record = self._records.get(subject_id)
        created = record is None
        if record is None:
            record = AnalyticsRecord(subject_id=subject_id, created_at=now)
            self._records[subject_id] = record
        record.events.append(event)
        record.total_clicks += 1
        record.unique_visitors += unique_increment
        record.updated_at = now
        return RecordAck(
            subject_id=subject_id, created=created, unique=unique_increment > 0
        )

    async def get(self, subject_id: str) -> AnalyticsRecord:
        record = self._records.get(subject_id)
        if record is None:
            raise RecordNotFound(f"no analytics recorded for {subject_id}")
        return record.model_copy(update={"events": list(record.events)})

    async def records_in_window(
        self, subject_ids: Optional[Collection[str]], window: TimeWindow
    ) -> list[AnalyticsRecord]:
        if subject_ids is None:
            selected = sorted(self._records)
        else:
            selected = sorted(s for s in set(subject_ids) if s in self._records)

        records = []
        for subject_id in selected:
            record = self._records[subject_id]
            events = [e for e in record.events if window.contains(e.timestamp)]
            if events:
                records.append(record.model_copy(update={"events": events}))
        return records

    async def mark_visitor(self, visitor_key: str) -> bool:
        if visitor_key in self._visitor_keys:
            return False
        self._visitor_keys.add(visitor_key)
        return True

    async def forget_visitor(self, visitor_key: str) -> None:
        self._visitor_keys.discard(visitor_key)

    async def ping(self) -> None:
        return None

    async def ensure_indexes(self) -> None:
        return None
