"""
Raw click export.

Every click inside the window, across all links, becomes one flat row:
``date, device, browser, country, city, referrer``. Rows are ordered by
timestamp, then link id, then arrival order within the link.

``csv`` produces RFC 4180 text with every field quoted and embedded quotes
doubled; any other format token (or none) produces the rows as JSON records.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Iterable, Optional

from repositories.protocol import EventStore
from schemas.models.analytics import AnalyticsRecord
from schemas.models.rollup import TimeWindow
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

EXPORT_COLUMNS = ("date", "device", "browser", "country", "city", "referrer")


@dataclass(frozen=True)
class ExportPayload:
    format: str  # "csv" or "json"
    rows: list[dict]
    content: Optional[str] = None  # CSV text, only for format == "csv"
    filename: Optional[str] = None

    @property
    def media_type(self) -> str:
        return "text/csv" if self.format == "csv" else "application/json"


def normalize_format(fmt: Optional[str]) -> str:
    return "csv" if (fmt or "").strip().lower() == "csv" else "json"


def flatten(records: Iterable[AnalyticsRecord], window: TimeWindow) -> list[dict]:
    keyed = []
    for record in records:
        for position, event in enumerate(record.events):
            if not window.contains(event.timestamp):
                continue
            row = {
                "date": event.timestamp.isoformat(),
                "device": event.device_label,
                "browser": event.browser,
                "country": event.location.country,
                "city": event.location.city,
                "referrer": event.referrer or "",
            }
            keyed.append(((event.timestamp, record.subject_id, position), row))
    keyed.sort(key=lambda item: item[0])
    return [row for _, row in keyed]


def to_csv(rows: list[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for row in rows:
        writer.writerow([row[column] for column in EXPORT_COLUMNS])
    return buffer.getvalue()


def export_filename(window: TimeWindow) -> str:
    return (
        f"analytics-{window.start.strftime('%Y-%m-%d')}"
        f"-{window.end.strftime('%Y-%m-%d')}.csv"
    )


class Exporter:
    def __init__(self, event_store: EventStore) -> None:
        self._store = event_store

    async def export(self, window: TimeWindow, fmt: Optional[str] = None) -> ExportPayload:
        records = await self._store.records_in_window(None, window)
        rows = flatten(records, window)
        export_format = normalize_format(fmt)

        if should_sample("analytics_export"):
            log.info(
                "export_generated",
                format=export_format,
                rows=len(rows),
                window_start=window.start.isoformat(),
                window_end=window.end.isoformat(),
            )

        if export_format == "csv":
            return ExportPayload(
                format="csv",
                rows=rows,
                content=to_csv(rows),
                filename=export_filename(window),
            )
        return ExportPayload(format="json", rows=rows)
