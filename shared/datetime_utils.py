"""
Date/time parsing utilities, framework-agnostic.
"""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone
from typing import Any, Optional

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date/time value into a timezone-aware UTC datetime.

    Accepts:
    - ``None`` → ``None``
    - ``int`` / ``float`` → treated as Unix epoch seconds
    - ``str`` ending in ``"Z"`` → converted to ``+00:00`` before parsing
    - Any ISO 8601 string (``datetime.fromisoformat``)

    Naive datetimes (no ``tzinfo``) are assumed to be UTC.

    Returns:
        A timezone-aware ``datetime`` in UTC, or ``None`` if *value* is ``None``
        or cannot be parsed.
    """
    if value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        dt = datetime.fromisoformat(raw)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OSError, OverflowError):
        return None


def parse_window_bound(value: Any, *, end: bool = False) -> Optional[datetime]:
    """Parse one bound of an inclusive time window.

    A bare ``YYYY-MM-DD`` end bound covers that whole UTC day, so
    ``startDate=2024-01-01&endDate=2024-01-31`` includes clicks on the 31st.

    Returns ``None`` for unparseable values and for end days past
    ``datetime.max``.
    """
    parsed = parse_datetime(value)
    if parsed is None or not end:
        return parsed
    if isinstance(value, str) and _DATE_ONLY_RE.match(value.strip()):
        day_start = datetime.combine(parsed.date(), time.min, tzinfo=timezone.utc)
        try:
            return day_start + timedelta(days=1) - timedelta(microseconds=1)
        except OverflowError:
            return None
    return parsed
