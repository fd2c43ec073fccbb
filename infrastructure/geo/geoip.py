"""Async GeoIP wrapper around the synchronous geoip2 library.

geoip2 reads from a local .mmdb file and is CPU-bound/IO-bound sync.
Calls are wrapped in asyncio.to_thread() to avoid blocking the event loop.

Fallback behaviour:
- Returns Unknown/Unknown when the database file is missing or lookup fails.
- Lazy-loads the reader on first use (double-checked locking with asyncio.Lock).
"""

import asyncio
from typing import Optional

import geoip2.database
import geoip2.errors
import maxminddb

from schemas.models.click import UNKNOWN_PLACE, Location
from shared.logging import get_logger

log = get_logger(__name__)


class GeoIPService:
    def __init__(self, city_db_path: str) -> None:
        self._city_db_path = city_db_path
        self._city_reader: Optional[geoip2.database.Reader] = None
        self._city_loaded = False
        self._lock = asyncio.Lock()

    async def _get_city_reader(self) -> Optional[geoip2.database.Reader]:
        if not self._city_loaded:
            async with self._lock:
                if not self._city_loaded:
                    try:
                        self._city_reader = await asyncio.to_thread(
                            geoip2.database.Reader, self._city_db_path
                        )
                    except (OSError, maxminddb.InvalidDatabaseError) as e:
                        log.warning(
                            "geoip_city_db_unavailable",
                            path=self._city_db_path,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        self._city_reader = None
                    self._city_loaded = True
        return self._city_reader

    async def locate(self, ip_address: str) -> Location:
        reader = await self._get_city_reader()
        if reader is None:
            return Location.unknown()
        try:
            result = await asyncio.to_thread(reader.city, ip_address)
        except (
            geoip2.errors.AddressNotFoundError,
            ValueError,
            maxminddb.InvalidDatabaseError,
        ):
            return Location.unknown()
        return Location(
            country=result.country.name or UNKNOWN_PLACE,
            city=result.city.name or UNKNOWN_PLACE,
        )

    async def aclose(self) -> None:
        if self._city_reader is not None:
            await asyncio.to_thread(self._city_reader.close)
            self._city_reader = None
