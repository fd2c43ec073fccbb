"""Event enrichment: raw request metadata → ClickEvent facets.

The user-agent parse is pure and synchronous. The location lookup is the only
step that waits on an outside service; it gets exactly one attempt, bounded
by ``timeout_seconds``, and every failure degrades to Unknown/Unknown.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from infrastructure.geo.protocol import GeoLocator
from infrastructure.user_agent import parse_user_agent
from schemas.models.click import UNKNOWN_PLACE, DeviceFacets, Location
from shared.ip_utils import is_public_address
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class EventEnricher:
    def __init__(self, geo_locator: GeoLocator, timeout_seconds: float = 1.5) -> None:
        self._geo = geo_locator
        self._timeout = timeout_seconds

    async def enrich(
        self, user_agent: Optional[str], source_address: Optional[str]
    ) -> tuple[DeviceFacets, Location]:
        """Return ``(device_facets, location)``; never raises."""
        device = parse_user_agent(user_agent)
        location = await self.locate(source_address)
        return device, location

    async def locate(self, source_address: Optional[str]) -> Location:
        if not is_public_address(source_address):
            return Location.unknown()

        try:
            location = await asyncio.wait_for(
                self._geo.locate(source_address.strip()), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            log.warning(
                "geo_lookup_degraded",
                reason="timeout",
                timeout_seconds=self._timeout,
                ip=hash_ip(source_address),
            )
            return Location.unknown()
        except Exception as e:  # any provider failure degrades, never propagates
            log.warning(
                "geo_lookup_degraded",
                reason="error",
                error=str(e),
                error_type=type(e).__name__,
                ip=hash_ip(source_address),
            )
            return Location.unknown()

        if location is None:
            return Location.unknown()
        return Location(
            country=location.country or UNKNOWN_PLACE,
            city=location.city or UNKNOWN_PLACE,
        )
