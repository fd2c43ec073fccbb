"""ipapi.co implementation of GeoLocator.

One outbound GET per lookup, no retries. The request timeout is enforced by
the injected HttpClient; the enricher adds its own overall deadline on top.
"""

from infrastructure.http_client import HttpClient
from schemas.models.click import UNKNOWN_PLACE, Location
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class IpApiGeoLocator:
    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    async def locate(self, ip_address: str) -> Location:
        response = await self._http.get(f"/{ip_address}/json/")
        if response.status_code != 200:
            log.warning(
                "ipapi_lookup_failed",
                status_code=response.status_code,
                ip=hash_ip(ip_address),
            )
            return Location.unknown()

        data = response.json()
        if not isinstance(data, dict) or data.get("error"):
            log.warning(
                "ipapi_lookup_rejected",
                reason=data.get("reason") if isinstance(data, dict) else None,
                ip=hash_ip(ip_address),
            )
            return Location.unknown()

        return Location(
            country=data.get("country_name") or UNKNOWN_PLACE,
            city=data.get("city") or UNKNOWN_PLACE,
        )

    async def aclose(self) -> None:
        await self._http.aclose()
