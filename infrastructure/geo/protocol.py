"""GeoLocator protocol. The enricher depends on this, not the concrete provider."""

from typing import Protocol

from schemas.models.click import Location


class GeoLocator(Protocol):
    async def locate(self, ip_address: str) -> Location: ...

    async def aclose(self) -> None: ...


class NullGeoLocator:
    """Provider used when geolocation is disabled; every address is Unknown."""

    async def locate(self, ip_address: str) -> Location:
        return Location.unknown()

    async def aclose(self) -> None:
        return None
