"""Select the GeoLocator implementation from configuration."""

from config import AnalyticsSettings
from infrastructure.geo.geoip import GeoIPService
from infrastructure.geo.ipapi import IpApiGeoLocator
from infrastructure.geo.protocol import GeoLocator, NullGeoLocator
from infrastructure.http_client import HttpClient


def build_geo_locator(settings: AnalyticsSettings) -> GeoLocator:
    if settings.geo_provider == "geoip":
        return GeoIPService(settings.geoip_city_db)
    if settings.geo_provider == "ipapi":
        http = HttpClient(
            timeout=settings.geo_timeout_seconds,
            base_url=settings.ipapi_base_url,
        )
        return IpApiGeoLocator(http)
    return NullGeoLocator()
