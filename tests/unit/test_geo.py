"""Unit tests for the geolocation providers."""

from unittest.mock import AsyncMock, MagicMock

import geoip2.errors
import pytest

from config import AnalyticsSettings
from infrastructure.geo import NullGeoLocator, build_geo_locator
from infrastructure.geo.geoip import GeoIPService
from infrastructure.geo.ipapi import IpApiGeoLocator
from infrastructure.http_client import HttpClient
from schemas.models.click import Location


# ── HttpClient ────────────────────────────────────────────────────────────────


class TestHttpClient:
    async def test_get_delegates_to_httpx(self, mocker):
        client = HttpClient()
        fake_resp = MagicMock(status_code=200)
        mocker.patch.object(client._client, "get", return_value=fake_resp)
        resp = await client.get("http://example.com")
        assert resp.status_code == 200
        await client.aclose()

    async def test_get_propagates_exception(self, mocker):
        client = HttpClient()
        mocker.patch.object(client._client, "get", side_effect=Exception("timeout"))
        with pytest.raises(Exception, match="timeout"):
            await client.get("http://example.com")
        await client.aclose()

    async def test_context_manager(self):
        async with HttpClient() as client:
            assert client is not None


# ── GeoIPService ──────────────────────────────────────────────────────────────


def _city_result(country="Germany", city="Berlin"):
    result = MagicMock()
    result.country.name = country
    result.city.name = city
    return result


class TestGeoIPService:
    async def test_missing_db_returns_unknown(self):
        svc = GeoIPService("/nonexistent/GeoLite2-City.mmdb")
        assert await svc.locate("8.8.8.8") == Location.unknown()

    async def test_lookup_success(self):
        svc = GeoIPService("/unused")
        reader = MagicMock()
        reader.city.return_value = _city_result()
        svc._city_reader = reader
        svc._city_loaded = True

        loc = await svc.locate("8.8.8.8")
        assert loc == Location(country="Germany", city="Berlin")

    async def test_missing_names_become_unknown(self):
        svc = GeoIPService("/unused")
        reader = MagicMock()
        reader.city.return_value = _city_result(country="France", city=None)
        svc._city_reader = reader
        svc._city_loaded = True

        loc = await svc.locate("8.8.8.8")
        assert loc.country == "France"
        assert loc.city == "Unknown"

    async def test_address_not_found_returns_unknown(self):
        svc = GeoIPService("/unused")
        reader = MagicMock()
        reader.city.side_effect = geoip2.errors.AddressNotFoundError("not found")
        svc._city_reader = reader
        svc._city_loaded = True

        assert await svc.locate("8.8.8.8") == Location.unknown()

    async def test_aclose_closes_reader(self):
        svc = GeoIPService("/unused")
        reader = MagicMock()
        svc._city_reader = reader
        svc._city_loaded = True

        await svc.aclose()
        reader.close.assert_called_once()


# ── IpApiGeoLocator ───────────────────────────────────────────────────────────


def _http_returning(status_code=200, payload=None):
    http = AsyncMock()
    response = MagicMock(status_code=status_code)
    response.json.return_value = payload
    http.get.return_value = response
    return http


class TestIpApiGeoLocator:
    async def test_success(self):
        http = _http_returning(payload={"country_name": "Japan", "city": "Tokyo"})
        loc = await IpApiGeoLocator(http).locate("8.8.8.8")
        assert loc == Location(country="Japan", city="Tokyo")
        http.get.assert_called_once_with("/8.8.8.8/json/")

    async def test_non_200_returns_unknown(self):
        http = _http_returning(status_code=429)
        assert await IpApiGeoLocator(http).locate("8.8.8.8") == Location.unknown()

    async def test_error_payload_returns_unknown(self):
        http = _http_returning(payload={"error": True, "reason": "Reserved IP Address"})
        assert await IpApiGeoLocator(http).locate("8.8.8.8") == Location.unknown()

    async def test_partial_payload(self):
        http = _http_returning(payload={"country_name": "Brazil"})
        loc = await IpApiGeoLocator(http).locate("8.8.8.8")
        assert loc == Location(country="Brazil", city="Unknown")

    async def test_aclose_closes_http(self):
        http = _http_returning()
        await IpApiGeoLocator(http).aclose()
        http.aclose.assert_awaited_once()


# ── Factory ───────────────────────────────────────────────────────────────────


class TestBuildGeoLocator:
    def test_geoip(self):
        assert isinstance(
            build_geo_locator(AnalyticsSettings(geo_provider="geoip")), GeoIPService
        )

    async def test_ipapi(self):
        locator = build_geo_locator(AnalyticsSettings(geo_provider="ipapi"))
        assert isinstance(locator, IpApiGeoLocator)
        await locator.aclose()

    async def test_none(self):
        locator = build_geo_locator(AnalyticsSettings(geo_provider="none"))
        assert isinstance(locator, NullGeoLocator)
        assert await locator.locate("8.8.8.8") == Location.unknown()
