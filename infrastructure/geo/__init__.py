from .factory import build_geo_locator
from .protocol import GeoLocator, NullGeoLocator

__all__ = ["GeoLocator", "NullGeoLocator", "build_geo_locator"]
