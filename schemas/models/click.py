"""
Click event model.

One ClickEvent is embedded per click in the ``clicks`` array of an
``analytics`` document:

  {timestamp, device, os, browser, location: {country, city}, referrer, ip}

Events are immutable once recorded. ``source_address`` is stored under the
``ip`` key and is kept for audit/export only.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import UtcDatetime

UNKNOWN_LABEL = "unknown"
UNKNOWN_PLACE = "Unknown"


class DeviceClass(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"
    UNKNOWN = "unknown"


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    country: str = UNKNOWN_PLACE
    city: str = UNKNOWN_PLACE

    @classmethod
    def unknown(cls) -> "Location":
        return cls()


class DeviceFacets(BaseModel):
    """Output of the user-agent parse."""

    model_config = ConfigDict(frozen=True, use_enum_values=True, validate_default=True)

    device: DeviceClass = DeviceClass.DESKTOP
    os: str = UNKNOWN_LABEL
    browser: str = UNKNOWN_LABEL


class ClickEvent(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )

    timestamp: UtcDatetime
    device: DeviceClass = DeviceClass.UNKNOWN
    os: str = UNKNOWN_LABEL
    browser: str = UNKNOWN_LABEL
    location: Location = Field(default_factory=Location)
    referrer: Optional[str] = None
    source_address: Optional[str] = Field(default=None, alias="ip")

    @property
    def device_label(self) -> str:
        return self.device.value if isinstance(self.device, DeviceClass) else self.device

    def to_mongo(self) -> dict:
        """Return the embedded sub-document stored in ``clicks``."""
        return self.model_dump(by_alias=True)
