"""User-agent → device facets.

Pure, synchronous parse. OS and browser come from ``ua-parser`` families;
the device class comes from well-known signature patterns, since ua-parser
does not classify form factors. Crawlers (``crawlerdetect``) are recorded
with ``device=unknown``.

Nothing here raises for malformed input: unrecognised strings degrade to
``desktop / unknown / unknown``.
"""

from __future__ import annotations

import re
from typing import Optional

from crawlerdetect import CrawlerDetect
from ua_parser import parse

from schemas.models.click import UNKNOWN_LABEL, DeviceClass, DeviceFacets
from shared.logging import get_logger

log = get_logger(__name__)

_crawler_detect = CrawlerDetect()

# Checked before the mobile patterns: iPad UAs also contain "Mobile/".
# "Tablet PC" is a Windows desktop token.
_TABLET_RE = re.compile(
    r"iPad|\bTablet(?! PC)|PlayBook|Kindle|Silk/|Nexus (?:7|9|10)\b|SM-T\d+"
    r"|Android(?!.*Mobile)",
    re.IGNORECASE,
)
_MOBILE_RE = re.compile(
    r"Mobi|iPhone|iPod|Android.*Mobile|Windows Phone|IEMobile|BlackBerry|BB10|Opera Mini|webOS",
    re.IGNORECASE,
)

_PARSER_UNKNOWN_FAMILIES = {"", "other"}


def _family(value: Optional[object]) -> str:
    family = getattr(value, "family", None) or ""
    if family.strip().lower() in _PARSER_UNKNOWN_FAMILIES:
        return UNKNOWN_LABEL
    return family.strip()


def classify_device(user_agent: str) -> DeviceClass:
    """Return the device class for *user_agent* from signature patterns."""
    if _TABLET_RE.search(user_agent):
        return DeviceClass.TABLET
    if _MOBILE_RE.search(user_agent):
        return DeviceClass.MOBILE
    return DeviceClass.DESKTOP


def is_bot_request(user_agent: str) -> bool:
    """Return True if *user_agent* matches a known crawler signature."""
    return bool(user_agent) and bool(_crawler_detect.isCrawler(user_agent))


def parse_user_agent(user_agent: Optional[str]) -> DeviceFacets:
    """Parse *user_agent* into device/os/browser facets.

    Args:
        user_agent: Raw ``User-Agent`` header value (may be None or empty).

    Returns:
        Fully populated ``DeviceFacets``; never raises.
    """
    if not user_agent or not user_agent.strip():
        return DeviceFacets()

    try:
        result = parse(user_agent)
    except Exception as e:  # the parser must never block ingestion
        log.warning("user_agent_parse_failed", error=str(e), error_type=type(e).__name__)
        return DeviceFacets()

    os_name = _family(result.os) if result else UNKNOWN_LABEL
    browser = _family(result.user_agent) if result else UNKNOWN_LABEL

    if is_bot_request(user_agent):
        device = DeviceClass.UNKNOWN
    else:
        device = classify_device(user_agent)

    return DeviceFacets(device=device, os=os_name, browser=browser)
