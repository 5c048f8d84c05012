"""
Region resolution and upstream URL rewriting.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import unquote

from shared.errors import ConfigurationError
from shared.logging import get_logger

logger = get_logger("proxy.routing")


class Region(str, Enum):
    """Platform routing values served by the upstream API."""

    BR1 = "br1"
    EUN1 = "eun1"
    EUW1 = "euw1"
    JP1 = "jp1"
    KR = "kr"
    LA1 = "la1"
    LA2 = "la2"
    NA1 = "na1"
    OC1 = "oc1"
    PH2 = "ph2"
    RU = "ru"
    SG2 = "sg2"
    TH2 = "th2"
    TR1 = "tr1"
    TW2 = "tw2"
    VN2 = "vn2"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Region"]:
        """Case-insensitive lookup; returns None for unknown values."""
        if not value:
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class UpstreamRequest:
    """Where an inbound request is forwarded to."""

    region: Region
    url: str
    path: str
    client_ip: str


def get_default_region(default_region: str) -> Region:
    """Validate the configured default region.

    Raises:
        ConfigurationError: if ``default_region`` is not a known region.
    """
    region = Region.parse(default_region)
    if region is None:
        logger.error("Invalid default region", default_region=default_region)
        raise ConfigurationError(
            f"Invalid default region: {default_region}",
            {"default_region": default_region}
        )
    return region


def extract_region(path: str, default_region: str) -> Region:
    """Region named by the first path segment, else the default region."""
    segments = path.split("/")
    candidate = unquote(segments[1]) if len(segments) > 1 else ""

    region = Region.parse(candidate)
    if region is not None:
        return region

    logger.debug("Region not found in path, using default", segment=candidate)
    return get_default_region(default_region)


def strip_region(path: str, region: Region) -> str:
    """Drop the leading region segment from ``path`` when present."""
    segments = path.split("/")
    if len(segments) > 1 and unquote(segments[1]).lower() == region.value:
        stripped = "/".join(segments[2:])
        return f"/{stripped}"
    return path


def build_upstream_url(
    path: str,
    query: str,
    default_region: str,
    base_domain: str,
    scheme: str = "https",
) -> Tuple[Region, str, str]:
    """Rewrite an inbound path and query to the regional upstream URL.

    ``path`` is the percent-encoded request path. Everything after the region
    segment is forwarded byte for byte.

    Returns:
        (region, stripped path, absolute upstream URL)
    """
    region = extract_region(path, default_region)
    upstream_path = strip_region(path, region)

    url = f"{scheme}://{region.value}.{base_domain}{upstream_path}"
    if query:
        url = f"{url}?{query}"

    return region, upstream_path, url
