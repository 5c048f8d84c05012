"""
Routing package for the proxy: the region enumeration and the rewrite of
inbound paths to regional upstream URLs.
"""

from .regions import (
    Region,
    UpstreamRequest,
    build_upstream_url,
    extract_region,
    get_default_region,
    strip_region,
)

__all__ = [
    "Region",
    "UpstreamRequest",
    "build_upstream_url",
    "extract_region",
    "get_default_region",
    "strip_region",
]
