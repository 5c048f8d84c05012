"""
Proxy caching package.

Holds the shared response cache used to serve repeated upstream calls
without spending upstream quota. Entries are keyed by the rewritten
upstream URL and expire after a fixed max-age.
"""

from .response_cache import FROM_CACHE_HEADER, CachedResponse, ResponseCache

__all__ = ["FROM_CACHE_HEADER", "CachedResponse", "ResponseCache"]
