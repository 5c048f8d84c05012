"""
Request pipeline for the proxy service.

Every inbound request flows through the same steps: client IP extraction,
region resolution and URL rewrite, the client-tier quota, the server-tier
quota, the response cache, the upstream fetch and the cache write-back.
Quotas are checked before the cache so that cached responses still count
against both tiers.
"""

import time
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import quote

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.background import BackgroundTask

from shared.config import BaseConfig
from shared.errors import ClientInputError, ProxyException
from shared.logging import get_logger, set_client_ip
from shared.metrics import MetricsCollector

from .adapters.kv_store import KeyValueStore
from .adapters.upstream_client import UpstreamClient
from .caching.response_cache import FROM_CACHE_HEADER, CachedResponse, ResponseCache
from .ratelimit.counting import RateLimiter, RateLimiterConfig
from .ratelimit.endpoint_limits import EndpointRateLimitTable
from .routing.regions import UpstreamRequest, build_upstream_url

# Headers that describe the upstream connection or the encoded body httpx
# has already decoded; they are not valid on the re-sent response.
EXCLUDED_RESPONSE_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
})


def current_time_ms() -> int:
    return int(time.time() * 1000)


def raw_request_path(request: Request) -> str:
    """The request path as received, percent-encoding intact."""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return quote(request.url.path)
    return raw_path.split(b"?", 1)[0].decode("latin-1")


@dataclass(frozen=True)
class TierLimit:
    burst: int
    interval_seconds: int


@dataclass(frozen=True)
class TierLimits:
    client: TierLimit
    server: TierLimit


class RequestPipeline:
    """Orchestrates rate limiting, caching and forwarding for one request."""

    def __init__(
        self,
        config: BaseConfig,
        store: KeyValueStore,
        cache: ResponseCache,
        upstream: UpstreamClient,
        *,
        endpoint_limits: Optional[EndpointRateLimitTable] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], int] = current_time_ms,
    ):
        self.config = config
        self.store = store
        self.cache = cache
        self.upstream = upstream
        self.endpoint_limits = endpoint_limits
        self.metrics = metrics
        self.clock = clock
        self.logger = get_logger("proxy.pipeline")

    async def handle(self, request: Request) -> Response:
        """Process ``request`` and always resolve to a response."""
        try:
            return await self._process(request)
        except ProxyException as e:
            self.logger.error(
                "Request failed",
                code=e.code,
                error=e.message,
                details=e.details
            )
            self._count("errors_total", error_type=e.code, service="proxy")
            return PlainTextResponse(f"Error: {e.message}", status_code=e.status_code)
        except Exception as e:
            self.logger.error("Unhandled pipeline error", error=str(e), exc_info=True)
            self._count("errors_total", error_type=type(e).__name__, service="proxy")
            return PlainTextResponse(f"Error: {e}", status_code=500)

    async def _process(self, request: Request) -> Response:
        upstream_request = self.resolve(request)
        limits = self.resolve_limits(request.method, upstream_request.path)
        request_timestamp = self.clock()

        client_key = f"in:{upstream_request.client_ip}:{upstream_request.url}"
        if not await self._check_quota(client_key, limits.client, request_timestamp):
            return self._rate_limited("client")

        server_key = self.server_key(upstream_request)
        if not await self._check_quota(server_key, limits.server, request_timestamp):
            return self._rate_limited("server")

        region = upstream_request.region.value
        # Entries are keyed by URL alone, so only GET reads or fills them.
        cacheable = request.method == "GET"
        if cacheable:
            cached = await self.cache.match(upstream_request.url)
            if cached is not None:
                self.logger.info("Returning cached response", url=upstream_request.url)
                self._count("cache_hits_total", region=region)
                return cached.to_response()
            self._count("cache_misses_total", region=region)

        body = await request.body()
        with self._time("upstream_request_duration_seconds", region=region):
            upstream_response = await self.upstream.fetch(request.method, upstream_request.url, body)
        self._count("upstream_requests_total", region=region, status_code=str(upstream_response.status_code))

        fresh = CachedResponse(
            status_code=upstream_response.status_code,
            headers=[
                (key, value)
                for key, value in upstream_response.headers.multi_items()
                if key.lower() not in EXCLUDED_RESPONSE_HEADERS
            ],
            body=upstream_response.content,
        )

        if fresh.status_code != 200:
            return fresh.to_response()

        fresh = fresh.with_header(
            "Cache-Control", f"public, max-age={self.config.cache_duration_seconds}"
        ).with_header(FROM_CACHE_HEADER, "false")
        if not cacheable:
            return fresh.to_response()

        cached_copy = fresh.with_header(FROM_CACHE_HEADER, "true")

        # Written after the response is sent, within the request lifecycle.
        return fresh.to_response(
            background=BackgroundTask(self.cache.put, upstream_request.url, cached_copy)
        )

    def resolve(self, request: Request) -> UpstreamRequest:
        """Extract the client IP and rewrite the URL to its upstream region.

        Raises:
            ClientInputError: if the connecting-IP header is missing.
            ConfigurationError: if the default region is needed and invalid.
        """
        client_ip = request.headers.get(self.config.client_ip_header)
        if not client_ip:
            raise ClientInputError(
                "Error getting IP address",
                {"header": self.config.client_ip_header}
            )
        set_client_ip(client_ip)

        region, path, url = build_upstream_url(
            raw_request_path(request),
            request.url.query,
            self.config.default_region,
            self.config.upstream_base_domain,
            self.config.upstream_scheme,
        )
        self.logger.debug("Resolved upstream URL", region=region.value, url=url)
        return UpstreamRequest(region=region, url=url, path=path, client_ip=client_ip)

    def resolve_limits(self, method: str, path: str) -> TierLimits:
        """Quota sizes for both tiers, preferring a matching endpoint entry."""
        config = self.config
        endpoint = self.endpoint_limits.lookup(method, path) if self.endpoint_limits else None

        if endpoint is None:
            return TierLimits(
                client=TierLimit(config.client_rate_limit_burst, config.client_rate_limit_interval),
                server=TierLimit(config.server_rate_limit_burst, config.server_rate_limit_interval),
            )

        client_burst = max(1, int(endpoint.burst * config.client_rate_limit_multiplier))
        return TierLimits(
            client=TierLimit(client_burst, endpoint.interval),
            server=TierLimit(endpoint.burst, endpoint.interval),
        )

    def server_key(self, upstream_request: UpstreamRequest) -> str:
        scope = self.config.server_rate_limit_scope
        if scope == "global":
            return "out:global"
        if scope == "region":
            return f"out:{upstream_request.region.value}"
        return f"out:{upstream_request.url}"

    async def _check_quota(self, key: str, limit: TierLimit, request_timestamp: int) -> bool:
        limiter = RateLimiter(RateLimiterConfig(
            key=key,
            burst=limit.burst,
            interval_seconds=limit.interval_seconds,
            store=self.store,
            request_timestamp=request_timestamp,
        ))
        return await limiter.is_allowed()

    def _rate_limited(self, tier: str) -> Response:
        self.logger.warning("Rate limit exceeded", tier=tier)
        self._count("rate_limit_hits_total", tier=tier)
        return PlainTextResponse("Rate limit exceeded", status_code=429)

    def _count(self, metric_name: str, **labels):
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, **labels)

    def _time(self, metric_name: str, **labels):
        if self.metrics is not None:
            return self.metrics.time_operation(metric_name, **labels)
        return nullcontext()

