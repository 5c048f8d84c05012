"""
Regional API Proxy service package.

The proxy fronts a third-party regional HTTP API, enforcing:
- Region routing: the first path segment picks the upstream region
- Rate limiting: a per-client and a server-wide counting quota
- Caching: successful upstream responses are shared by URL

Structure:
- app.main: FastAPI app and the catch-all proxy route.
- app.pipeline: Per-request orchestration.
- app.adapters: Key-value store and upstream HTTP client.
- app.caching: Response cache.
- app.ratelimit: Counting limiter and endpoint limit table.
- app.routing: Region enumeration and URL rewrite.
"""
