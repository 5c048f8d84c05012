"""
Upstream API client for the proxy.
"""

from typing import Optional
import httpx

from shared.logging import get_logger
from shared.errors import UpstreamError


class UpstreamClient:
    """Forwards requests to the regional upstream API with the API key attached.

    No retries are attempted; a failed fetch is terminal for that request.
    """

    def __init__(
        self,
        api_key: str,
        *,
        auth_header: str = "X-Riot-Token",
        user_agent: str = "riot-api-proxy/1.0.0",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.auth_header = auth_header
        self.user_agent = user_agent
        self.timeout = timeout
        self.logger = get_logger("proxy.upstream_client")
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _build_headers(self) -> dict:
        return {
            self.auth_header: self.api_key,
            "User-Agent": self.user_agent,
        }

    async def fetch(self, method: str, url: str, body: Optional[bytes] = None) -> httpx.Response:
        """Send ``method`` to ``url`` and return the fully read response.

        Raises:
            UpstreamError: on any transport failure.
        """
        client = self._get_client()
        try:
            response = await client.request(
                method,
                url,
                headers=self._build_headers(),
                content=body or None,
            )
        except httpx.HTTPError as e:
            self.logger.error("Upstream request failed", method=method, url=url, error=str(e))
            raise UpstreamError(
                service="upstream",
                message=f"Error fetching data from upstream API: {e}",
                details={"url": url, "method": method}
            ) from e

        self.logger.debug("Upstream response received", url=url, status_code=response.status_code)
        return response

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
