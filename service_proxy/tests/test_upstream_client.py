"""
Unit tests for the upstream client.
"""

import httpx
import pytest

from shared.errors import UpstreamError
from shared.test_helpers import UpstreamStub
from service_proxy.app.adapters.upstream_client import UpstreamClient

URL = "https://na1.api.riotgames.com/lol/summoner/v4/summoners/by-name/Foo"


class TestUpstreamClient:
    """Test cases for UpstreamClient."""

    @pytest.mark.asyncio
    async def test_injects_auth_and_user_agent(self, upstream, upstream_stub):
        response = await upstream.fetch("GET", URL)

        assert response.status_code == 200
        sent = upstream_stub.calls[0]
        assert sent.headers["X-Riot-Token"] == "test-api-key"
        assert sent.headers["User-Agent"] == "proxy-tests/1.0"
        assert str(sent.url) == URL

    @pytest.mark.asyncio
    async def test_forwards_method_and_body(self, upstream, upstream_stub):
        await upstream.fetch("POST", URL, b'{"x": 1}')

        sent = upstream_stub.calls[0]
        assert sent.method == "POST"
        assert sent.content == b'{"x": 1}'

    @pytest.mark.asyncio
    async def test_custom_auth_header(self, upstream_stub):
        client = UpstreamClient(
            "secret",
            auth_header="X-Api-Key",
            client=httpx.AsyncClient(transport=upstream_stub.transport()),
        )

        await client.fetch("GET", URL)

        assert upstream_stub.calls[0].headers["X-Api-Key"] == "secret"
        assert "X-Riot-Token" not in upstream_stub.calls[0].headers

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self):
        stub = UpstreamStub(status_code=404, payload={"status": {"message": "Data not found"}})
        client = UpstreamClient("k", client=httpx.AsyncClient(transport=stub.transport()))

        response = await client.fetch("GET", URL)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_failure_raises_upstream_error(self):
        stub = UpstreamStub(error=httpx.ConnectError("connection refused"))
        client = UpstreamClient("k", client=httpx.AsyncClient(transport=stub.transport()))

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch("GET", URL)

        assert exc_info.value.status_code == 500
        assert len(stub.calls) == 1

    @pytest.mark.asyncio
    async def test_close_releases_client(self, upstream):
        await upstream.close()

        assert upstream._client is None
