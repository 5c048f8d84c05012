"""
Test helper functions and factory methods for the regional API proxy.
"""

import json
from typing import Dict, Any, Optional, List
from urllib.parse import unquote

import httpx
from starlette.requests import Request


class UpstreamStub:
    """Records upstream calls and answers them with a canned response.

    Used as the handler of an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        status_code: int = 200,
        payload: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status_code = status_code
        self.payload = payload if payload is not None else create_summoner_payload()
        self.error = error
        self.headers = headers if headers is not None else {
            "Content-Type": "application/json;charset=utf-8",
            "X-App-Rate-Limit": "20:1,100:120",
        }
        self.calls: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        content = b"" if request.method == "HEAD" else json.dumps(self.payload).encode()
        return httpx.Response(
            self.status_code,
            content=content,
            headers=self.headers,
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def create_summoner_payload(name: str = "Foo") -> Dict[str, Any]:
    """Create an upstream summoner payload."""
    return {
        "id": "summoner-id-123",
        "accountId": "account-id-456",
        "puuid": "puuid-789",
        "name": name,
        "profileIconId": 4568,
        "revisionDate": 1700000000000,
        "summonerLevel": 312,
    }


def make_request(
    path: str,
    *,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    query: str = "",
    body: bytes = b"",
    client_ip: Optional[str] = "203.0.113.7",
    ip_header: str = "CF-Connecting-IP",
) -> Request:
    """Build an inbound Starlette request without a running server.

    ``path`` is given percent-encoded, as it arrives on the wire.
    """
    header_map = dict(headers or {})
    if client_ip is not None:
        header_map.setdefault(ip_header, client_ip)

    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "https",
        "path": unquote(path),
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": query.encode(),
        "headers": [(k.lower().encode(), v.encode()) for k, v in header_map.items()],
        "server": ("proxy.example.com", 443),
        "client": ("10.0.0.1", 50000),
    }
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)
