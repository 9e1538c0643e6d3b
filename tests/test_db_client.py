import asyncio

import httpx
import pytest

from app.db import SupabaseClient
from app.db.client import parse_content_range
from app.errors import DependencyError


def _client_with(handler) -> SupabaseClient:
    client = SupabaseClient("https://example.supabase.co/", "service-key")
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


def test_get_sends_auth_headers_and_filters() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "1", "fcm_token": "t"}])

    client = _client_with(handler)
    rows = asyncio.run(client.get("doctors", {"fcm_token": "not.is.null"}))

    assert rows == [{"id": "1", "fcm_token": "t"}]
    request = seen[0]
    assert request.url.path == "/rest/v1/doctors"
    assert request.url.params["fcm_token"] == "not.is.null"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["Authorization"] == "Bearer service-key"


def test_get_all_pages_until_short_page() -> None:
    offsets = []

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        offsets.append(offset)
        remaining = max(0, 5 - offset)
        return httpx.Response(200, json=[{"id": str(offset + i)} for i in range(min(2, remaining))])

    client = _client_with(handler)
    rows = asyncio.run(client.get_all("users", {"select": "id"}, page_size=2))

    assert [r["id"] for r in rows] == ["0", "1", "2", "3", "4"]
    assert offsets == [0, 2, 4]


def test_count_reads_content_range() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        assert request.headers["Prefer"] == "count=exact"
        return httpx.Response(200, headers={"Content-Range": "*/42"})

    client = _client_with(handler)

    assert asyncio.run(client.count("broadcast_notifications")) == 42


def test_http_error_becomes_dependency_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream down")

    client = _client_with(handler)

    with pytest.raises(DependencyError, match="503"):
        asyncio.run(client.insert("broadcast_notifications", {"message": "hi"}))


def test_transport_error_becomes_dependency_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client_with(handler)

    with pytest.raises(DependencyError, match="connection refused"):
        asyncio.run(client.update("broadcast_notifications", {"id": "eq.1"}, {"status": "sent"}))


@pytest.mark.parametrize(
    "header, expected",
    [("0-9/42", 42), ("*/0", 0), ("*/*", None), ("", None)],
)
def test_parse_content_range(header, expected) -> None:
    assert parse_content_range(header) == expected
