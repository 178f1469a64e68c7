"""
Tests for the httpx Bounded Fetch adapter.

Covers the deadline, transport failures, body truncation and the rule
that non-2xx statuses are returned as data, not raised.
"""

import asyncio

import httpx
import pytest

from gateway.domain.market.entities import OutboundRequest
from gateway.domain.market.errors import UpstreamTimeoutError, UpstreamTransportError
from gateway.infrastructure.market.bounded_fetch import HttpxBoundedFetcher

URL = "https://upstream.test/resource"


def _fetcher(handler, **kwargs) -> HttpxBoundedFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxBoundedFetcher(client, **kwargs)


class TestBoundedFetch:
    """Tests for HttpxBoundedFetcher.fetch."""

    @pytest.mark.asyncio
    async def test_returns_status_content_type_and_body(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(200, json={"ok": True}))
        response = await fetcher.fetch(OutboundRequest.build("GET", URL))
        assert response.status == 200
        assert "application/json" in response.content_type
        assert response.json() == {"ok": True}
        assert response.truncated is False
        assert response.url == URL

    @pytest.mark.asyncio
    async def test_non_2xx_is_not_an_error(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(404, text="missing"))
        response = await fetcher.fetch(OutboundRequest.build("GET", URL))
        assert response.status == 404
        assert response.text == "missing"
        assert not response.is_success

    @pytest.mark.asyncio
    async def test_sends_method_headers_and_body(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["key"] = request.headers.get("x-api-key")
            seen["body"] = request.content
            return httpx.Response(204)

        fetcher = _fetcher(handler)
        request = OutboundRequest.build("post", URL, headers={"x-api-key": "secret"}, body=b"{}")
        response = await fetcher.fetch(request)
        assert seen == {"method": "POST", "key": "secret", "body": b"{}"}
        assert response.is_empty

    @pytest.mark.asyncio
    async def test_deadline_expiry_raises_timeout(self) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json={})

        fetcher = _fetcher(slow)
        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await fetcher.fetch(OutboundRequest.build("GET", URL, deadline=0.05))
        assert exc_info.value.url == URL
        assert exc_info.value.deadline == 0.05

    @pytest.mark.asyncio
    async def test_httpx_timeout_raises_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        fetcher = _fetcher(handler)
        with pytest.raises(UpstreamTimeoutError):
            await fetcher.fetch(OutboundRequest.build("GET", URL))

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = _fetcher(handler)
        with pytest.raises(UpstreamTransportError) as exc_info:
            await fetcher.fetch(OutboundRequest.build("GET", URL))
        assert "connection refused" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_oversized_body_is_truncated(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(200, content=b"x" * 100), max_body_bytes=10)
        response = await fetcher.fetch(OutboundRequest.build("GET", URL))
        assert response.truncated is True
        assert response.body == b"x" * 10

    @pytest.mark.asyncio
    async def test_body_at_limit_is_not_truncated(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(200, content=b"x" * 10), max_body_bytes=10)
        response = await fetcher.fetch(OutboundRequest.build("GET", URL))
        assert response.truncated is False
        assert len(response.body) == 10


class TestOutboundRequest:
    """Tests for the OutboundRequest value object."""

    def test_header_lookup_is_case_insensitive(self) -> None:
        request = OutboundRequest.build("get", URL, headers={"X-Api-Key": "k"})
        assert request.method == "GET"
        assert request.header("x-api-key") == "k"
        assert request.header("authorization") is None
