"""
Tests for the Upstream Forwarder.

Validates the mapping from upstream responses (and fetch failures) to
the gateway's outward response.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from gateway.application.market.forward_upstream import ForwardUpstreamUseCase, map_upstream_response
from gateway.domain.market.entities import OutboundRequest, UpstreamResponse
from gateway.domain.market.errors import UpstreamTimeoutError, UpstreamTransportError

URL = "https://stock.indianapi.in/stock?name=TCS"
JSON = "application/json; charset=utf-8"


def _upstream(status: int, body, content_type: str = JSON) -> UpstreamResponse:
    if not isinstance(body, bytes):
        body = json.dumps(body).encode()
    return UpstreamResponse(status=status, content_type=content_type, body=body, url=URL)


class TestMapUpstreamResponse:
    """Tests for map_upstream_response."""

    def test_success_json_is_relayed_with_status(self) -> None:
        result = map_upstream_response(_upstream(200, {"price": 1}))
        assert result.status_code == 200
        assert result.content == {"price": 1}
        assert result.is_success

    def test_non_success_json_keeps_upstream_status(self) -> None:
        result = map_upstream_response(_upstream(404, {"message": "no such stock"}))
        assert result.status_code == 404
        assert result.content == {"message": "no such stock"}
        assert not result.is_success

    def test_embedded_error_on_success_becomes_502(self) -> None:
        result = map_upstream_response(_upstream(200, {"error": "quota exceeded"}))
        assert result.status_code == 502
        assert result.content == {
            "upstream_error": "quota exceeded",
            "upstream_body": {"error": "quota exceeded"},
        }

    def test_upstream_error_key_on_success_becomes_502(self) -> None:
        result = map_upstream_response(_upstream(200, {"upstream_error": {"code": 7}}))
        assert result.status_code == 502
        assert result.content["upstream_error"] == {"code": 7}

    def test_empty_error_key_is_not_an_error(self) -> None:
        result = map_upstream_response(_upstream(200, {"error": None, "data": [1]}))
        assert result.status_code == 200

    def test_embedded_error_on_non_success_is_relayed(self) -> None:
        result = map_upstream_response(_upstream(404, {"error": "not found"}))
        assert result.status_code == 404
        assert result.content == {"error": "not found"}

    def test_malformed_json_becomes_502_with_raw_body(self) -> None:
        result = map_upstream_response(_upstream(200, b"{not json"))
        assert result.status_code == 502
        assert result.is_json is False
        assert result.raw_body == b"{not json"
        assert result.media_type == JSON

    def test_nan_literal_is_malformed_json(self) -> None:
        result = map_upstream_response(_upstream(200, b'{"price": NaN}'))
        assert result.status_code == 502
        assert result.is_json is False
        assert result.raw_body == b'{"price": NaN}'

    @pytest.mark.parametrize("status", [401, 402, 403])
    def test_auth_statuses_pass_through_raw(self, status: int) -> None:
        result = map_upstream_response(_upstream(status, {"message": "Invalid API key"}))
        assert result.status_code == status
        assert result.is_json is False
        assert json.loads(result.raw_body) == {"message": "Invalid API key"}

    def test_html_is_relayed_verbatim(self) -> None:
        result = map_upstream_response(_upstream(200, b"<html>login</html>", "text/html"))
        assert result.status_code == 200
        assert result.raw_body == b"<html>login</html>"
        assert result.media_type == "text/html"

    def test_missing_content_type_defaults_to_text(self) -> None:
        result = map_upstream_response(_upstream(200, b"plain", ""))
        assert result.media_type.startswith("text/plain")

    def test_empty_5xx_becomes_502(self) -> None:
        result = map_upstream_response(_upstream(503, b""))
        assert result.status_code == 502
        assert result.content == {
            "error": "Upstream returned an empty error response",
            "upstream_status": 503,
        }

    def test_empty_success_is_relayed_empty(self) -> None:
        result = map_upstream_response(_upstream(204, b""))
        assert result.status_code == 204
        assert result.raw_body == b""


class TestForwardUpstreamUseCase:
    """Tests for ForwardUpstreamUseCase.execute."""

    @pytest.fixture
    def fetcher(self) -> MagicMock:
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock()
        return fetcher

    @pytest.mark.asyncio
    async def test_timeout_maps_to_504(self, fetcher: MagicMock) -> None:
        fetcher.fetch.side_effect = UpstreamTimeoutError(URL, 15.0)
        result = await ForwardUpstreamUseCase(fetcher).execute(OutboundRequest.build("GET", URL))
        assert result.status_code == 504
        assert result.content == {"error": "Upstream request timed out"}

    @pytest.mark.asyncio
    async def test_transport_failure_maps_to_500(self, fetcher: MagicMock) -> None:
        fetcher.fetch.side_effect = UpstreamTransportError(URL, "dns failure")
        result = await ForwardUpstreamUseCase(fetcher).execute(OutboundRequest.build("GET", URL))
        assert result.status_code == 500
        assert result.content == {"error": "Proxy fetch failed", "detail": "dns failure"}

    @pytest.mark.asyncio
    async def test_response_is_mapped(self, fetcher: MagicMock) -> None:
        fetcher.fetch.return_value = _upstream(200, {"trending": []})
        request = OutboundRequest.build("GET", URL)
        result = await ForwardUpstreamUseCase(fetcher).execute(request)
        fetcher.fetch.assert_awaited_once_with(request)
        assert result.content == {"trending": []}
