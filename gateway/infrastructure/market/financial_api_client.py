"""
Adapter: financial-data REST API.

Implements MarketDataPort. Builds authenticated requests (static API key
header attached server-side) and offers a best-effort JSON read for
fan-out branches, which must never raise for upstream problems.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from gateway.domain.market.entities import OutboundRequest, embedded_error
from gateway.domain.market.errors import UpstreamError
from gateway.domain.market.ports import HttpFetchPort, MarketDataPort

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


class FinancialApiClient(MarketDataPort):
    """Client for the financial-data API.

    Args:
        fetcher: Bounded Fetch implementation.
        base_url: API origin, e.g. ``https://stock.indianapi.in``.
        api_key: Secret sent as ``x-api-key``; empty when unconfigured.
        timeout: Deadline in seconds for every call.
        user_agent: Value of the User-Agent header.
    """

    def __init__(
        self,
        fetcher: HttpFetchPort,
        base_url: str,
        api_key: str = "",
        timeout: float = 15.0,
        user_agent: str = "MarketGateway/0.1",
    ) -> None:
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._user_agent = user_agent

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
        }
        if self._api_key:
            headers[API_KEY_HEADER] = self._api_key
        return headers

    def build_request(
        self, path: str, params: Optional[Mapping[str, Any]] = None
    ) -> OutboundRequest:
        path = path if path.startswith("/") else f"/{path}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None and v != ""}
        url = str(httpx.URL(f"{self._base_url}{path}", params=query or None))
        return OutboundRequest.build("GET", url, headers=self._headers(), deadline=self._timeout)

    async def fetch_json(
        self, path: str, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Best-effort read: parsed JSON, raw text, or None."""
        request = self.build_request(path, params)
        try:
            response = await self._fetcher.fetch(request)
        except UpstreamError as exc:
            logger.warning("Best-effort read of %s failed: %s", path, exc.message)
            return None

        if response.is_empty:
            return None
        if not response.is_success:
            logger.warning("Best-effort read of %s returned status %d", path, response.status)
            return None
        if not response.is_json:
            return response.text

        try:
            payload = response.json()
        except ValueError:
            return response.text
        if embedded_error(payload) is not None:
            logger.warning("Best-effort read of %s returned an error envelope", path)
            return None
        return payload
