"""
Use case: Trending stocks behind the Freshness Cache.

Input: none
Output: GatewayResponse with ``X-Cache`` (HIT / MISS / STALE) and
``X-Cache-Age`` headers
Side effects: At most one upstream call per TTL window (more under
concurrent expiry unless single-flight is enabled).
Failure cases: ProviderNotConfiguredError. An upstream failure with no
previous entry is relayed as the forwarder's error envelope.
"""

import logging
from typing import Any

from gateway.application.market.dtos import GatewayResponse
from gateway.application.market.forward_resource import FINANCIAL_PROVIDER
from gateway.application.market.forward_upstream import ForwardUpstreamUseCase
from gateway.domain.market.errors import ProviderNotConfiguredError, UpstreamUnavailableError
from gateway.domain.market.freshness_cache import FreshnessCache
from gateway.domain.market.ports import MarketDataPort

logger = logging.getLogger(__name__)

TRENDING_CACHE_KEY = "trending"
TRENDING_PATH = "/trending"
DEFAULT_TRENDING_TTL = 30.0


class GetTrendingUseCase:
    """Serves the trending dataset from cache, refreshing through the forwarder."""

    def __init__(
        self,
        market_data: MarketDataPort,
        forwarder: ForwardUpstreamUseCase,
        cache: FreshnessCache,
        ttl: float = DEFAULT_TRENDING_TTL,
    ) -> None:
        self._market_data = market_data
        self._forwarder = forwarder
        self._cache = cache
        self._ttl = ttl

    async def _refresh(self) -> Any:
        result = await self._forwarder.execute(self._market_data.build_request(TRENDING_PATH))
        if not result.is_success:
            raise UpstreamUnavailableError(result)
        return result.content

    async def execute(self) -> GatewayResponse:
        if not self._market_data.is_configured:
            raise ProviderNotConfiguredError(FINANCIAL_PROVIDER)

        try:
            lookup = await self._cache.get_or_refresh(TRENDING_CACHE_KEY, self._ttl, self._refresh)
        except UpstreamUnavailableError as exc:
            logger.warning("Trending refresh failed with no cached entry to fall back on")
            return exc.envelope

        if lookup.stale:
            status = "STALE"
        elif lookup.hit:
            status = "HIT"
        else:
            status = "MISS"
        return GatewayResponse(
            status_code=200,
            content=lookup.payload,
            headers={"X-Cache": status, "X-Cache-Age": f"{lookup.age:.0f}"},
        )
