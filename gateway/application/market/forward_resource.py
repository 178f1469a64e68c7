"""
Use case: Forward a catalogued financial-data resource.

Input: ForwardResourceCommand (resource name, inbound query params)
Output: GatewayResponse
Side effects: One upstream call.
Failure cases: UnknownResourceError, MissingParameterError,
ProviderNotConfiguredError.
"""

import logging
from dataclasses import dataclass
from typing import Mapping

from gateway.application.market.dtos import ForwardResourceCommand, GatewayResponse
from gateway.application.market.forward_upstream import ForwardUpstreamUseCase
from gateway.domain.market.errors import (
    MissingParameterError,
    ProviderNotConfiguredError,
    UnknownResourceError,
)
from gateway.domain.market.ports import MarketDataPort

logger = logging.getLogger(__name__)

FINANCIAL_PROVIDER = "financial data"


@dataclass(frozen=True)
class ResourceSpec:
    """How an inbound resource maps onto the upstream API.

    Attributes:
        path: Upstream path.
        required: Upstream parameter name and the inbound names accepted for it.
        forward_all: Forward every inbound query parameter unchanged.
    """

    path: str
    required: tuple[tuple[str, tuple[str, ...]], ...] = ()
    forward_all: bool = False


RESOURCE_CATALOG: dict[str, ResourceSpec] = {
    "stock": ResourceSpec("/stock", required=(("name", ("symbol", "name")),)),
    "industry_search": ResourceSpec("/industry_search", required=(("query", ("query",)),)),
    "mutual_fund_search": ResourceSpec("/mutual_fund_search", required=(("query", ("query",)),)),
    "stock_target_price": ResourceSpec("/stock_target_price", required=(("stock_id", ("stock_id",)),)),
    "stock_forecasts": ResourceSpec("/stock_forecasts", forward_all=True),
    "historical_data": ResourceSpec("/historical_data", forward_all=True),
    "historical_stats": ResourceSpec("/historical_stats", forward_all=True),
    "corporate_actions": ResourceSpec("/corporate_actions", forward_all=True),
    "statement": ResourceSpec("/statement", forward_all=True),
    "news": ResourceSpec("/news", forward_all=True),
    "ipo": ResourceSpec("/ipo", forward_all=True),
    "mutual_funds_details": ResourceSpec("/mutual_funds_details", forward_all=True),
    "recent_announcements": ResourceSpec("/recent_announcements", forward_all=True),
    "fetch_52_week_high_low_data": ResourceSpec("/fetch_52_week_high_low_data"),
    "NSE_most_active": ResourceSpec("/NSE_most_active"),
    "BSE_most_active": ResourceSpec("/BSE_most_active"),
    "mutual_funds": ResourceSpec("/mutual_funds"),
    "price_shockers": ResourceSpec("/price_shockers"),
    "commodities": ResourceSpec("/commodities"),
}


def resolve_resource(resource: str, params: Mapping[str, str]) -> tuple[str, dict[str, str]]:
    """Return the upstream ``(path, params)`` for an inbound resource request.

    Raises:
        UnknownResourceError: ``resource`` is not catalogued.
        MissingParameterError: A required parameter is absent or blank.
    """
    spec = RESOURCE_CATALOG.get(resource)
    if spec is None:
        raise UnknownResourceError(resource)

    upstream: dict[str, str] = dict(params) if spec.forward_all else {}
    for upstream_name, accepted in spec.required:
        value = next((params[n].strip() for n in accepted if (params.get(n) or "").strip()), None)
        if value is None:
            raise MissingParameterError(
                upstream_name,
                "Missing " + " or ".join(f"?{n}" for n in accepted) + " parameter",
            )
        upstream[upstream_name] = value
    return spec.path, upstream


class ForwardResourceUseCase:
    """Resolves a catalogue entry and forwards it upstream."""

    def __init__(self, market_data: MarketDataPort, forwarder: ForwardUpstreamUseCase) -> None:
        self._market_data = market_data
        self._forwarder = forwarder

    async def execute(self, command: ForwardResourceCommand) -> GatewayResponse:
        """Run the pass-through.

        Args:
            command: Resource name and inbound query parameters.

        Returns:
            The forwarder's outward response.
        """
        path, params = resolve_resource(command.resource, command.params)
        if not self._market_data.is_configured:
            raise ProviderNotConfiguredError(FINANCIAL_PROVIDER)

        logger.info("Forwarding resource=%s", command.resource)
        return await self._forwarder.execute(self._market_data.build_request(path, params))
