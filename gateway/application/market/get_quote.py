"""
Use case: Normalized stock quote.

Input: GetQuoteQuery (symbol)
Output: GatewayResponse with ``{symbol, currentPrice, percentChange, ..., raw}``
Side effects: One upstream call.
Failure cases: MissingParameterError, ProviderNotConfiguredError.
Upstream failures are returned as the forwarder's envelope, unchanged.
"""

import logging

from gateway.application.market.dtos import GatewayResponse, GetQuoteQuery
from gateway.application.market.forward_resource import FINANCIAL_PROVIDER
from gateway.application.market.forward_upstream import ForwardUpstreamUseCase
from gateway.domain.market.errors import MissingParameterError, ProviderNotConfiguredError
from gateway.domain.market.field_mapping import normalize_quote
from gateway.domain.market.ports import MarketDataPort

logger = logging.getLogger(__name__)

QUOTE_PATH = "/stock"


class GetQuoteUseCase:
    """Fetches a stock snapshot and maps it through the quote synonym table."""

    def __init__(self, market_data: MarketDataPort, forwarder: ForwardUpstreamUseCase) -> None:
        self._market_data = market_data
        self._forwarder = forwarder

    async def execute(self, query: GetQuoteQuery) -> GatewayResponse:
        symbol = (query.symbol or "").strip()
        if not symbol:
            raise MissingParameterError("symbol", "Missing ?symbol or ?name parameter")
        if not self._market_data.is_configured:
            raise ProviderNotConfiguredError(FINANCIAL_PROVIDER)

        result = await self._forwarder.execute(
            self._market_data.build_request(QUOTE_PATH, {"name": symbol})
        )
        if not result.is_success or not isinstance(result.content, dict):
            return result

        logger.debug("Normalizing quote for symbol=%s", symbol)
        return GatewayResponse(
            status_code=result.status_code,
            content=normalize_quote(symbol, result.content),
        )
