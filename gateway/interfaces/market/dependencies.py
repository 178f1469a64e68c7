"""
Dependency injection for the market bounded context.

``build_services`` is the composition root: it constructs the shared
httpx client, the Bounded Fetch adapter, the provider clients and the
process-wide FreshnessCache once per application. The FastAPI dependency
functions below build use cases from those shared services.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from gateway.application.market.fetch_deals import FetchDealsUseCase
from gateway.application.market.forward_resource import ForwardResourceUseCase
from gateway.application.market.forward_upstream import ForwardUpstreamUseCase
from gateway.application.market.get_quote import GetQuoteUseCase
from gateway.application.market.get_trending import GetTrendingUseCase
from gateway.application.market.summarize_research import SummarizeResearchUseCase
from gateway.core.config import Settings
from gateway.domain.market.freshness_cache import FreshnessCache
from gateway.infrastructure.market.bounded_fetch import HttpxBoundedFetcher
from gateway.infrastructure.market.completion_client import ModelFallbackCompletionClient
from gateway.infrastructure.market.financial_api_client import FinancialApiClient

logger = logging.getLogger(__name__)

MAX_CONNECTIONS = 50


@dataclass
class GatewayServices:
    """Long-lived collaborators shared by every request."""

    settings: Settings
    http_client: httpx.AsyncClient
    fetcher: HttpxBoundedFetcher
    market_data: FinancialApiClient
    completion: ModelFallbackCompletionClient
    cache: FreshnessCache

    async def aclose(self) -> None:
        await self.http_client.aclose()


def build_services(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GatewayServices:
    """Wire adapters from settings.

    Args:
        settings: Validated application settings.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
    """
    for name in settings.missing_keys():
        logger.warning("%s is not set; endpoints that need it will degrade", name)

    http_client = httpx.AsyncClient(
        transport=transport,
        follow_redirects=True,
        limits=httpx.Limits(max_connections=MAX_CONNECTIONS),
    )
    fetcher = HttpxBoundedFetcher(http_client, max_body_bytes=settings.max_upstream_body_bytes)
    market_data = FinancialApiClient(
        fetcher,
        base_url=settings.financial_api_base,
        api_key=settings.financial_api_key,
        timeout=settings.data_timeout_seconds,
        user_agent=settings.financial_user_agent,
    )
    completion = ModelFallbackCompletionClient(
        fetcher,
        api_url=settings.completion_api_url,
        api_key=settings.completion_api_key,
        models=settings.completion_models,
        temperature=settings.completion_temperature,
        max_tokens=settings.research_max_tokens,
        timeout=settings.completion_timeout_seconds,
    )
    return GatewayServices(
        settings=settings,
        http_client=http_client,
        fetcher=fetcher,
        market_data=market_data,
        completion=completion,
        cache=FreshnessCache(single_flight=settings.cache_single_flight),
    )


def get_services(request: Request) -> GatewayServices:
    """Return the services attached to the running application."""
    return request.app.state.services


def _forwarder(services: GatewayServices) -> ForwardUpstreamUseCase:
    return ForwardUpstreamUseCase(fetcher=services.fetcher)


def get_forward_resource_use_case(request: Request) -> ForwardResourceUseCase:
    """Build ForwardResourceUseCase with its infrastructure dependencies."""
    services = get_services(request)
    return ForwardResourceUseCase(
        market_data=services.market_data,
        forwarder=_forwarder(services),
    )


def get_quote_use_case(request: Request) -> GetQuoteUseCase:
    """Build GetQuoteUseCase with its infrastructure dependencies."""
    services = get_services(request)
    return GetQuoteUseCase(
        market_data=services.market_data,
        forwarder=_forwarder(services),
    )


def get_trending_use_case(request: Request) -> GetTrendingUseCase:
    """Build GetTrendingUseCase around the shared cache."""
    services = get_services(request)
    return GetTrendingUseCase(
        market_data=services.market_data,
        forwarder=_forwarder(services),
        cache=services.cache,
        ttl=services.settings.trending_ttl_seconds,
    )


def get_fetch_deals_use_case(request: Request) -> FetchDealsUseCase:
    """Build FetchDealsUseCase around the completion client and shared cache."""
    services = get_services(request)
    return FetchDealsUseCase(
        completion=services.completion,
        cache=services.cache,
        cache_ttl=services.settings.deals_cache_ttl_seconds,
        max_tokens=services.settings.deals_max_tokens,
    )


def get_summarize_research_use_case(request: Request) -> SummarizeResearchUseCase:
    """Build SummarizeResearchUseCase with its infrastructure dependencies."""
    services = get_services(request)
    return SummarizeResearchUseCase(
        market_data=services.market_data,
        completion=services.completion,
        max_tokens=services.settings.research_max_tokens,
    )
