"""
FastAPI router for the market bounded context.

All routes delegate to use cases. No business logic here.
Pass-through routes relay whatever the forwarder decided (status, body,
content type); deals and research have their own response schemas.
Error mapping is handled by centralized error handlers.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from gateway.application.market.dtos import (
    FetchDealsQuery,
    ForwardResourceCommand,
    GatewayResponse,
    GetQuoteQuery,
    SummarizeResearchCommand,
)
from gateway.application.market.fetch_deals import FetchDealsUseCase, coerce_limit, coerce_region
from gateway.application.market.forward_resource import ForwardResourceUseCase
from gateway.application.market.get_quote import GetQuoteUseCase
from gateway.application.market.get_trending import GetTrendingUseCase
from gateway.application.market.summarize_research import SummarizeResearchUseCase
from gateway.interfaces.market.dependencies import (
    get_fetch_deals_use_case,
    get_forward_resource_use_case,
    get_quote_use_case,
    get_services,
    get_summarize_research_use_case,
    get_trending_use_case,
)
from gateway.interfaces.market.schemas import (
    CitationItem,
    DealItem,
    ErrorResponse,
    ResearchSummaryRequest,
    ResearchSummaryResponse,
)

router = APIRouter(tags=["market"])


def _to_http(result: GatewayResponse) -> Response:
    """Render a use-case response without reinterpreting it."""
    headers = dict(result.headers)
    if result.is_json:
        return JSONResponse(status_code=result.status_code, content=result.content, headers=headers)
    return Response(
        content=result.raw_body or b"",
        status_code=result.status_code,
        media_type=result.media_type,
        headers=headers,
    )


@router.get(
    "/data/quote",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Normalized stock quote",
    description="Fetch a stock quote and map provider-specific field names to a stable shape.",
)
async def get_quote(
    symbol: Optional[str] = Query(default=None, max_length=64),
    name: Optional[str] = Query(default=None, max_length=64),
    use_case: GetQuoteUseCase = Depends(get_quote_use_case),
) -> Response:
    """Return ``{symbol, currentPrice, percentChange, ..., raw}`` for one symbol."""
    result = await use_case.execute(GetQuoteQuery(symbol=symbol or name))
    return _to_http(result)


@router.get(
    "/data/trending",
    responses={500: {"model": ErrorResponse}},
    summary="Trending stocks",
    description="Trending dataset served from a short-lived cache (see X-Cache header).",
)
async def get_trending(
    use_case: GetTrendingUseCase = Depends(get_trending_use_case),
) -> Response:
    """Return the cached trending payload."""
    return _to_http(await use_case.execute())


@router.get(
    "/data/{resource}",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Financial data pass-through",
    description="Forward a catalogued resource to the financial-data API.",
)
async def forward_resource(
    resource: str,
    request: Request,
    use_case: ForwardResourceUseCase = Depends(get_forward_resource_use_case),
) -> Response:
    """Relay the upstream answer for ``resource``."""
    command = ForwardResourceCommand(resource=resource, params=dict(request.query_params))
    return _to_http(await use_case.execute(command))


@router.get(
    "/deals",
    response_model=list[DealItem],
    summary="Recent M&A deals",
    description="Deals extracted by the completion provider. Always a JSON array.",
)
async def get_deals(
    request: Request,
    region: Optional[str] = None,
    limit: Optional[str] = None,
    use_case: FetchDealsUseCase = Depends(get_fetch_deals_use_case),
) -> list[DealItem]:
    """Return up to ``limit`` normalized deals for ``region``."""
    settings = get_services(request).settings
    query = FetchDealsQuery(
        region=coerce_region(region),
        limit=coerce_limit(limit, maximum=settings.deals_max_limit),
    )
    deals = await use_case.execute(query)
    return [
        DealItem(
            acquirer=d.acquirer,
            target=d.target,
            value=d.value,
            value_number=d.value_number,
            sector=d.sector,
            region=d.region,
            date=d.date,
            source=d.source,
            image=d.image,
            summary=d.summary,
            type=d.type,
        )
        for d in deals
    ]


@router.post(
    "/research/summary",
    response_model=ResearchSummaryResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Research summary",
    description="Aggregate market data for a ticker and summarize it with the completion provider.",
)
async def summarize_research(
    payload: Optional[ResearchSummaryRequest] = Body(default=None),
    ticker: Optional[str] = Query(default=None, max_length=64),
    mode: Optional[str] = Query(default=None, max_length=16),
    use_case: SummarizeResearchUseCase = Depends(get_summarize_research_use_case),
) -> ResearchSummaryResponse:
    """Summarize a ticker; the body wins over query parameters."""
    body = payload or ResearchSummaryRequest()
    command = SummarizeResearchCommand(
        ticker=body.ticker or body.symbol or ticker or "",
        mode=body.mode or mode or "short",
    )
    result = await use_case.execute(command)
    return ResearchSummaryResponse(
        ticker=result.ticker,
        mode=result.mode,
        status=result.status.value,
        one_liner=result.one_liner,
        summary=result.summary,
        citations=[CitationItem(**c) for c in result.citations] if result.citations else None,
        source_snapshot=result.snapshot.to_dict(),
        raw_model_output=result.raw_model_output,
        model=result.model,
        detail=result.detail,
    )
