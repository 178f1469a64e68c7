"""
Health check router.

Provides a simple health endpoint for liveness/readiness probes, the
service index served at ``/`` and a debug-only view of which keys the
process sees. No business logic. Never returns key values.
"""

from fastapi import APIRouter, Request

from gateway.domain.market.errors import UnknownResourceError
from gateway.interfaces.market.dependencies import get_services
from gateway.interfaces.market.schemas import HealthResponse

router = APIRouter(tags=["health"])
index_router = APIRouter(tags=["health"])

ENDPOINTS = (
    "/api/v1/health",
    "/api/v1/data/quote?symbol=",
    "/api/v1/data/trending",
    "/api/v1/data/{resource}",
    "/api/v1/deals?region=&limit=",
    "/api/v1/research/summary",
)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status, version and which providers are configured.",
)
def health_check(request: Request) -> HealthResponse:
    """Return current application health status."""
    settings = get_services(request).settings
    return HealthResponse(
        status="ok",
        version=settings.version,
        financial_api_configured=settings.financial_api_configured,
        completion_configured=settings.completion_configured,
    )


@router.get("/_debug/env", include_in_schema=False)
def debug_env(request: Request) -> dict:
    """Key presence and bind settings; only served in debug mode."""
    settings = get_services(request).settings
    if not settings.debug:
        raise UnknownResourceError("_debug/env")
    return {
        "financial_api_key": settings.financial_api_configured,
        "completion_api_key": settings.completion_configured,
        "port": settings.port,
        "allowed_origins": settings.allowed_origins,
    }


@index_router.get("/", summary="Service index")
def index(request: Request) -> dict:
    """Name the service and list its endpoints."""
    settings = get_services(request).settings
    return {
        "service": settings.project_name,
        "status": "ok",
        "endpoints": list(ENDPOINTS),
    }
