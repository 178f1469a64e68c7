"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (index, health, market data, deals, research)
- Shared services (httpx client, caches, provider clients)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, CORS, rate limiting)
- Logging configuration

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from gateway.core.config import Settings
from gateway.core.config import settings as default_settings
from gateway.interfaces.health import index_router
from gateway.interfaces.health import router as health_router
from gateway.interfaces.market.dependencies import build_services
from gateway.interfaces.market.router import router as market_router
from gateway.shared.errors.handlers import register_error_handlers
from gateway.shared.logging import configure_logging
from gateway.shared.security.headers import SecurityHeadersMiddleware
from gateway.shared.security.rate_limiting import build_limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: release the shared upstream connection pool."""
    logger.info("Gateway starting on %s:%s", app.state.services.settings.host, app.state.services.settings.port)
    yield
    await app.state.services.aclose()
    logger.info("Gateway stopped")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Args:
        settings: Settings to use instead of the environment-derived ones.
        transport: Optional httpx transport for every upstream call.

    Returns:
        A fully configured FastAPI application instance.
    """
    settings = settings or default_settings
    configure_logging(
        level=settings.log_level,
        secrets=(settings.financial_api_key, settings.completion_api_key),
    )

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.services = build_services(settings, transport=transport)

    # --- Rate Limiting ---
    app.state.limiter = build_limiter(settings.rate_limit_default, enabled=settings.rate_limit_enabled)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # --- Security Middleware ---
    docs_paths = [app.docs_url, app.redoc_url, app.swagger_ui_oauth2_redirect_url] if settings.debug else []
    app.add_middleware(SecurityHeadersMiddleware, docs_paths=[p for p in docs_paths if p])

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(index_router)
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(market_router, prefix=API_PREFIX)

    return app


app = create_app()
