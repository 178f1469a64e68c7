"""
Centralized error handlers for FastAPI.

Maps gateway domain errors to HTTP responses.
No stack traces or internal details are exposed to clients.
Upstream degradation never reaches these handlers: use cases absorb it.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gateway.domain.market.errors import (
    GatewayDomainError,
    MissingParameterError,
    ProviderNotConfiguredError,
    UnknownResourceError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_404 = 404
HTTP_500 = 500


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(MissingParameterError)
    async def handle_missing_parameter(
        _request: Request, exc: MissingParameterError
    ) -> JSONResponse:
        """Handle absent required input."""
        logger.info("Missing parameter: %s", exc.parameter)
        return _error_response(HTTP_400, exc.message)

    @app.exception_handler(UnknownResourceError)
    async def handle_unknown_resource(
        _request: Request, exc: UnknownResourceError
    ) -> JSONResponse:
        """Handle requests for resources outside the catalogue."""
        logger.info("Unknown resource: %s", exc.resource)
        return _error_response(HTTP_404, "Not found")

    @app.exception_handler(ProviderNotConfiguredError)
    async def handle_provider_not_configured(
        _request: Request, exc: ProviderNotConfiguredError
    ) -> JSONResponse:
        """Handle calls needing an API key the server does not have."""
        logger.error("Provider not configured: %s", exc.provider)
        return _error_response(HTTP_500, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request input is a client error."""
        errors = exc.errors()
        first = errors[0].get("msg") if errors else None
        logger.info("Request validation failed: %s", first)
        return _error_response(HTTP_400, "Invalid request", first)

    @app.exception_handler(GatewayDomainError)
    async def handle_gateway_domain(
        _request: Request, exc: GatewayDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled gateway domain errors."""
        logger.error("Unhandled gateway domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
