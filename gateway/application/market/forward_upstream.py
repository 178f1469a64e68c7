"""
Use case: Upstream Forwarder.

Input: OutboundRequest
Output: GatewayResponse (the outward HTTP response)
Side effects: One outbound call through the Bounded Fetch port.
Failure cases: none raised; timeouts become 504 and transport errors 500.

Upstream financial APIs are inconsistent about HTTP status, so a nominal
success is still inspected for an embedded error envelope. Content that
cannot be safely interpreted is relayed byte-for-byte.
"""

import logging

from gateway.application.market.dtos import GatewayResponse
from gateway.domain.market.entities import OutboundRequest, UpstreamResponse, embedded_error
from gateway.domain.market.errors import UpstreamTimeoutError, UpstreamTransportError
from gateway.domain.market.ports import HttpFetchPort

logger = logging.getLogger(__name__)

# Authentication / entitlement signals the caller must see verbatim.
PASSTHROUGH_AUTH_STATUSES = frozenset({401, 402, 403})

DEFAULT_TEXT_TYPE = "text/plain; charset=utf-8"


def _raw(response: UpstreamResponse, status_code: int | None = None) -> GatewayResponse:
    return GatewayResponse(
        status_code=status_code if status_code is not None else response.status,
        raw_body=response.body,
        media_type=response.content_type or DEFAULT_TEXT_TYPE,
        is_json=False,
    )


def map_upstream_response(response: UpstreamResponse) -> GatewayResponse:
    """Translate an upstream response into the gateway's outward response."""
    if response.is_empty:
        if response.status >= 500:
            return GatewayResponse(
                status_code=502,
                content={
                    "error": "Upstream returned an empty error response",
                    "upstream_status": response.status,
                },
            )
        return GatewayResponse(status_code=response.status, raw_body=b"", is_json=False)

    if response.status in PASSTHROUGH_AUTH_STATUSES:
        logger.warning(
            "Upstream %s -> %d (auth/entitlement); body: %s",
            response.url,
            response.status,
            response.preview(),
        )
        return _raw(response)

    if not response.is_json:
        if response.is_success and "html" in response.content_type.lower():
            logger.warning("Upstream %s returned HTML with status %d", response.url, response.status)
        return _raw(response)

    try:
        payload = response.json()
    except ValueError:
        logger.warning("Upstream %s declared JSON but body did not parse", response.url)
        return _raw(response, status_code=502)

    if response.is_success:
        error = embedded_error(payload)
        if error is not None:
            logger.warning("Upstream %s returned %d with embedded error: %s", response.url, response.status, error)
            return GatewayResponse(
                status_code=502,
                content={"upstream_error": error, "upstream_body": payload},
            )

    return GatewayResponse(status_code=response.status, content=payload)


class ForwardUpstreamUseCase:
    """Performs a bounded fetch and maps the result to an outward response."""

    def __init__(self, fetcher: HttpFetchPort) -> None:
        self._fetcher = fetcher

    async def execute(self, request: OutboundRequest) -> GatewayResponse:
        """Forward ``request`` upstream.

        Args:
            request: Fully built outbound request (URL, headers, deadline).

        Returns:
            The response to send to the original caller.
        """
        try:
            response = await self._fetcher.fetch(request)
        except UpstreamTimeoutError:
            return GatewayResponse(status_code=504, content={"error": "Upstream request timed out"})
        except UpstreamTransportError as exc:
            logger.error("Proxy fetch error for %s: %s", request.url, exc.detail)
            return GatewayResponse(
                status_code=500,
                content={"error": "Proxy fetch failed", "detail": exc.detail},
            )

        logger.info(
            "[proxy] upstream %s -> %d (%s)%s",
            request.url,
            response.status,
            response.content_type or "no content-type",
            " truncated" if response.truncated else "",
        )
        logger.debug("[proxy] upstream body (first 300 chars): %s", response.preview())
        return map_upstream_response(response)
