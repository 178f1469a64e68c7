"""
Adapter: deadline-bounded outbound HTTP.

Implements HttpFetchPort on top of a shared ``httpx.AsyncClient``.
The whole exchange (connect, send, read body) runs under one deadline;
on expiry the pending task is cancelled, which closes the stream and
releases the connection.
"""

import asyncio
import logging

import httpx

from gateway.domain.market.entities import OutboundRequest, UpstreamResponse
from gateway.domain.market.errors import UpstreamTimeoutError, UpstreamTransportError
from gateway.domain.market.ports import HttpFetchPort

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024


class HttpxBoundedFetcher(HttpFetchPort):
    """Bounded Fetch over httpx. No retries: retry policy belongs to callers.

    Args:
        client: Shared async client (connection pool owned by the app lifespan).
        max_body_bytes: Bodies longer than this are cut and flagged ``truncated``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        self._client = client
        self._max_body_bytes = max_body_bytes

    async def fetch(self, request: OutboundRequest) -> UpstreamResponse:
        """Perform ``request`` within ``request.deadline`` seconds."""
        try:
            return await asyncio.wait_for(self._perform(request), timeout=request.deadline)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Upstream %s %s timed out after %.1fs", request.method, request.url, request.deadline)
            raise UpstreamTimeoutError(request.url, request.deadline) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            detail = str(exc) or type(exc).__name__
            logger.warning("Upstream %s %s failed: %s", request.method, request.url, detail)
            raise UpstreamTransportError(request.url, detail) from exc

    async def _perform(self, request: OutboundRequest) -> UpstreamResponse:
        async with self._client.stream(
            request.method,
            request.url,
            headers=list(request.headers),
            content=request.body,
            timeout=request.deadline,
        ) as response:
            body, truncated = await self._read_body(response)
            return UpstreamResponse(
                status=response.status_code,
                content_type=response.headers.get("content-type", ""),
                body=body,
                truncated=truncated,
                url=request.url,
            )

    async def _read_body(self, response: httpx.Response) -> tuple[bytes, bool]:
        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            remaining = self._max_body_bytes - size
            if len(chunk) > remaining:
                chunks.append(chunk[:remaining])
                logger.warning(
                    "Upstream body from %s exceeded %d bytes; truncated",
                    response.request.url,
                    self._max_body_bytes,
                )
                return b"".join(chunks), True
            chunks.append(chunk)
            size += len(chunk)
        return b"".join(chunks), False
