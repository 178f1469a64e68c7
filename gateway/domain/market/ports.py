"""
Port interfaces (ABCs) for the market data gateway.

Ports define the contracts that the domain and application layers
require from the outside world. Infrastructure adapters implement
these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from gateway.domain.market.entities import (
    CompletionResult,
    OutboundRequest,
    UpstreamResponse,
)


class HttpFetchPort(ABC):
    """Port for deadline-bounded outbound HTTP calls."""

    @abstractmethod
    async def fetch(self, request: OutboundRequest) -> UpstreamResponse:
        """Perform the call within ``request.deadline`` seconds.

        Returns:
            The upstream response, whatever its status code.

        Raises:
            UpstreamTimeoutError: The deadline expired; the transfer was cancelled.
            UpstreamTransportError: DNS, connection, TLS or protocol failure.
        """
        raise NotImplementedError


class MarketDataPort(ABC):
    """Port for the financial-data REST API."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether an API key is available for upstream calls."""
        raise NotImplementedError

    @abstractmethod
    def build_request(
        self, path: str, params: Optional[Mapping[str, Any]] = None
    ) -> OutboundRequest:
        """Build an authenticated GET request for ``path`` with query ``params``."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_json(
        self, path: str, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Best-effort read used by fan-out branches.

        Returns parsed JSON, raw text when the body is not JSON, or None
        when the call failed or produced nothing usable. Never raises
        for upstream problems.
        """
        raise NotImplementedError


class CompletionPort(ABC):
    """Port for an LLM chat-completion provider."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def complete(
        self,
        messages: Sequence[Mapping[str, str]],
        candidate_models: Optional[Sequence[str]] = None,
        max_tokens: Optional[int] = None,
    ) -> CompletionResult:
        """Try candidate models in order and return the first success.

        Raises:
            ProviderNotConfiguredError: No API key is configured.
            CompletionExhaustedError: Every candidate failed or was rejected.
            CompletionRejectedError: A systemic (non-model) failure stopped iteration.
        """
        raise NotImplementedError
