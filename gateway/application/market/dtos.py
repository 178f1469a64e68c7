"""
Data Transfer Objects for the market application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class GatewayResponse:
    """Outward HTTP response produced by a use case.

    Exactly one of ``content`` (a JSON value) or ``raw_body`` (bytes relayed
    unchanged with ``media_type``) is meaningful; ``is_json`` tells which.

    Attributes:
        status_code: HTTP status sent to the caller.
        content: JSON-serializable payload.
        raw_body: Bytes relayed verbatim (None means an empty body).
        media_type: Content type of ``raw_body``.
        headers: Extra response headers (cache status, ...).
        is_json: Whether ``content`` should be JSON-encoded.
    """

    status_code: int
    content: Any = None
    raw_body: Optional[bytes] = None
    media_type: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    is_json: bool = True

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300 and self.is_json


@dataclass(frozen=True)
class ForwardResourceCommand:
    """Input DTO for a catalogue pass-through.

    Attributes:
        resource: Catalogue name, e.g. ``industry_search``.
        params: Inbound query parameters.
    """

    resource: str
    params: Mapping[str, str]


@dataclass(frozen=True)
class GetQuoteQuery:
    """Input DTO for a normalized quote."""

    symbol: Optional[str]


@dataclass(frozen=True)
class FetchDealsQuery:
    """Input DTO for the deal tracker.

    Attributes:
        region: Geographic focus, e.g. ``India``.
        limit: Maximum number of deals (already clamped).
    """

    region: str
    limit: int


@dataclass(frozen=True)
class SummarizeResearchCommand:
    """Input DTO for a research summary.

    Attributes:
        ticker: Symbol or company name understood by the financial API.
        mode: ``short`` or ``detailed``.
    """

    ticker: str
    mode: str = "short"
