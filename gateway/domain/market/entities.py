"""
Domain entities for the market data gateway.

Entities are request-scoped value objects, except CacheEntry which is
process-wide state owned by the FreshnessCache.
They contain no framework imports and no IO operations.
"""

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def loads_json(text: str) -> Any:
    """Strict ``json.loads``: NaN, Infinity and overflowing numbers are errors.

    Whatever this returns can be rendered back to a client as JSON.
    """
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


@dataclass(frozen=True)
class OutboundRequest:
    """An outbound HTTP call with its own deadline (seconds).

    Headers are stored as an immutable tuple of pairs; lookups through
    ``header`` are case-insensitive.
    """

    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: Optional[bytes] = None
    deadline: float = 15.0

    @classmethod
    def build(
        cls,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        deadline: float = 15.0,
    ) -> "OutboundRequest":
        pairs = tuple((str(k), str(v)) for k, v in (headers or {}).items())
        return cls(
            method=method.upper(),
            url=url,
            headers=pairs,
            body=body,
            deadline=deadline,
        )

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


@dataclass(frozen=True)
class UpstreamResponse:
    """Result of a Bounded Fetch. Non-2xx statuses are not errors here."""

    status: int
    content_type: str = ""
    body: bytes = b""
    truncated: bool = False
    url: str = ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_empty(self) -> bool:
        return not self.body

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_json(self) -> bool:
        # Covers application/json and vendor types such as application/problem+json.
        return "json" in self.content_type.lower()

    def json(self) -> Any:
        """Parse the body as JSON. Raises ValueError on malformed content.

        ``NaN`` and ``Infinity`` literals are rejected: they are not JSON and
        could not be rendered back to a client.
        """
        return loads_json(self.text)

    def preview(self, limit: int = 300) -> str:
        return self.text[:limit].replace("\n", " ")


@dataclass(frozen=True)
class CacheEntry:
    """Single cached payload for one cache key."""

    key: str
    payload: Any
    cached_at: float
    ttl: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.cached_at)

    def is_fresh(self, now: float) -> bool:
        return self.age(now) < self.ttl


@dataclass(frozen=True)
class CacheLookup:
    """What a cache read returned and how it was obtained."""

    payload: Any
    stale: bool
    hit: bool
    age: float = 0.0


class AttemptOutcome(Enum):
    """Outcome of one candidate-model call."""

    SUCCESS = "success"
    INVALID_MODEL = "invalid_model"
    OTHER_FAILURE = "other_failure"


@dataclass(frozen=True)
class CompletionAttempt:
    """One request to the completion provider for a single model."""

    model_id: str
    request_payload: dict
    outcome: AttemptOutcome
    status: Optional[int] = None
    raw_text: Optional[str] = None
    detail: Optional[str] = None


@dataclass(frozen=True)
class CompletionResult:
    """Raw text of the first successful attempt plus the attempt history."""

    raw_text: str
    model_id: str
    attempts: tuple[CompletionAttempt, ...] = ()


@dataclass(frozen=True)
class DealRecord:
    """A normalized M&A deal. Every field is always present."""

    acquirer: str
    target: str
    region: str
    value: Optional[str] = None
    value_number: Optional[float] = None
    sector: Optional[str] = None
    date: Optional[str] = None
    source: Optional[str] = None
    image: Optional[str] = None
    summary: Optional[str] = None
    type: str = "M&A"


@dataclass(frozen=True)
class ResearchSnapshot:
    """Bounded-size evidence gathered from the financial-data API.

    Each field is independently nullable: every branch of the fan-out
    is best-effort.
    """

    stock_data: Any = None
    historical: Any = None
    price_target: Any = None
    commodities: Any = None

    def to_dict(self) -> dict:
        return {
            "stockData": self.stock_data,
            "historical": self.historical,
            "priceTarget": self.price_target,
            "commodities": self.commodities,
        }

    @property
    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.stock_data, self.historical, self.price_target, self.commodities)
        )


class SummaryStatus(Enum):
    """Terminal state of a research summary request."""

    FULL = "full"
    PARTIAL_NO_MODEL = "partial_no_model"
    PARTIAL_MODEL_FAILED = "partial_model_failed"


@dataclass(frozen=True)
class ResearchSummary:
    """Normalized result of the aggregating summarizer."""

    ticker: str
    mode: str
    status: SummaryStatus
    snapshot: ResearchSnapshot
    one_liner: Optional[str] = None
    summary: Optional[str] = None
    citations: Optional[list[dict]] = None
    raw_model_output: Any = None
    model: Optional[str] = None
    detail: Optional[str] = None


ERROR_ENVELOPE_KEYS = ("error", "upstream_error")


def embedded_error(payload: Any) -> Any:
    """Return the error carried inside a nominally successful JSON body, if any."""
    if isinstance(payload, dict):
        for key in ERROR_ENVELOPE_KEYS:
            if key in payload and payload[key] not in (None, "", False):
                return payload[key]
    return None
