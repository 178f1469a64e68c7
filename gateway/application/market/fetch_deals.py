"""
Use case: Recent M&A deals extracted by the completion provider.

Input: FetchDealsQuery (region, limit)
Output: list[DealRecord], length 0..limit
Side effects: Completion calls (sequential model fallback); results
cached per (region, limit) when a deals TTL is configured.
Failure cases: none. A missing provider key, an exhausted or rejected
completion, or unparseable output all degrade to an empty list, since
the deal tracker always expects an array.
"""

import logging
from typing import Optional

from gateway.application.market.deal_normalizer import DEFAULT_REGION, normalize_deals
from gateway.application.market.dtos import FetchDealsQuery
from gateway.domain.market.entities import DealRecord
from gateway.domain.market.errors import CompletionError, ExtractionError, GatewayDomainError
from gateway.domain.market.freshness_cache import FreshnessCache
from gateway.domain.market.json_extraction import extract_json_array
from gateway.domain.market.ports import CompletionPort

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10

SYSTEM_PROMPT = (
    "You are a financial news analyst. You answer with a JSON array only, "
    "no prose and no markdown."
)

DEAL_KEYS = (
    "acquirer, target, value (string as reported, e.g. \"$1.2 billion\"), "
    "valueNumber (number or null), sector, region, date (YYYY-MM-DD), "
    "source (article URL), image (URL or null), summary (one sentence), "
    "type (e.g. \"M&A\", \"Merger\", \"Stake acquisition\")"
)


def coerce_limit(raw: Optional[str], maximum: int, default: int = DEFAULT_LIMIT) -> int:
    """Parse ``?limit`` leniently and clamp it to ``1..maximum``."""
    try:
        value = int(float(str(raw).strip())) if raw not in (None, "") else default
    except (TypeError, ValueError, OverflowError):
        value = default
    return max(1, min(value, maximum))


def coerce_region(raw: Optional[str]) -> str:
    region = (raw or "").strip()
    return region[:60] or DEFAULT_REGION


def build_deals_prompt(region: str, limit: int) -> str:
    return "\n".join(
        [
            f"List up to {limit} of the most recent notable mergers, acquisitions "
            f"and strategic investments announced in {region}.",
            "",
            f"Return ONLY a JSON array of objects with these keys: {DEAL_KEYS}.",
            "Use null for anything you cannot verify. Do not invent deals.",
            "If you know of no deals, return [].",
        ]
    )


class _NoDeals(GatewayDomainError):
    """Refresh produced nothing worth caching."""

    def __init__(self) -> None:
        super().__init__("No deals extracted")


class FetchDealsUseCase:
    """Prompts the completion provider for deals and normalizes the answer."""

    def __init__(
        self,
        completion: Optional[CompletionPort],
        cache: Optional[FreshnessCache] = None,
        cache_ttl: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._completion = completion
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._max_tokens = max_tokens

    async def execute(self, query: FetchDealsQuery) -> list[DealRecord]:
        """Return up to ``query.limit`` deals; never raises for upstream problems."""
        if self._completion is None or not self._completion.is_configured:
            logger.info("Deals requested but no completion provider is configured")
            return []

        if self._cache is None or self._cache_ttl <= 0:
            return await self._fetch(query)

        async def refresh() -> list[DealRecord]:
            deals = await self._fetch(query)
            if not deals:
                raise _NoDeals()
            return deals

        key = f"deals:{query.region.lower()}:{query.limit}"
        try:
            lookup = await self._cache.get_or_refresh(key, self._cache_ttl, refresh)
        except _NoDeals:
            return []
        if lookup.stale:
            logger.info("Serving stale deals for region=%s", query.region)
        return lookup.payload

    async def _fetch(self, query: FetchDealsQuery) -> list[DealRecord]:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_deals_prompt(query.region, query.limit)},
        ]
        try:
            result = await self._completion.complete(messages, max_tokens=self._max_tokens)
        except CompletionError as exc:
            logger.warning("Deals completion failed: %s", exc.message)
            return []

        try:
            items = extract_json_array(result.raw_text)
        except ExtractionError:
            logger.warning("Deals answer from model=%s was unparseable", result.model_id)
            return []

        deals = normalize_deals(items, limit=query.limit, default_region=query.region)
        logger.info("Extracted %d deal(s) for region=%s via model=%s", len(deals), query.region, result.model_id)
        return deals
