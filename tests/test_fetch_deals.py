"""
Tests for the deal tracker use case.

The completion port is mocked. Whatever happens upstream, the use case
must return a list.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from gateway.application.market.dtos import FetchDealsQuery
from gateway.application.market.fetch_deals import (
    FetchDealsUseCase,
    build_deals_prompt,
    coerce_limit,
    coerce_region,
)
from gateway.domain.market.entities import CompletionResult
from gateway.domain.market.errors import CompletionExhaustedError, CompletionRejectedError
from gateway.domain.market.freshness_cache import FreshnessCache

DEALS = [
    {"acquirer": "Tata Steel", "target": "NatSteel", "value": "$292 million", "date": "2024-02-01"},
    {"acquirer": "HDFC Bank", "target": "HDFC Ltd", "value": "₹40,000 crore"},
]


def _envelope(content: str) -> str:
    return json.dumps({"choices": [{"message": {"content": content}}]})


def _completion(raw_text: str = None, side_effect=None, configured: bool = True) -> MagicMock:
    completion = MagicMock()
    completion.is_configured = configured
    completion.complete = AsyncMock(
        return_value=CompletionResult(raw_text=raw_text or "", model_id="sonar"),
        side_effect=side_effect,
    )
    return completion


class TestCoercion:
    """Tests for query parameter coercion."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, 10), ("", 10), ("abc", 10), ("7", 7), ("3.9", 3), ("0", 1), ("-4", 1), ("500", 50), ("inf", 10)],
    )
    def test_coerce_limit(self, raw, expected) -> None:
        assert coerce_limit(raw, maximum=50) == expected

    def test_coerce_region(self) -> None:
        assert coerce_region(None) == "Global"
        assert coerce_region("  ") == "Global"
        assert coerce_region(" India ") == "India"
        assert len(coerce_region("x" * 200)) == 60

    def test_prompt_names_region_and_limit(self) -> None:
        prompt = build_deals_prompt("India", 5)
        assert "India" in prompt
        assert "up to 5" in prompt


class TestFetchDeals:
    """Tests for FetchDealsUseCase.execute."""

    @pytest.mark.asyncio
    async def test_returns_normalized_deals(self) -> None:
        completion = _completion(_envelope(json.dumps(DEALS)))
        deals = await FetchDealsUseCase(completion).execute(FetchDealsQuery(region="India", limit=10))
        assert [d.acquirer for d in deals] == ["Tata Steel", "HDFC Bank"]
        assert deals[0].value_number == pytest.approx(2.92e8)
        assert deals[1].value_number == pytest.approx(4e11)
        assert all(d.region == "India" for d in deals)

    @pytest.mark.asyncio
    async def test_limit_caps_result(self) -> None:
        completion = _completion(_envelope(json.dumps(DEALS)))
        deals = await FetchDealsUseCase(completion).execute(FetchDealsQuery(region="India", limit=1))
        assert len(deals) == 1

    @pytest.mark.asyncio
    async def test_unconfigured_returns_empty(self) -> None:
        completion = _completion(configured=False)
        assert await FetchDealsUseCase(completion).execute(FetchDealsQuery("Global", 10)) == []
        completion.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_client_returns_empty(self) -> None:
        assert await FetchDealsUseCase(None).execute(FetchDealsQuery("Global", 10)) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [CompletionExhaustedError(()), CompletionRejectedError(429, "quota", ())],
    )
    async def test_completion_failure_returns_empty(self, error) -> None:
        completion = _completion(side_effect=error)
        assert await FetchDealsUseCase(completion).execute(FetchDealsQuery("Global", 10)) == []

    @pytest.mark.asyncio
    async def test_unparseable_answer_returns_empty(self) -> None:
        completion = _completion(_envelope("I am unable to list deals right now."))
        assert await FetchDealsUseCase(completion).execute(FetchDealsQuery("Global", 10)) == []

    @pytest.mark.asyncio
    async def test_results_are_cached_per_region_and_limit(self) -> None:
        completion = _completion(_envelope(json.dumps(DEALS)))
        use_case = FetchDealsUseCase(completion, cache=FreshnessCache(clock=lambda: 0.0), cache_ttl=300)

        first = await use_case.execute(FetchDealsQuery("India", 10))
        second = await use_case.execute(FetchDealsQuery("India", 10))
        await use_case.execute(FetchDealsQuery("India", 5))

        assert first == second
        assert completion.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_result_is_not_cached(self) -> None:
        completion = _completion(_envelope("[]"))
        use_case = FetchDealsUseCase(completion, cache=FreshnessCache(clock=lambda: 0.0), cache_ttl=300)

        assert await use_case.execute(FetchDealsQuery("India", 10)) == []
        assert await use_case.execute(FetchDealsQuery("India", 10)) == []
        assert completion.complete.await_count == 2
