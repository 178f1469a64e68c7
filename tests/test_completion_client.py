"""
Tests for the model-fallback completion client.

The Bounded Fetch port is mocked; each test scripts the sequence of
upstream answers and checks which models were tried, in what order.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from gateway.domain.market.entities import AttemptOutcome, UpstreamResponse
from gateway.domain.market.errors import (
    CompletionExhaustedError,
    CompletionRejectedError,
    ProviderNotConfiguredError,
    UpstreamTimeoutError,
)
from gateway.infrastructure.market.completion_client import (
    ModelFallbackCompletionClient,
    is_invalid_model_response,
)

API_URL = "https://api.perplexity.ai/chat/completions"
MESSAGES = [{"role": "user", "content": "hello"}]
OK_BODY = {"choices": [{"message": {"content": "hi"}}]}


def _response(status: int, body) -> UpstreamResponse:
    return UpstreamResponse(
        status=status,
        content_type="application/json",
        body=json.dumps(body).encode(),
        url=API_URL,
    )


def _client(*results, api_key: str = "secret", models=("m1", "m2", "m3")):
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(side_effect=list(results))
    client = ModelFallbackCompletionClient(fetcher, api_url=API_URL, api_key=api_key, models=models)
    return client, fetcher


def _models_tried(fetcher: MagicMock) -> list[str]:
    return [json.loads(call.args[0].body)["model"] for call in fetcher.fetch.await_args_list]


class TestModelFallback:
    """Tests for ModelFallbackCompletionClient.complete."""

    @pytest.mark.asyncio
    async def test_first_success_wins(self) -> None:
        client, fetcher = _client(_response(200, OK_BODY))
        result = await client.complete(MESSAGES)
        assert result.model_id == "m1"
        assert json.loads(result.raw_text) == OK_BODY
        assert _models_tried(fetcher) == ["m1"]

    @pytest.mark.asyncio
    async def test_invalid_model_falls_through_in_order(self) -> None:
        client, fetcher = _client(
            _response(400, {"error": {"message": "Invalid model 'm1'"}}),
            _response(200, OK_BODY),
        )
        result = await client.complete(MESSAGES)
        assert result.model_id == "m2"
        assert _models_tried(fetcher) == ["m1", "m2"]
        assert [a.outcome for a in result.attempts] == [AttemptOutcome.INVALID_MODEL, AttemptOutcome.SUCCESS]

    @pytest.mark.asyncio
    async def test_transport_failure_tries_next_model(self) -> None:
        client, fetcher = _client(UpstreamTimeoutError(API_URL, 25.0), _response(200, OK_BODY))
        result = await client.complete(MESSAGES)
        assert result.model_id == "m2"
        assert result.attempts[0].outcome is AttemptOutcome.OTHER_FAILURE

    @pytest.mark.asyncio
    async def test_auth_failure_stops_immediately(self) -> None:
        client, fetcher = _client(_response(401, {"error": "bad key"}), _response(200, OK_BODY))
        with pytest.raises(CompletionRejectedError) as exc_info:
            await client.complete(MESSAGES)
        assert exc_info.value.status == 401
        assert _models_tried(fetcher) == ["m1"]

    @pytest.mark.asyncio
    async def test_server_error_mentioning_model_stops(self) -> None:
        client, fetcher = _client(_response(500, {"error": "model not found upstream"}))
        with pytest.raises(CompletionRejectedError):
            await client.complete(MESSAGES)
        assert fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_all_invalid_is_exhausted(self) -> None:
        invalid = {"error": "unknown model"}
        client, fetcher = _client(_response(400, invalid), _response(404, invalid), _response(400, invalid))
        with pytest.raises(CompletionExhaustedError) as exc_info:
            await client.complete(MESSAGES)
        assert len(exc_info.value.attempts) == 3
        assert _models_tried(fetcher) == ["m1", "m2", "m3"]

    @pytest.mark.asyncio
    async def test_candidate_override_and_max_tokens(self) -> None:
        client, fetcher = _client(_response(200, OK_BODY))
        await client.complete(MESSAGES, candidate_models=["special"], max_tokens=1500)
        payload = json.loads(fetcher.fetch.await_args.args[0].body)
        assert payload["model"] == "special"
        assert payload["max_tokens"] == 1500
        assert payload["temperature"] == 0.1
        assert payload["messages"] == MESSAGES

    @pytest.mark.asyncio
    async def test_request_is_authenticated_post(self) -> None:
        client, fetcher = _client(_response(200, OK_BODY))
        await client.complete(MESSAGES)
        request = fetcher.fetch.await_args.args[0]
        assert request.method == "POST"
        assert request.url == API_URL
        assert request.header("authorization") == "Bearer secret"
        assert request.deadline == 25.0

    @pytest.mark.asyncio
    async def test_missing_key_is_not_configured(self) -> None:
        client, fetcher = _client(api_key="")
        assert client.is_configured is False
        with pytest.raises(ProviderNotConfiguredError):
            await client.complete(MESSAGES)
        fetcher.fetch.assert_not_awaited()


class TestInvalidModelDetection:
    """Tests for is_invalid_model_response."""

    def test_requires_client_error_status(self) -> None:
        assert is_invalid_model_response(_response(400, {"error": "Invalid model"}))
        assert not is_invalid_model_response(_response(503, {"error": "Invalid model"}))

    def test_requires_model_marker(self) -> None:
        assert not is_invalid_model_response(_response(400, {"error": "messages must alternate"}))
