"""
Adapter: LLM chat-completion provider with ordered model fallback.

Implements CompletionPort against an OpenAI-compatible
``/chat/completions`` endpoint (Perplexity by default).

Candidate models are tried strictly one after another:
    - transport failure or timeout  -> log, try the next candidate
    - 2xx                           -> stop, return the raw text
    - 4xx saying the model is bad   -> try the next candidate
    - any other non-2xx             -> stop, account/systemic failure
Parallel racing of candidates is deliberately avoided: each attempt is a
paid call and "first success wins" must be deterministic.
"""

import json
import logging
from typing import Mapping, Optional, Sequence

from gateway.domain.market.entities import (
    AttemptOutcome,
    CompletionAttempt,
    CompletionResult,
    OutboundRequest,
    UpstreamResponse,
)
from gateway.domain.market.errors import (
    CompletionExhaustedError,
    CompletionRejectedError,
    ProviderNotConfiguredError,
    UpstreamError,
)
from gateway.domain.market.ports import CompletionPort, HttpFetchPort

logger = logging.getLogger(__name__)

PROVIDER_NAME = "completion provider"

# Lower-cased markers providers use when a model id is unknown or not allowed.
INVALID_MODEL_MARKERS = (
    "invalid model",
    "invalid_model",
    "unknown model",
    "unknown_model",
    "model_not_found",
    "model not found",
    "no such model",
    "model does not exist",
    "unsupported model",
    "not a valid model",
)


def is_invalid_model_response(response: UpstreamResponse) -> bool:
    """True for a 4xx whose body says the requested model id is not usable."""
    if not 400 <= response.status < 500:
        return False
    body = response.text.lower()
    return any(marker in body for marker in INVALID_MODEL_MARKERS)


class ModelFallbackCompletionClient(CompletionPort):
    """Chat-completion client trying an ordered list of models.

    Args:
        fetcher: Bounded Fetch implementation.
        api_url: Full chat-completions URL.
        api_key: Bearer token; empty when unconfigured.
        models: Default ordered candidate model ids.
        temperature: Sampling temperature, kept low for determinism.
        max_tokens: Default max output tokens.
        timeout: Deadline in seconds per attempt.
    """

    def __init__(
        self,
        fetcher: HttpFetchPort,
        api_url: str,
        api_key: str,
        models: Sequence[str],
        temperature: float = 0.1,
        max_tokens: int = 800,
        timeout: float = 25.0,
    ) -> None:
        self._fetcher = fetcher
        self._api_url = api_url
        self._api_key = api_key
        self._models = tuple(models)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _build_request(self, payload: dict) -> OutboundRequest:
        return OutboundRequest.build(
            "POST",
            self._api_url,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
            body=json.dumps(payload).encode("utf-8"),
            deadline=self._timeout,
        )

    async def complete(
        self,
        messages: Sequence[Mapping[str, str]],
        candidate_models: Optional[Sequence[str]] = None,
        max_tokens: Optional[int] = None,
    ) -> CompletionResult:
        if not self.is_configured:
            raise ProviderNotConfiguredError(PROVIDER_NAME)

        candidates = tuple(candidate_models or self._models)
        attempts: list[CompletionAttempt] = []

        for model_id in candidates:
            payload = {
                "model": model_id,
                "messages": [dict(m) for m in messages],
                "temperature": self._temperature,
                "max_tokens": max_tokens or self._max_tokens,
            }

            try:
                response = await self._fetcher.fetch(self._build_request(payload))
            except UpstreamError as exc:
                logger.warning("Completion attempt with model=%s failed: %s", model_id, exc.message)
                attempts.append(
                    CompletionAttempt(
                        model_id=model_id,
                        request_payload=payload,
                        outcome=AttemptOutcome.OTHER_FAILURE,
                        detail=exc.message,
                    )
                )
                continue

            if response.is_success:
                logger.info("Completion succeeded with model=%s (status %d)", model_id, response.status)
                attempts.append(
                    CompletionAttempt(
                        model_id=model_id,
                        request_payload=payload,
                        outcome=AttemptOutcome.SUCCESS,
                        status=response.status,
                        raw_text=response.text,
                    )
                )
                return CompletionResult(
                    raw_text=response.text,
                    model_id=model_id,
                    attempts=tuple(attempts),
                )

            if is_invalid_model_response(response):
                logger.info("Model %s rejected as invalid (status %d); trying next", model_id, response.status)
                attempts.append(
                    CompletionAttempt(
                        model_id=model_id,
                        request_payload=payload,
                        outcome=AttemptOutcome.INVALID_MODEL,
                        status=response.status,
                        detail=response.preview(),
                    )
                )
                continue

            logger.error(
                "Completion provider returned %d for model=%s; not trying further models",
                response.status,
                model_id,
            )
            attempts.append(
                CompletionAttempt(
                    model_id=model_id,
                    request_payload=payload,
                    outcome=AttemptOutcome.OTHER_FAILURE,
                    status=response.status,
                    detail=response.preview(),
                )
            )
            raise CompletionRejectedError(response.status, response.preview(), tuple(attempts))

        raise CompletionExhaustedError(tuple(attempts))
