"""
Use case: Research summary for a ticker.

Input: SummarizeResearchCommand (ticker, mode)
Output: ResearchSummary
Side effects: Four concurrent best-effort financial-data reads, then at
most one completion call sequence.
Failure cases: MissingParameterError for a blank ticker. Upstream and
model failures degrade to a partial summary, never an error.

Pipeline:
    fetching snapshot -> snapshot ready -> prompting model
    -> extracting JSON -> normalizing -> done
Terminal states: full, partial_no_model, partial_model_failed.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Optional

from gateway.application.market.dtos import SummarizeResearchCommand
from gateway.domain.market.entities import ResearchSnapshot, ResearchSummary, SummaryStatus, loads_json
from gateway.domain.market.errors import CompletionError, ExtractionError, MissingParameterError
from gateway.domain.market.json_extraction import extract_json_object, extract_message_content
from gateway.domain.market.ports import CompletionPort, MarketDataPort
from gateway.domain.market.research import SUMMARY_KEYS, build_snapshot, normalize_summary_fields

logger = logging.getLogger(__name__)

MODES = ("short", "detailed")
DEFAULT_MODE = "short"
MAX_PROMPT_SOURCE_CHARS = 3_000

NO_MODEL_SUMMARY = "Model summary unavailable: no completion provider is configured. Partial market data included."
MODEL_FAILED_SUMMARY = "Model summary unavailable: the completion provider failed. Partial market data included."

SYSTEM_PROMPT = "You are a factual research assistant that returns JSON."

_LENGTH_HINT = {
    "short": "2-3 sentences",
    "detailed": "one paragraph of 5-7 sentences covering valuation, momentum and analyst targets",
}


def normalize_mode(raw: Optional[str]) -> str:
    mode = (raw or "").strip().lower()
    return mode if mode in MODES else DEFAULT_MODE


def build_research_prompt(ticker: str, snapshot: ResearchSnapshot, mode: str) -> str:
    """Prompt asking for a fixed-key JSON object grounded in the snapshot only."""
    source = json.dumps(snapshot.to_dict(), indent=2, default=str)
    if len(source) > MAX_PROMPT_SOURCE_CHARS:
        source = source[:MAX_PROMPT_SOURCE_CHARS] + "\n<<truncated>>"

    return "\n".join(
        [
            "Provide a short investor-facing summary and a one-line recommendation "
            f"for the following ticker: {ticker}",
            "",
            "Source data (do not hallucinate beyond these facts):",
            source,
            "",
            "Return JSON ONLY with these fields:",
            "  - one_liner (string): one-line recommendation or summary",
            f"  - summary (string): investor-facing summary, {_LENGTH_HINT[mode]}",
            "  - citation_snippets (optional array): [{source, url}]",
            "",
            "Important: respond only with valid JSON. Do not include explanatory text.",
        ]
    )


async def _contained(label: str, branch: Awaitable[Any]) -> Any:
    """Run one fan-out branch; any failure yields None for that branch only."""
    try:
        return await branch
    except Exception:
        logger.warning("Research branch %s failed", label, exc_info=True)
        return None


def _raw_model_output(raw_text: str) -> Any:
    try:
        return loads_json(raw_text)
    except ValueError:
        return raw_text


def _envelope_citations(raw_text: str) -> Any:
    """Provider-level citations (e.g. a top-level list of URLs), if any."""
    try:
        envelope = loads_json(raw_text)
    except ValueError:
        return None
    if isinstance(envelope, dict):
        return envelope.get("citations") or envelope.get("search_results")
    return None


class SummarizeResearchUseCase:
    """Fans out snapshot reads, then asks the completion provider for a summary."""

    def __init__(
        self,
        market_data: MarketDataPort,
        completion: Optional[CompletionPort] = None,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._market_data = market_data
        self._completion = completion
        self._max_tokens = max_tokens

    async def gather_snapshot(self, ticker: str) -> ResearchSnapshot:
        """Issue the four reads concurrently and bound the results."""
        stock_data, historical, price_target, commodities = await asyncio.gather(
            _contained("stock", self._market_data.fetch_json("/stock", {"name": ticker})),
            _contained(
                "historical",
                self._market_data.fetch_json(
                    "/historical_data", {"symbol": ticker, "period": "1yr", "filter": "price"}
                ),
            ),
            _contained("price_target", self._market_data.fetch_json("/stock_target_price", {"stock_id": ticker})),
            _contained("commodities", self._market_data.fetch_json("/commodities")),
        )
        return build_snapshot(
            stock_data=stock_data,
            historical=historical,
            price_target=price_target,
            commodities=commodities,
        )

    async def execute(self, command: SummarizeResearchCommand) -> ResearchSummary:
        """Run the summarizer pipeline.

        Args:
            command: Ticker and summary mode.

        Returns:
            A ResearchSummary in one of the three terminal states.
        """
        ticker = (command.ticker or "").strip()
        if not ticker:
            raise MissingParameterError("ticker", "Missing ticker in body or ?ticker")
        mode = normalize_mode(command.mode)

        snapshot = await self.gather_snapshot(ticker)
        logger.info("Research snapshot ready for ticker=%s (empty=%s)", ticker, snapshot.is_empty)

        if self._completion is None or not self._completion.is_configured:
            return ResearchSummary(
                ticker=ticker,
                mode=mode,
                status=SummaryStatus.PARTIAL_NO_MODEL,
                snapshot=snapshot,
                summary=NO_MODEL_SUMMARY,
                detail="No completion provider configured",
            )

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_research_prompt(ticker, snapshot, mode)},
        ]
        try:
            result = await self._completion.complete(messages, max_tokens=self._max_tokens)
        except CompletionError as exc:
            logger.error("Research completion failed for ticker=%s: %s", ticker, exc.message)
            return self._model_failed(ticker, mode, snapshot, exc.message[:180])

        try:
            parsed = extract_json_object(result.raw_text, required_keys=SUMMARY_KEYS)
        except ExtractionError:
            logger.info("Model=%s answer had no JSON object; using its text", result.model_id)
            parsed = None

        raw_output = _raw_model_output(result.raw_text)
        content = extract_message_content(result.raw_text)
        if content is None and isinstance(raw_output, str):
            content = raw_output
        one_liner, summary, citations = normalize_summary_fields(
            parsed,
            fallback_text=content,
            fallback_citations=_envelope_citations(result.raw_text),
        )

        if not summary:
            return self._model_failed(
                ticker, mode, snapshot, "Model returned no usable content", raw_output, result.model_id
            )

        return ResearchSummary(
            ticker=ticker,
            mode=mode,
            status=SummaryStatus.FULL,
            snapshot=snapshot,
            one_liner=one_liner,
            summary=summary,
            citations=citations,
            raw_model_output=raw_output,
            model=result.model_id,
        )

    @staticmethod
    def _model_failed(
        ticker: str,
        mode: str,
        snapshot: ResearchSnapshot,
        detail: str,
        raw_output: Any = None,
        model: Optional[str] = None,
    ) -> ResearchSummary:
        return ResearchSummary(
            ticker=ticker,
            mode=mode,
            status=SummaryStatus.PARTIAL_MODEL_FAILED,
            snapshot=snapshot,
            summary=MODEL_FAILED_SUMMARY,
            raw_model_output=raw_output,
            model=model,
            detail=detail,
        )
