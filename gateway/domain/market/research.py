"""
Pure helpers for the aggregating research summarizer.

Snapshot building bounds every sub-field before it is used as model
context; summary normalization turns whatever the model returned into
the fixed one-liner / summary / citations shape.
"""

import json
from typing import Any, Mapping, Optional

from gateway.domain.market.entities import ResearchSnapshot
from gateway.domain.market.field_mapping import FieldSpec, lookup, to_text

MAX_HISTORICAL_POINTS = 120
MAX_COMMODITIES = 12
MAX_OBJECT_CHARS = 6_000
MAX_TEXT_CHARS = 1_000
MAX_PRICE_TARGET_TEXT_CHARS = 500
MAX_SUMMARY_CHARS = 2_000
MAX_ONE_LINER_CHARS = 160
MAX_CITATIONS = 10


def _bound_object(value: Any, text_limit: int) -> Any:
    """Keep JSON structures under MAX_OBJECT_CHARS; wrap text as ``{"raw": ...}``."""
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        serialized = json.dumps(value, default=str)
        if len(serialized) <= MAX_OBJECT_CHARS:
            return value
        return {"raw": serialized[:MAX_OBJECT_CHARS], "truncated": True}
    text = str(value)
    return {"raw": text[:text_limit]}


def _tail_series(series: Any) -> Any:
    if isinstance(series, list):
        return series[-MAX_HISTORICAL_POINTS:]
    return series


def _bound_historical(value: Any) -> Any:
    """Keep the most recent points of a series, including ``datasets[].values``."""
    if value is None:
        return None
    if isinstance(value, list):
        return value[-MAX_HISTORICAL_POINTS:]
    if isinstance(value, dict):
        datasets = value.get("datasets")
        if isinstance(datasets, list):
            bounded = dict(value)
            bounded["datasets"] = [
                {**ds, "values": _tail_series(ds.get("values"))} if isinstance(ds, dict) else ds
                for ds in datasets
            ]
            return _bound_object(bounded, MAX_TEXT_CHARS)
        return _bound_object(value, MAX_TEXT_CHARS)
    return {"raw": str(value)[:MAX_TEXT_CHARS]}


def build_snapshot(
    stock_data: Any = None,
    historical: Any = None,
    price_target: Any = None,
    commodities: Any = None,
) -> ResearchSnapshot:
    """Assemble a bounded snapshot from best-effort branch results."""
    if isinstance(commodities, list):
        bounded_commodities = commodities[:MAX_COMMODITIES]
    else:
        bounded_commodities = _bound_object(commodities, MAX_TEXT_CHARS)

    return ResearchSnapshot(
        stock_data=_bound_object(stock_data, MAX_TEXT_CHARS),
        historical=_bound_historical(historical),
        price_target=_bound_object(price_target, MAX_PRICE_TARGET_TEXT_CHARS),
        commodities=bounded_commodities,
    )


ONE_LINER = FieldSpec("one_liner", ("one_liner", "oneLiner", "oneLine", "one_liner_text", "headline"), to_text)
SUMMARY = FieldSpec("summary", ("summary", "answer", "text"), to_text)
CITATIONS = FieldSpec("citations", ("citation_snippets", "citations", "citation", "sources"))

SUMMARY_KEYS = ONE_LINER.synonyms + SUMMARY.synonyms + CITATIONS.synonyms


def first_sentence(text: str, limit: int = MAX_ONE_LINER_CHARS) -> Optional[str]:
    sentence = text.split(".")[0].strip()
    return sentence[:limit] or None


def normalize_citations(value: Any) -> Optional[list[dict]]:
    """Coerce strings, URL lists and ``{source, url}`` objects into ``[{source, url}]``."""
    if value is None:
        return None
    items = value if isinstance(value, list) else [value]
    citations: list[dict] = []
    for item in items[:MAX_CITATIONS]:
        if isinstance(item, str) and item.strip():
            text = item.strip()
            url = text if text.startswith(("http://", "https://")) else None
            citations.append({"source": text, "url": url})
        elif isinstance(item, Mapping):
            url = to_text(item.get("url") or item.get("link") or item.get("href"))
            source = to_text(item.get("source") or item.get("title") or item.get("name")) or url
            if source or url:
                citations.append({"source": source, "url": url})
    return citations or None


def normalize_summary_fields(
    parsed: Optional[Mapping[str, Any]],
    fallback_text: Optional[str],
    fallback_citations: Any = None,
) -> tuple[Optional[str], Optional[str], Optional[list[dict]]]:
    """Return ``(one_liner, summary, citations)`` with the documented fallback order.

    Explicit fields win; otherwise the first-choice text (truncated) becomes
    the summary and its first sentence the one-liner.
    """
    one_liner = summary = citations = None
    if parsed:
        one_liner = lookup(parsed, ONE_LINER)
        summary = lookup(parsed, SUMMARY)
        citations = normalize_citations(lookup(parsed, CITATIONS))

    if summary is None and one_liner is None and fallback_text:
        summary = fallback_text.strip()[:MAX_SUMMARY_CHARS] or None

    if summary:
        summary = summary[:MAX_SUMMARY_CHARS]
    if not one_liner and summary:
        one_liner = first_sentence(summary)
    if not summary and one_liner:
        summary = one_liner
    if one_liner:
        one_liner = one_liner[:MAX_ONE_LINER_CHARS]

    if citations is None:
        citations = normalize_citations(fallback_citations)
    return one_liner, summary, citations
