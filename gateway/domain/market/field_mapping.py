"""
Declarative field-synonym lookups.

Upstream financial payloads and LLM answers name the same attribute in
several ways (``currentPrice`` / ``current_price`` / ``price`` ...). Each
logical attribute is described once as an ordered tuple of candidate
keys; the first candidate holding a usable value wins.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

# Exchange preference when a price is reported per exchange ({"NSE": .., "BSE": ..}).
EXCHANGE_PREFERENCE = ("NSE", "BSE")

_NUMBER_RE = re.compile(r"[-+]?\d[\d,]*(?:\.\d+)?|[-+]?\.\d+")


@dataclass(frozen=True)
class FieldSpec:
    """One logical attribute: output name, candidate keys and a coercion."""

    name: str
    synonyms: tuple[str, ...]
    coerce: Callable[[Any], Any] = lambda v: v


def finite_float(value: Any) -> Optional[float]:
    """``float(value)``, or None when it overflows or is NaN/infinite."""
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_number(value: Any) -> Optional[float]:
    """Coerce numbers, numeric strings ("3,400.50", "-1.2%") and per-exchange maps."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return finite_float(value)
    if isinstance(value, Mapping):
        for exchange in EXCHANGE_PREFERENCE:
            number = to_number(value.get(exchange))
            if number is not None:
                return number
        for nested in value.values():
            number = to_number(nested)
            if number is not None:
                return number
        return None
    if isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if match:
            return finite_float(match.group(0).replace(",", ""))
    return None


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def lookup(payload: Mapping[str, Any], spec: FieldSpec) -> Any:
    """Return the first candidate value that survives coercion, else None."""
    for key in spec.synonyms:
        if key not in payload:
            continue
        value = spec.coerce(payload[key])
        if value is not None:
            return value
    return None


def apply_specs(payload: Mapping[str, Any], specs: tuple[FieldSpec, ...]) -> dict:
    """Map ``payload`` through ``specs``; every spec yields a key (possibly None)."""
    return {spec.name: lookup(payload, spec) for spec in specs}


QUOTE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("companyName", ("companyName", "company_name", "name", "company"), to_text),
    FieldSpec(
        "currentPrice",
        ("currentPrice", "current_price", "price", "lastTradedPrice", "last_price", "ltp", "close"),
        to_number,
    ),
    FieldSpec(
        "percentChange",
        ("percentChange", "percent_change", "pChange", "changePercent", "percentageChange"),
        to_number,
    ),
    FieldSpec("change", ("change", "net_change", "netChange", "priceChange"), to_number),
    FieldSpec("high", ("high", "dayHigh", "day_high"), to_number),
    FieldSpec("low", ("low", "dayLow", "day_low"), to_number),
    FieldSpec("volume", ("volume", "totalVolume", "total_volume", "tradedVolume"), to_number),
)


def normalize_quote(symbol: str, payload: Mapping[str, Any]) -> dict:
    """Build the public quote shape, keeping the upstream object under ``raw``."""
    quote = {"symbol": symbol}
    quote.update(apply_specs(payload, QUOTE_FIELDS))
    quote["raw"] = dict(payload)
    return quote
