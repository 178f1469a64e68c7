"""
Normalization of LLM-produced deal objects into DealRecord entities.

The model is asked for a fixed schema but answers drift: alternate key
names, values as prose ("$1.2 billion"), dates in any format, relative
or missing URLs. Every record leaving this module has every DealRecord
field set, possibly to None.
"""

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlparse

from dateutil import parser as dateparser

from gateway.domain.market.entities import DealRecord
from gateway.domain.market.field_mapping import FieldSpec, apply_specs, finite_float, to_number, to_text

logger = logging.getLogger(__name__)

DEFAULT_REGION = "Global"
DEFAULT_DEAL_TYPE = "M&A"
UNDISCLOSED = "Undisclosed"
MAX_SUMMARY_CHARS = 600

_SCALE_WORDS = {
    "thousand": 1e3,
    "k": 1e3,
    "lakh": 1e5,
    "lakhs": 1e5,
    "lac": 1e5,
    "million": 1e6,
    "mn": 1e6,
    "m": 1e6,
    "mm": 1e6,
    "crore": 1e7,
    "crores": 1e7,
    "cr": 1e7,
    "billion": 1e9,
    "bn": 1e9,
    "b": 1e9,
    "trillion": 1e12,
    "tn": 1e12,
    "t": 1e12,
}

_VALUE_RE = re.compile(
    r"(?P<number>\d[\d,]*(?:\.\d+)?)\s*(?P<scale>[a-zA-Z]+)?",
)

_DATE_PROBE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_deal_value(value: Any) -> Optional[float]:
    """Parse "$1.2 billion", "₹500 crore", "3.4bn" or 2500000 into a number.

    Currency symbols are ignored: the number is expressed in the deal's
    own currency, as written.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return finite_float(value)
    if not isinstance(value, str):
        return None

    match = _VALUE_RE.search(value)
    if not match:
        return None
    number = finite_float(match.group("number").replace(",", ""))
    if number is None:
        return None
    scale = (match.group("scale") or "").lower()
    return finite_float(number * _SCALE_WORDS.get(scale, 1.0))


def parse_deal_date(value: Any) -> Optional[str]:
    """Return an ISO-8601 date (YYYY-MM-DD) or None when unparseable.

    dateutil fills missing components from its ``default``. The text is
    parsed against two defaults differing in year, month and day; if the
    results disagree, part of the date was guessed and None is returned
    ("FY24", "Q3 2024", "mid-2023").
    """
    text = to_text(value)
    if not text:
        return None
    dates = set()
    for default in _DATE_PROBE_DEFAULTS:
        try:
            dates.add(dateparser.parse(text, default=default, fuzzy=True).date())
        except (ValueError, OverflowError):
            return None
    if len(dates) != 1:
        return None
    return dates.pop().isoformat()


def parse_url(value: Any) -> Optional[str]:
    """Keep absolute http(s) URLs only."""
    text = to_text(value)
    if not text:
        return None
    parsed = urlparse(text)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return text
    return None


def _truncate(limit: int):
    def coerce(value: Any) -> Optional[str]:
        text = to_text(value)
        return text[:limit] if text else None

    return coerce


DEAL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("acquirer", ("acquirer", "buyer", "acquiring_company", "acquirerName", "bidder"), to_text),
    FieldSpec("target", ("target", "target_company", "targetName", "acquired", "seller", "company"), to_text),
    FieldSpec("value", ("value", "deal_value", "dealValue", "amount", "price"), to_text),
    FieldSpec("value_number", ("valueNumber", "value_number", "value_usd", "valueUSD", "amount_usd"), to_number),
    FieldSpec("sector", ("sector", "industry"), to_text),
    FieldSpec("region", ("region", "country", "geography", "market"), to_text),
    FieldSpec("date", ("date", "announced", "announcement_date", "announcedDate", "deal_date"), parse_deal_date),
    FieldSpec("source", ("source", "url", "link", "source_url", "sourceUrl"), parse_url),
    FieldSpec("image", ("image", "image_url", "imageUrl", "logo", "thumbnail"), parse_url),
    FieldSpec("summary", ("summary", "description", "details", "headline"), _truncate(MAX_SUMMARY_CHARS)),
    FieldSpec("type", ("type", "deal_type", "dealType"), to_text),
)


def normalize_deal(raw: Mapping[str, Any], default_region: str = DEFAULT_REGION) -> Optional[DealRecord]:
    """Normalize one raw deal object.

    Returns None when neither party is named: such a row carries no
    usable information for the tracker.
    """
    fields = apply_specs(raw, DEAL_FIELDS)
    if not fields["acquirer"] and not fields["target"]:
        return None

    value_number = fields["value_number"]
    if value_number is None:
        value_number = parse_deal_value(fields["value"])

    return DealRecord(
        acquirer=fields["acquirer"] or UNDISCLOSED,
        target=fields["target"] or UNDISCLOSED,
        region=fields["region"] or default_region,
        value=fields["value"],
        value_number=value_number,
        sector=fields["sector"],
        date=fields["date"],
        source=fields["source"],
        image=fields["image"],
        summary=fields["summary"],
        type=fields["type"] or DEFAULT_DEAL_TYPE,
    )


def normalize_deals(
    items: Iterable[Any], limit: int, default_region: str = DEFAULT_REGION
) -> list[DealRecord]:
    """Normalize, de-duplicate by (acquirer, target) and cap at ``limit``."""
    deals: list[DealRecord] = []
    seen: set[tuple[str, str]] = set()
    skipped = 0

    for item in items:
        if len(deals) >= limit:
            break
        if not isinstance(item, Mapping):
            skipped += 1
            continue
        deal = normalize_deal(item, default_region=default_region)
        if deal is None:
            skipped += 1
            continue
        key = (deal.acquirer.lower(), deal.target.lower())
        if key in seen:
            continue
        seen.add(key)
        deals.append(deal)

    if skipped:
        logger.debug("Skipped %d unusable deal item(s)", skipped)
    return deals
