"""
Tests for deal normalization.
"""

import pytest

from gateway.application.market.deal_normalizer import (
    normalize_deal,
    normalize_deals,
    parse_deal_date,
    parse_deal_value,
    parse_url,
)


class TestParsers:
    """Tests for the lenient value/date/url parsers."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("$1.2 billion", 1.2e9),
            ("₹500 crore", 5e9),
            ("3.4bn", 3.4e9),
            ("USD 250 million", 2.5e8),
            ("2,500,000", 2.5e6),
            (75, 75.0),
        ],
    )
    def test_parse_deal_value(self, raw, expected) -> None:
        assert parse_deal_value(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "Undisclosed", True, {"v": 1}, "9" * 400, float("inf"), 10**400])
    def test_parse_deal_value_rejects(self, raw) -> None:
        assert parse_deal_value(raw) is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2024-03-05", "2024-03-05"),
            ("March 5, 2024", "2024-03-05"),
            ("2024-03-05T10:30:00Z", "2024-03-05"),
        ],
    )
    def test_parse_deal_date(self, raw, expected) -> None:
        assert parse_deal_date(raw) == expected

    @pytest.mark.parametrize("raw", ["unknown", None, "", "FY24", "Q3 2024", "mid-2023", "March 5", "2024"])
    def test_parse_deal_date_rejects_garbage(self, raw) -> None:
        assert parse_deal_date(raw) is None

    def test_parse_url_keeps_absolute_http_only(self) -> None:
        assert parse_url("https://news.example.com/a") == "https://news.example.com/a"
        assert parse_url("/relative/path") is None
        assert parse_url("javascript:alert(1)") is None


class TestNormalizeDeal:
    """Tests for normalize_deal."""

    def test_synonyms_and_defaults(self) -> None:
        deal = normalize_deal(
            {"buyer": "Reliance", "target_company": "Jio Cinema", "deal_value": "$1.2 billion", "url": "https://x.test/d"},
            default_region="India",
        )
        assert deal.acquirer == "Reliance"
        assert deal.target == "Jio Cinema"
        assert deal.value == "$1.2 billion"
        assert deal.value_number == pytest.approx(1.2e9)
        assert deal.region == "India"
        assert deal.source == "https://x.test/d"
        assert deal.type == "M&A"
        assert deal.image is None

    def test_explicit_value_number_wins(self) -> None:
        deal = normalize_deal({"acquirer": "A", "target": "B", "value": "$2 billion", "valueNumber": 1500})
        assert deal.value_number == 1500.0

    def test_missing_party_is_undisclosed(self) -> None:
        deal = normalize_deal({"acquirer": "A"})
        assert deal.target == "Undisclosed"
        assert deal.region == "Global"

    def test_no_parties_is_dropped(self) -> None:
        assert normalize_deal({"value": "$1 billion"}) is None


class TestNormalizeDeals:
    """Tests for normalize_deals."""

    def test_deduplicates_and_caps(self) -> None:
        items = [
            {"acquirer": "A", "target": "B"},
            {"acquirer": "a", "target": "b", "sector": "dup"},
            "not a deal",
            {"summary": "no parties"},
            {"acquirer": "C", "target": "D"},
            {"acquirer": "E", "target": "F"},
        ]
        deals = normalize_deals(items, limit=2)
        assert [(d.acquirer, d.target) for d in deals] == [("A", "B"), ("C", "D")]

    def test_empty_input(self) -> None:
        assert normalize_deals([], limit=10) == []
