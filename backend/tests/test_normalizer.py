"""Tests for price parsing and URL canonicalization."""

from decimal import Decimal

import pytest

from pricewatch.scrapers.utils.normalizer import normalize_url, parse_price


class TestParsePrice:
    """Separator roles are inferred from position, never from currency."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.234,56", Decimal("1234.56")),
            ("1,234.56", Decimal("1234.56")),
            ("€ 1.299,00", Decimal("1299.00")),
            ("$1,234.56", Decimal("1234.56")),
            ("129,99 €", Decimal("129.99")),
            ("63", Decimal("63")),
            ("63.37", Decimal("63.37")),
            ("63,5", Decimal("63.5")),
            ("1.000", Decimal("1000")),
            ("1,000", Decimal("1000")),
            ("1.234.567", Decimal("1234567")),
            ("1.234.567,89", Decimal("1234567.89")),
        ],
    )
    def test_known_formats(self, raw, expected):
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("currency", [None, "EUR", "USD", "GBP"])
    def test_currency_hint_does_not_change_result(self, currency):
        assert parse_price("63.37", currency) == Decimal("63.37")
        assert parse_price("1.234,56", currency) == Decimal("1234.56")

    @pytest.mark.parametrize("raw", [None, "", "   ", "N/A", "Prezzo non disponibile", "€"])
    def test_unusable_input_is_zero(self, raw):
        assert parse_price(raw) == Decimal("0")

    def test_numeric_metadata_values(self):
        assert parse_price(799) == Decimal("799")
        assert parse_price("799.00") == Decimal("799.00")

    def test_never_negative(self):
        # The minus sign is stripped with the other non-price characters
        assert parse_price("-12,50") == Decimal("12.50")

    def test_bare_separators_are_zero(self):
        assert parse_price(".,.") == Decimal("0")


class TestNormalizeUrl:

    def test_strips_tracking_params_and_fragment(self):
        url = "HTTPS://WWW.Amazon.IT/dp/B0ABC?utm_source=mail&th=1&gclid=xyz#reviews"
        assert normalize_url(url) == "https://www.amazon.it/dp/B0ABC?th=1"

    def test_keeps_path_case(self):
        assert normalize_url("https://example.com/Product/ABC") == "https://example.com/Product/ABC"

    def test_empty(self):
        assert normalize_url("") == ""

    def test_remaining_query_keeps_its_encoding(self):
        url = "https://www.ebay.it/itm/1?hash=item1a:g:abc&utm_medium=x&q=a%20b&flag"
        assert normalize_url(url) == "https://www.ebay.it/itm/1?hash=item1a:g:abc&q=a%20b&flag"

    def test_only_tracking_params_leaves_no_query(self):
        assert normalize_url("https://shop.example.com/p?fbclid=1&mc_cid=2") == "https://shop.example.com/p"
