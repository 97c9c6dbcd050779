"""Tests for value parsing and pt-BR formatting."""

from datetime import date
from decimal import Decimal

import pytest

from prime_crm.values import (
    display_date,
    display_number,
    format_date_br,
    format_money_br,
    format_number_br,
    parse_date,
    parse_decimal,
)


class TestParseDecimal:
    """Tests for parse_decimal()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1234.56", Decimal("1234.56")),
            ("1.234,56", Decimal("1234.56")),
            ("R$ 350.000", Decimal("350000")),
            ("10,5", Decimal("10.5")),
            (" 42 ", Decimal("42")),
        ],
    )
    def test_formats(self, raw: str, expected: Decimal) -> None:
        assert parse_decimal(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", "abc", "NaN", "Infinity"])
    def test_invalid(self, raw: str | None) -> None:
        assert parse_decimal(raw) is None


class TestParseDate:
    """Tests for parse_date()."""

    def test_iso(self) -> None:
        assert parse_date("2024-07-01") == date(2024, 7, 1)

    def test_iso_with_time(self) -> None:
        assert parse_date("2024-07-01T10:00:00Z") == date(2024, 7, 1)

    def test_br(self) -> None:
        assert parse_date("01/07/2024") == date(2024, 7, 1)

    @pytest.mark.parametrize("raw", [None, "", "amanhã", "2024-13-01"])
    def test_invalid(self, raw: str | None) -> None:
        assert parse_date(raw) is None


class TestFormatting:
    """Tests for pt-BR formatting."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Decimal("350000"), "350.000"),
            (Decimal("1234.5"), "1.234,5"),
            (Decimal("999"), "999"),
            (Decimal("-1234567.125"), "-1.234.567,125"),
            (Decimal("0.0004"), "0"),
        ],
    )
    def test_format_number_br(self, value: Decimal, expected: str) -> None:
        assert format_number_br(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Decimal("180000"), "180.000,00"),
            (Decimal("1234.5"), "1.234,50"),
            (Decimal("0.999"), "1,00"),
        ],
    )
    def test_format_money_br(self, value: Decimal, expected: str) -> None:
        assert format_money_br(value) == expected

    def test_large_values_keep_every_digit(self) -> None:
        """Test values past the default decimal precision still format."""
        grouped = "1" + ".000" * 10

        assert format_number_br(Decimal("1e30")) == grouped
        assert format_money_br(Decimal("1e30")) == grouped + ",00"
        assert display_number("1234567890123456789012345678901,5") == "1.234.567.890.123.456.789.012.345.678.901,5"

    def test_format_date_br(self) -> None:
        assert format_date_br(date(2024, 8, 10)) == "10/08/2024"

    def test_display_helpers_fall_back_to_raw(self) -> None:
        """Test unparseable input is shown as typed."""
        assert display_number(" a combinar ") == "a combinar"
        assert display_date("semana que vem") == "semana que vem"
        assert display_number("280000") == "280.000"
        assert display_date("2024-08-10") == "10/08/2024"
