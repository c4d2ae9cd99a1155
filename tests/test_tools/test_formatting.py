"""Tests for amount and percentage formatting."""

from decimal import Decimal

import pytest

from redenom.tools.formatting import (
    format_amount,
    format_currency,
    format_percentage,
    round2,
    trim_zeros,
)


class TestTrimZeros:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("15.50", "15.5"), ("20.00", "20"), ("1000", "1000"), ("0.05", "0.05")],
    )
    def test_trims_fraction_only(self, text: str, expected: str) -> None:
        assert trim_zeros(text) == expected


class TestRound2:
    def test_half_rounds_away_from_zero(self) -> None:
        assert round2(Decimal("2.345")) == Decimal("2.35")
        assert round2(Decimal("-2.345")) == Decimal("-2.35")

    def test_large_value_keeps_every_digit(self) -> None:
        value = Decimal("123456789012345678901234567890.125")
        assert round2(value) == Decimal("123456789012345678901234567890.13")


class TestFormatAmount:
    def test_groups_thousands(self) -> None:
        assert format_amount(Decimal("1234567.5")) == "1,234,567.5"

    def test_whole_numbers_have_no_fraction(self) -> None:
        assert format_amount(Decimal("250000")) == "250,000"

    def test_rounds_to_two_places(self) -> None:
        assert format_amount(Decimal("93.7549")) == "93.75"

    def test_appends_label(self) -> None:
        assert format_amount(Decimal("2500"), "new SYP") == "2,500 new SYP"

    def test_negative_zero_renders_as_zero(self) -> None:
        assert format_amount(Decimal("-0.001")) == "0"

    def test_amount_beyond_default_precision(self) -> None:
        assert format_amount(Decimal("1e27")) == "1" + ",000" * 9
        assert format_amount(Decimal("1.5E+31"), "old SYP") == "15" + ",000" * 10 + " old SYP"

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_renders_dash(self, value: str) -> None:
        assert format_amount(Decimal(value)) == "-"


class TestFormatCurrency:
    def test_uses_display_label(self) -> None:
        assert format_currency(Decimal("1500000"), "old") == "1,500,000 old SYP"
        assert format_currency(Decimal("100"), "USD") == "100 US dollar"

    def test_unknown_code_used_verbatim(self) -> None:
        assert format_currency(Decimal("5"), "GBP") == "5 GBP"


class TestFormatPercentage:
    def test_no_grouping_no_sign(self) -> None:
        assert format_percentage(Decimal("1234.5")) == "1234.5"

    def test_negative(self) -> None:
        assert format_percentage(Decimal("-33.3333")) == "-33.33"

    def test_zero(self) -> None:
        assert format_percentage(Decimal("0")) == "0"
        assert format_percentage(Decimal("-0.0001")) == "0"
