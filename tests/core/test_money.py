from decimal import Decimal

import pytest

from src.shared.utils.money import format_currency, round_money, to_money


class TestRoundMoney:
    """Tests for round_money function."""

    def test_round_half_up(self):
        """Test ROUND_HALF_UP behavior."""
        assert round_money(10.125) == Decimal("10.13")
        assert round_money(10.124) == Decimal("10.12")
        assert round_money(10.115) == Decimal("10.12")  # banker's rounding edge case
        assert round_money(10.145) == Decimal("10.15")

    def test_from_decimal(self):
        """Test rounding from Decimal input."""
        assert round_money(Decimal("10.125")) == Decimal("10.13")
        assert round_money(Decimal("99.999")) == Decimal("100.00")

    def test_from_string(self):
        """Test rounding from string input."""
        assert round_money("10.125") == Decimal("10.13")
        assert round_money("0.001") == Decimal("0.00")

    def test_from_int(self):
        """Test rounding from int input."""
        assert round_money(100) == Decimal("100.00")
        assert round_money(0) == Decimal("0.00")

    def test_negative_numbers(self):
        """Test rounding negative numbers."""
        assert round_money(-10.125) == Decimal("-10.12")  # rounds toward zero
        assert round_money(-10.126) == Decimal("-10.13")

    def test_precision(self):
        """Test that result always has 2 decimal places."""
        result = round_money(10)
        assert str(result) == "10.00"

        result = round_money(10.1)
        assert str(result) == "10.10"


class TestToMoney:
    """Tests for to_money coercion of backend values."""

    def test_numeric_inputs(self):
        assert to_money(12) == Decimal("12")
        assert to_money(12.5) == Decimal("12.5")
        assert to_money("1000.25") == Decimal("1000.25")
        assert to_money(Decimal("7.10")) == Decimal("7.10")

    def test_missing_and_malformed_become_zero(self):
        for value in (None, "", "abc", True, [], "NaN", float("inf")):
            assert to_money(value) == Decimal("0")


class TestFormatCurrency:
    """Tests for format_currency."""

    def test_thousands_separator(self):
        assert format_currency(Decimal("1234.5")) == "BDT 1,234.50"
        assert format_currency(1000000) == "BDT 1,000,000.00"

    def test_negative_and_other_currency(self):
        assert format_currency(-20, "USD") == "-USD 20.00"

    def test_none_is_zero(self):
        assert format_currency(None) == "BDT 0.00"
