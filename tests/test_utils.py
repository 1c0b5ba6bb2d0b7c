"""Tests for shared utility functions."""

from decimal import Decimal

from src.utils import clamp, format_money


class TestClamp:
    def test_within_range(self):
        assert clamp(3, 0, 5) == 3

    def test_below(self):
        assert clamp(-1, 0, 5) == 0

    def test_above(self):
        assert clamp(7, 0, 5) == 5

    def test_empty_range_collapses_to_lower(self):
        assert clamp(1, 0, -2) == 0


class TestFormatMoney:
    def test_two_decimals(self):
        assert format_money(Decimal("280"), "CHF") == "CHF 280.00"

    def test_fractional(self):
        assert format_money(Decimal("12.5"), "EUR") == "EUR 12.50"
