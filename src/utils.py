"""Shared utilities used across the booking core."""

from decimal import Decimal


def clamp(value: int, lower: int, upper: int) -> int:
    """Bound value to [lower, upper]; an empty range collapses to lower."""
    return max(lower, min(value, upper))


def format_money(amount: Decimal, currency: str) -> str:
    """Format an amount with two decimals, e.g. ``CHF 280.00``."""
    return f"{currency} {amount.quantize(Decimal('0.01'))}"
