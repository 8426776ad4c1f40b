"""
Rounding helpers for INR amounts.

All pricing and fee math rounds halves UP (towards +infinity), the same rule
as the web client that displays these amounts. Python's built-in round() is
banker's rounding and must not be used for currency here.

Non-finite values (nan, ±inf) pass through unchanged; callers validate input.
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves towards +infinity."""
    if not math.isfinite(value):
        return value
    return math.floor(value + 0.5)


def round_to_paise(value: float) -> float:
    """Round to 2 decimal places, halves towards +infinity."""
    if not math.isfinite(value):
        return value
    return math.floor(value * 100 + 0.5) / 100


def to_paise(amount: float) -> int:
    """Convert a rupee amount to integer paise for provider APIs."""
    return round_half_up(amount * 100)
