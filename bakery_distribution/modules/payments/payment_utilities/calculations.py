"""
payment_utilities/calculations.py

Pure helpers for the ledger math. Mirrors the SQL side (v_bill_balances and
the bills triggers).

Do not import repos or open DB connections here.
Only compute numbers; formatting belongs to the caller.
"""
from __future__ import annotations

from typing import Iterable

from ....utils.helpers import round_money

__all__ = [
    "clamp_non_negative",
    "line_amount",
    "sum_amounts",
    "outstanding_balance",
]


# -----------------------------
# Core utilities
# -----------------------------

def clamp_non_negative(x: float) -> float:
    """Return x if x > 0, else 0.0."""
    return x if x > 0.0 else 0.0


# -----------------------------
# Assignment / delivery lines
# -----------------------------

def line_amount(quantity: int, quantity_returned: int, unit_price: float) -> float:
    """
    (quantity - quantity_returned) * unit_price, rounded to money places.

    Used for both Assignment.revenue and Delivery.total_amount. Callers
    guarantee 0 <= quantity_returned <= quantity, so the result is within
    [0, quantity * unit_price]. Prices are whole cents (parse_money), so the
    rounding only drops float noise.
    """
    return round_money((quantity - quantity_returned) * unit_price)


def sum_amounts(amounts: Iterable[float]) -> float:
    return round_money(sum(amounts))


# -----------------------------
# Bills
# -----------------------------

def outstanding_balance(total_amount: float, paid_amount: float) -> float:
    """total_amount - paid_amount, clamped at >= 0."""
    return round_money(clamp_non_negative(total_amount - paid_amount))
