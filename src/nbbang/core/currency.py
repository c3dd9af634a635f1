#!/usr/bin/env python3
"""
Currency Rounding and Division Utilities

Integer-safe money helpers for the N-bbang settlement engine.
Settlement amounts are whole KRW units; foreign-currency figures are kept as
floats and only rounded to two decimals at the display boundary.

Rounding Rules:
- Even splits use ceiling division: the remainder goes to one share
- "Tipped" amounts round up to the next 10 KRW
- Conversion to KRW rounds half-up to the nearest won
"""

import math
from typing import Union

SETTLEMENT_CURRENCY = "KRW"


def split_even(total: int, count: int) -> int:
    """
    Split an integer amount evenly, rounding the share up when not exact.

    Args:
        total: Amount to split (whole currency units)
        count: Number of shares

    Returns:
        Per-share amount; 0 when there are no shares

    Examples:
        split_even(100, 3) -> 34
        split_even(100, 4) -> 25
        split_even(100, 0) -> 0
    """
    if count == 0:
        return 0
    if total % count == 0:
        return total // count
    return total // count + 1


def tip(amount: Union[int, float]) -> int:
    """
    Round an amount up to the nearest 10 currency units.

    Uses ceiling toward positive infinity, so tip(-1537) == -1530.
    Use tip_signed() for the sign-preserving settlement variant.
    """
    return math.ceil(amount / 10) * 10


def tip_signed(amount: int) -> int:
    """
    Round the absolute value of a settlement amount up to the next 10, keeping the sign.

    Examples:
        tip_signed(1537) -> 1540
        tip_signed(-1537) -> -1540
        tip_signed(-1500) -> -1500
    """
    if amount == 0:
        return 0
    if abs(amount) % 10 == 0:
        return amount
    magnitude = math.ceil(abs(amount) / 10) * 10
    return magnitude if amount > 0 else -magnitude


def round_half_up(value: float) -> int:
    """
    Round to the nearest whole unit, halves toward positive infinity.

    Example:
        round_half_up(2.5) -> 3
        round_half_up(-2.5) -> -2
    """
    return int(math.floor(value + 0.5))


def round_foreign(value: float) -> float:
    """Round a foreign-currency figure to two decimal places for display."""
    return math.floor(value * 100 + 0.5) / 100


def round_ratio(value: float) -> float:
    """Round a percentage to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def convert_to_krw(original_price: float, exchange_rate: float) -> int:
    """
    Convert a foreign amount to whole KRW.

    Args:
        original_price: Amount in the payment's own currency
        exchange_rate: "1 unit = rate KRW"

    Returns:
        round_half_up(original_price * exchange_rate)
    """
    return round_half_up(original_price * exchange_rate)


def is_settlement_currency(currency: str | None) -> bool:
    """Check whether a currency code is the settlement currency (KRW)."""
    return (currency or SETTLEMENT_CURRENCY).upper() == SETTLEMENT_CURRENCY


def format_won(amount: int) -> str:
    """Format whole KRW with thousands separators, e.g. 12340 -> '12,340원'."""
    return f"{amount:,}원"


def format_foreign(amount: float, currency: str) -> str:
    """Format a foreign amount with two decimals, e.g. '1,234.50 JPY'."""
    return f"{round_foreign(amount):,.2f} {currency}"


def allocate_shares(total: int, count: int) -> list[int]:
    """
    Allocate a total into shares by repeated split_even.

    Each share takes split_even() of what is left over the shares still
    unassigned, so the shares always sum to the total and differ by at most 1.

    Example:
        allocate_shares(100, 3) -> [34, 33, 33]
    """
    shares: list[int] = []
    remaining = total
    for remaining_count in range(count, 0, -1):
        share = split_even(remaining, remaining_count)
        shares.append(share)
        remaining -= share
    return shares
