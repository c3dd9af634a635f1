"""
Core Utilities Package

Shared primitives used by every settlement component.

This package provides:
- Integer-safe splitting and 10-won rounding
- The Money (KRW) and SettlementDate value types
- Configuration management for environment-specific settings
- The settlement error hierarchy
"""

from .config import (
    Config,
    Environment,
    get_config,
    get_data_dir,
    is_production,
    is_test,
    reload_config,
)
from .currency import (
    SETTLEMENT_CURRENCY,
    allocate_shares,
    convert_to_krw,
    format_won,
    round_foreign,
    round_half_up,
    split_even,
    tip,
    tip_signed,
)
from .dates import SettlementDate
from .exceptions import NbbangError
from .money import Money

__all__ = [
    # Configuration
    "Config",
    "Environment",
    "get_config",
    "get_data_dir",
    "is_production",
    "is_test",
    "reload_config",
    # Currency
    "SETTLEMENT_CURRENCY",
    "allocate_shares",
    "convert_to_krw",
    "format_won",
    "round_foreign",
    "round_half_up",
    "split_even",
    "tip",
    "tip_signed",
    # Types
    "Money",
    "NbbangError",
    "SettlementDate",
]
