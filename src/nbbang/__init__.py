"""
N-bbang - Group Expense Settlement Engine

Tracks shared payments among meeting members and computes who owes whom.

Key Features:
- Domestic N-way splitting with ceiling division and 10-won "tipped" amounts
- Simple mode: one price over a fixed headcount
- Trip mode: a pooled foreign-currency fund (gonggeum) with burn-rate
  tracking and final netting at today's exchange rate
- Daily exchange-rate cache with dated fallback
- Toss/KakaoPay transfer links and copy text

Domain Packages:
- core: Rounding, money, dates, configuration, errors
- rates: Exchange rate snapshots, source and resolver
- meeting: Meeting/member/payment models, normalization, storage, services
- settlement: Domestic and trip engines, deposit links, report views
- cli: Command-line interface

Example Usage:
    from nbbang.core.currency import split_even
    from nbbang.settlement.domestic import split_members, simple_split
    from nbbang.settlement.trip import TripEngine, TripLedger
"""

__version__ = "0.1.0"
__author__ = "N-bbang Team"

from .core.config import Environment, get_config
from .core.currency import split_even, tip, tip_signed
from .core.money import Money

__all__ = [
    # Core currency functions
    "split_even",
    "tip",
    "tip_signed",
    "Money",
    # Configuration
    "get_config",
    "Environment",
]
