"""
Settlement Package

Domestic N-way/simple splitting, the trip shared-fund engine, deposit links
and the report views built on them.
"""

from .domestic import MemberBalance, PaymentSplit, SimpleSplit, simple_split, split_members, split_payments
from .links import DepositLinks, build_deposit_links
from .trip import (
    Direction,
    FundStatus,
    MemberSettlement,
    MemberShare,
    RateContext,
    TripEngine,
    TripLedger,
    WalletStatus,
)

__all__ = [
    "DepositLinks",
    "Direction",
    "FundStatus",
    "MemberBalance",
    "MemberSettlement",
    "MemberShare",
    "PaymentSplit",
    "RateContext",
    "SimpleSplit",
    "TripEngine",
    "TripLedger",
    "WalletStatus",
    "build_deposit_links",
    "simple_split",
    "split_members",
    "split_payments",
]
