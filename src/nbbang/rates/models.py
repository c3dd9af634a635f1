#!/usr/bin/env python3
"""
Exchange Rate Domain Models

Daily rate snapshots use the convention "1 unit of currency = rate KRW".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.dates import SettlementDate


class RateSource(Enum):
    """Where a resolved rate came from."""

    CACHE = "cache"  # snapshot for the requested date
    SYNCED = "synced"  # snapshot written by an on-demand sync for today
    FALLBACK = "fallback"  # most recent snapshot before the requested date
    IDENTITY = "identity"  # nothing usable; 1.0 returned
    SETTLEMENT = "settlement"  # KRW itself


@dataclass(frozen=True)
class ExchangeRateSnapshot:
    """One cached daily rate: 1 currency = rate KRW on date."""

    date: SettlementDate
    currency: str
    rate: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExchangeRateSnapshot":
        return cls(
            date=SettlementDate.coerce(data["date"]),
            currency=data["currency"],
            rate=float(data["rate"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.to_iso_string(), "currency": self.currency, "rate": self.rate}


@dataclass(frozen=True)
class RateQuote:
    """
    Result of a rate lookup.

    A quote with source IDENTITY for a foreign currency is a data-quality
    signal, not a real market rate.
    """

    currency: str
    rate: float
    date: SettlementDate
    source: RateSource

    @property
    def is_usable(self) -> bool:
        """True unless this is the 1.0 last-resort fallback."""
        return self.source != RateSource.IDENTITY
