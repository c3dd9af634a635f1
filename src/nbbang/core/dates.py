#!/usr/bin/env python3
"""
SettlementDate Primitive Type

Immutable calendar-date wrapper used as the key for daily exchange-rate
snapshots and for payment dates. Always formatted as ISO YYYY-MM-DD.
"""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True, order=True)
class SettlementDate:
    """Immutable calendar date with consistent ISO formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str, format: str = "%Y-%m-%d") -> "SettlementDate":
        """
        Parse from string in specified format.

        Accepts full ISO timestamps ("2024-08-15T09:30:00Z") by keeping
        only the date part.
        """
        if format == "%Y-%m-%d" and "T" in date_str:
            date_str = date_str.split("T")[0]
        return cls(date=datetime.strptime(date_str, format).date())

    @classmethod
    def coerce(cls, value: "SettlementDate | date | datetime | str | None") -> "SettlementDate | None":
        """Normalize the accepted date inputs; None stays None."""
        if value is None or isinstance(value, SettlementDate):
            return value
        if isinstance(value, datetime):
            return cls(date=value.date())
        if isinstance(value, date):
            return cls(date=value)
        return cls.from_string(value)

    @classmethod
    def today(cls) -> "SettlementDate":
        """Get today's date."""
        return cls(date=date.today())

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def __str__(self) -> str:
        return self.to_iso_string()

    def __repr__(self) -> str:
        return f"SettlementDate(date={self.date!r})"
