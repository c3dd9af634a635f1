#!/usr/bin/env python3
"""
Money Primitive Type

Immutable KRW value wrapper that uses whole won internally.
Prevents floating-point drift in ledger balances and provides the tipped
(rounded up to 10 won) variant used for transfer suggestions.
"""

from dataclasses import dataclass

from .currency import format_won, split_even, tip, tip_signed


@dataclass(frozen=True)
class Money:
    """
    Immutable money value in whole KRW.

    Supports both positive (owes / charge) and negative (is owed / credit)
    balances. Uses integer arithmetic throughout.

    Examples:
        >>> share = Money.from_won(3334)
        >>> str(share)
        '3,334원'
        >>> share.tipped()
        Money(won=3340)

        >>> Money.from_won(10000).split(3)
        Money(won=3334)
    """

    won: int

    @classmethod
    def from_won(cls, won: int) -> "Money":
        """Create Money from whole won."""
        return cls(won=int(won))

    @classmethod
    def zero(cls) -> "Money":
        """Create a zero amount."""
        return cls(won=0)

    def to_won(self) -> int:
        """Get value in whole won."""
        return self.won

    def split(self, count: int) -> "Money":
        """
        Per-share amount when split across count shares.

        Ceiling division; zero shares yield zero.
        """
        return Money(won=split_even(self.won, count))

    def tipped(self) -> "Money":
        """Round up to the next 10 won (toward positive infinity)."""
        return Money(won=tip(self.won))

    def tipped_signed(self) -> "Money":
        """Round the magnitude up to the next 10 won, keeping the sign."""
        return Money(won=tip_signed(self.won))

    def abs(self) -> "Money":
        """Return absolute value of Money."""
        return Money(won=abs(self.won))

    def __add__(self, other: "Money") -> "Money":
        """Add two Money objects."""
        return Money(won=self.won + other.won)

    def __sub__(self, other: "Money") -> "Money":
        """Subtract two Money objects."""
        return Money(won=self.won - other.won)

    def __neg__(self) -> "Money":
        return Money(won=-self.won)

    def __mul__(self, scalar: int) -> "Money":
        """Multiply Money by integer scalar."""
        return Money(won=self.won * scalar)

    def __lt__(self, other: "Money") -> bool:
        return self.won < other.won

    def __le__(self, other: "Money") -> bool:
        return self.won <= other.won

    def __gt__(self, other: "Money") -> bool:
        return self.won > other.won

    def __ge__(self, other: "Money") -> bool:
        return self.won >= other.won

    def __str__(self) -> str:
        """Format as won string."""
        return format_won(self.won)

    def __repr__(self) -> str:
        return f"Money(won={self.won})"
