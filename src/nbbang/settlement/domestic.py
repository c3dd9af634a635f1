#!/usr/bin/env python3
"""
Domestic Split Engine

N-way and simple-mode splitting for KRW meetings.
Uses integer arithmetic throughout; balances are computed as a single
fold over payments and returned as new records, never written back onto
Member objects.

Key Features:
- N-way: each payment split evenly (ceiling) across its attendees
- Payer is credited the full price, attendees are charged the split price
- Simple mode: one price over a fixed headcount
- Positive balance means the member owes money, negative means they are owed
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..core.money import Money
from ..meeting.models import Member, Payment


@dataclass(frozen=True)
class PaymentSplit:
    """Read view of one payment with its per-attendee share and member names."""

    payment: Payment
    split_price: int
    attend_member_names: list[str] = field(default_factory=list)
    pay_member_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = self.payment.to_dict()
        data.update(
            {
                "split_price": self.split_price,
                "attend_member": self.attend_member_names,
                "pay_member": self.pay_member_name,
            }
        )
        return data


@dataclass(frozen=True)
class MemberBalance:
    """A member's net domestic balance after all payments."""

    member: Member
    amount: Money

    @property
    def tipped_amount(self) -> Money:
        """Balance with its magnitude rounded up to the next 10 won; -1537 becomes -1540."""
        return self.amount.tipped_signed()

    def to_dict(self) -> dict[str, Any]:
        data = self.member.to_dict()
        data.update({"amount": self.amount.to_won(), "tipped_amount": self.tipped_amount.to_won()})
        return data


@dataclass(frozen=True)
class SimpleSplit:
    """Simple-mode result: one price over a fixed headcount."""

    price: int
    member_count: int
    member_amount: Money

    @property
    def tipped_member_amount(self) -> Money:
        return self.member_amount.tipped()


def split_payments(members: list[Member], payments: list[Payment]) -> list[PaymentSplit]:
    """
    Attach split price and member names to each payment, in the given order.

    Attendee ids with no matching member are skipped in the name list.
    """
    names = {m.id: m.name for m in members}
    return [
        PaymentSplit(
            payment=payment,
            split_price=payment.split_price,
            attend_member_names=[names[mid] for mid in payment.attend_member_ids if mid in names],
            pay_member_name=names.get(payment.payer_id),
        )
        for payment in payments
    ]


def fold_balances(payments: Iterable[Payment], opening: dict[int, int] | None = None) -> dict[int, int]:
    """
    Reduce payments into a member id -> signed balance mapping.

    For each payment the payer is credited the full price and every attendee
    is charged the split price. Shared-fund payments have no payer to credit.

    Args:
        payments: Payments in stored order
        opening: Optional starting balances (not modified)

    Returns:
        New mapping of member id to balance in whole won
    """
    balances: dict[int, int] = dict(opening or {})
    for payment in payments:
        payer_id = payment.payer_id
        if payer_id is not None:
            balances[payer_id] = balances.get(payer_id, 0) - payment.price
        split = payment.split_price
        for member_id in payment.attend_member_ids:
            balances[member_id] = balances.get(member_id, 0) + split
    return balances


def split_members(members: list[Member], payments: list[Payment]) -> list[MemberBalance]:
    """
    Compute every member's N-way balance.

    When every payer is a member and every split is exact, the balances sum
    to zero. A ceiling split leaves at most (attendees - 1) won of surplus
    per payment on the attendees' side.

    Returns:
        One MemberBalance per member, in member order
    """
    balances = fold_balances(payments)
    return [MemberBalance(member=m, amount=Money.from_won(balances.get(m.id, 0))) for m in members]


def simple_split(price: int, member_count: int) -> SimpleSplit:
    """
    Split a simple meeting's single price across its headcount.

    Example:
        simple_split(10000, 3).member_amount -> Money(won=3334)
        simple_split(10000, 3).tipped_member_amount -> Money(won=3340)
    """
    return SimpleSplit(price=price, member_count=member_count, member_amount=Money.from_won(price).split(member_count))
