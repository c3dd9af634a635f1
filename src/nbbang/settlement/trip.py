#!/usr/bin/env python3
"""
Trip / Shared-Fund (Gonggeum) Engine

Tracks a pooled fund that members contribute in KRW and spend in the
trip's foreign currency, and nets every member's contributions and
individual payments against what they consumed.

Key Features:
- Fund size is the larger of the contribution sum and initial_gonggeum
- Only shared-fund payments deplete the fund; cost is split evenly in
  foreign units across attendees
- Burn rate and per-member remaining share with fixed status thresholds
- Net settlement costed at a rate context: the frozen base rate while the
  trip is being tracked, today's live rate for the final result

Rate policy:
    Tracking views never touch the resolver. Only the final result asks it
    for today's rate, and only while unspent foreign fund remains; any
    failure there falls back to the base rate.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..core.currency import SETTLEMENT_CURRENCY, round_half_up, round_ratio, tip_signed
from ..core.dates import SettlementDate
from ..core.exceptions import LeaderNotFoundError, RateResolutionError, RateSourceError
from ..meeting.models import Contribution, Meeting, Member, Payment
from ..rates.resolver import RateResolver

logger = logging.getLogger(__name__)

# Aggregate burn-rate thresholds (percent of fund spent)
BURN_RATE_DANGER = 80
BURN_RATE_WARNING = 60

# Per-member remaining-share thresholds (percent of initial share left)
SHARE_RATIO_SAFE = 50
SHARE_RATIO_WARNING = 20


class WalletStatus(Enum):
    SAFE = "SAFE"
    WARNING = "WARNING"
    DANGER = "DANGER"


class Direction(Enum):
    """Which way money moves for a settlement amount."""

    RECEIVE = "RECEIVE"
    SEND = "SEND"
    NONE = "NONE"

    @classmethod
    def of(cls, amount: float) -> "Direction":
        if amount > 0:
            return cls.RECEIVE
        if amount < 0:
            return cls.SEND
        return cls.NONE


def burn_rate_status(burn_rate: float) -> WalletStatus:
    if burn_rate >= BURN_RATE_DANGER:
        return WalletStatus.DANGER
    if burn_rate >= BURN_RATE_WARNING:
        return WalletStatus.WARNING
    return WalletStatus.SAFE


def share_ratio_status(ratio: float) -> WalletStatus:
    if ratio >= SHARE_RATIO_SAFE:
        return WalletStatus.SAFE
    if ratio >= SHARE_RATIO_WARNING:
        return WalletStatus.WARNING
    return WalletStatus.DANGER


@dataclass(frozen=True)
class TripLedger:
    """Consistent snapshot of one trip meeting, read once per computation."""

    meeting: Meeting
    members: list[Member]
    payments: list[Payment]
    contributions: list[Contribution] = field(default_factory=list)

    @property
    def base_rate(self) -> float:
        return self.meeting.base_exchange_rate or 1.0

    @property
    def currency(self) -> str:
        return self.meeting.target_currency or SETTLEMENT_CURRENCY

    @property
    def shared_fund_payments(self) -> list[Payment]:
        return [p for p in self.payments if p.is_shared_fund]

    @property
    def individual_payments(self) -> list[Payment]:
        return [p for p in self.payments if not p.is_shared_fund]

    @property
    def total_contributions(self) -> int:
        return sum(c.amount_krw for c in self.contributions)

    @property
    def total_collected(self) -> int:
        """Fund size in KRW: contributions may outgrow initial_gonggeum after top-ups."""
        return max(self.total_contributions, self.meeting.initial_gonggeum or 0)

    def contribution_of(self, member_id: int | None) -> int:
        return sum(c.amount_krw for c in self.contributions if c.member_id == member_id)

    def leader(self) -> Member:
        """
        Raises:
            LeaderNotFoundError: No member is flagged as leader
        """
        for member in self.members:
            if member.leader:
                return member
        raise LeaderNotFoundError(self.meeting.id)

    def member_for_user(self, user_id: int | None) -> Member | None:
        if user_id is None:
            return None
        for member in self.members:
            if member.user_id is not None and int(member.user_id) == user_id:
                return member
        return None


@dataclass(frozen=True)
class FundStatus:
    """Shared-fund depletion in the trip's foreign currency."""

    total_collected: int
    total_foreign: float
    spent_foreign: float
    base_rate: float
    used_by_member: dict[int, float] = field(default_factory=dict)

    @property
    def remaining_foreign(self) -> float:
        return self.total_foreign - self.spent_foreign

    @property
    def spent_krw(self) -> float:
        return self.spent_foreign * self.base_rate

    @property
    def remaining_krw(self) -> float:
        return self.remaining_foreign * self.base_rate

    @property
    def burn_rate(self) -> float:
        """Percent of the fund spent; 0 for an empty fund."""
        if self.total_foreign <= 0:
            return 0.0
        return self.spent_foreign / self.total_foreign * 100

    @property
    def status(self) -> WalletStatus:
        return burn_rate_status(round_ratio(self.burn_rate))

    def used_by(self, member_id: int | None) -> float:
        return self.used_by_member.get(member_id, 0.0)


@dataclass(frozen=True)
class MemberShare:
    """One member's slice of the fund in foreign units."""

    member: Member
    initial_share: float
    used: float

    @property
    def current_share(self) -> float:
        return self.initial_share - self.used

    @property
    def ratio(self) -> float:
        """Percent of the initial share still left; 0 when the share is empty."""
        if self.initial_share <= 0:
            return 0.0
        return self.current_share / self.initial_share * 100

    @property
    def status(self) -> WalletStatus:
        return share_ratio_status(round_ratio(self.ratio))

    @property
    def is_negative(self) -> bool:
        return self.current_share < 0


@dataclass(frozen=True)
class RateContext:
    """Rate used to cost foreign spending in KRW for one computation."""

    rate: float
    date: SettlementDate
    live: bool = False


@dataclass(frozen=True)
class MemberSettlement:
    """
    Credit and debit breakdown for one member, in unrounded KRW.

    Credit is what the member put in (contribution, KRW advance payments,
    foreign card payments). Debit is what the member consumed.
    """

    member: Member
    contribution: int = 0
    advance_payments: int = 0
    card_payments: int = 0
    public_consumption: float = 0.0
    private_consumption: float = 0.0

    @property
    def total_credit(self) -> int:
        return self.contribution + self.advance_payments + self.card_payments

    @property
    def total_debit(self) -> float:
        return self.public_consumption + self.private_consumption

    @property
    def settlement_amount(self) -> float:
        """Positive: member receives. Negative: member sends."""
        return self.total_credit - self.total_debit

    @property
    def rounded_amount(self) -> int:
        return round_half_up(self.settlement_amount)

    @property
    def tipped_amount(self) -> int:
        return tip_signed(self.rounded_amount)

    @property
    def direction(self) -> Direction:
        return Direction.of(self.settlement_amount)


class TripEngine:
    """
    Shared-fund calculator.

    Args:
        resolver: Exchange rate resolver for live revaluation; None keeps
            every computation on the trip's base rate
    """

    def __init__(self, resolver: RateResolver | None = None):
        self.resolver = resolver

    def today(self) -> SettlementDate:
        return self.resolver.today() if self.resolver else SettlementDate.today()

    def fund_status(self, ledger: TripLedger) -> FundStatus:
        """
        Compute fund size, spending and per-member usage in foreign units.

        Each shared-fund payment's foreign cost is divided evenly by its
        attendee count and added to every attendee's usage. Payments with no
        attendees still count toward spending but are charged to nobody.
        """
        base_rate = ledger.base_rate
        total_collected = ledger.total_collected
        total_foreign = total_collected / base_rate

        spent_foreign = 0.0
        used: dict[int, float] = {}
        for payment in ledger.shared_fund_payments:
            cost = payment.foreign_cost(base_rate)
            spent_foreign += cost
            if payment.attend_count == 0:
                continue
            unit_cost = cost / payment.attend_count
            for member_id in payment.attend_member_ids:
                used[member_id] = used.get(member_id, 0.0) + unit_cost

        return FundStatus(
            total_collected=total_collected,
            total_foreign=total_foreign,
            spent_foreign=spent_foreign,
            base_rate=base_rate,
            used_by_member=used,
        )

    def member_shares(self, ledger: TripLedger, fund: FundStatus | None = None) -> list[MemberShare]:
        """Every member's initial, used and remaining share; zero members yield none."""
        fund = fund or self.fund_status(ledger)
        member_count = len(ledger.members)
        initial_share = fund.total_foreign / member_count if member_count else 0.0
        return [
            MemberShare(member=m, initial_share=initial_share, used=fund.used_by(m.id)) for m in ledger.members
        ]

    def base_context(self, ledger: TripLedger) -> RateContext:
        return RateContext(rate=ledger.base_rate, date=self.today())

    def settlement_context(self, ledger: TripLedger, fund: FundStatus | None = None) -> RateContext:
        """
        Rate context for the final result.

        Revalues at today's rate while foreign fund remains; otherwise, or
        when no usable live rate exists, stays on the base rate.
        """
        fund = fund or self.fund_status(ledger)
        if fund.remaining_foreign <= 0 or ledger.currency == SETTLEMENT_CURRENCY:
            return self.base_context(ledger)

        live_rate = self.live_rate(ledger.currency)
        if live_rate is None:
            return self.base_context(ledger)
        rate, on = live_rate
        return RateContext(rate=rate, date=on, live=True)

    def live_rate(self, currency: str) -> tuple[float, SettlementDate] | None:
        """
        Today's usable rate for a currency, or None.

        Resolver failures and the 1.0 identity fallback both count as "no
        live rate"; neither is raised.
        """
        if self.resolver is None:
            return None
        try:
            quote = self.resolver.quote(currency, self.today())
        except (RateSourceError, RateResolutionError) as e:
            logger.warning(f"Live rate lookup for {currency} failed, using base rate: {e}")
            return None
        if not quote.is_usable:
            logger.warning(f"No usable live rate for {currency}, using base rate")
            return None
        return quote.rate, quote.date

    def deficit_krw(self, ledger: TripLedger, share: MemberShare) -> float:
        """KRW needed to cover a negative share, valued at today's rate (base rate fallback)."""
        if not share.is_negative:
            return 0.0
        shortfall = abs(share.current_share)
        if ledger.currency == SETTLEMENT_CURRENCY:
            return shortfall
        live_rate = self.live_rate(ledger.currency)
        rate = live_rate[0] if live_rate else ledger.base_rate
        return shortfall * rate

    def settle(self, ledger: TripLedger, context: RateContext) -> list[MemberSettlement]:
        """
        Net every member's credit against their consumption.

        Shared-fund payments are costed at the context rate: the KRW price
        for KRW payments, foreign cost x rate otherwise, divided by the
        attendee count (a single attendee bears the whole cost). Individual
        payments use their frozen KRW price for both the payer's credit and
        the attendees' debit.

        Returns:
            One MemberSettlement per member, in member order
        """
        public_consumption: dict[int, float] = {}
        for payment in ledger.shared_fund_payments:
            if payment.attend_count == 0:
                continue
            if payment.is_foreign:
                cost = payment.foreign_cost(ledger.base_rate) * context.rate
            else:
                cost = float(payment.price)
            unit_cost = cost / payment.attend_count
            for member_id in payment.attend_member_ids:
                public_consumption[member_id] = public_consumption.get(member_id, 0.0) + unit_cost

        private_consumption: dict[int, float] = {}
        advance: dict[int, int] = {}
        card: dict[int, int] = {}
        for payment in ledger.individual_payments:
            credited = card if payment.is_card else advance
            credited[payment.payer_id] = credited.get(payment.payer_id, 0) + payment.price
            if payment.attend_count == 0:
                continue
            unit_cost = payment.price / payment.attend_count
            for member_id in payment.attend_member_ids:
                private_consumption[member_id] = private_consumption.get(member_id, 0.0) + unit_cost

        return [
            MemberSettlement(
                member=m,
                contribution=ledger.contribution_of(m.id),
                advance_payments=advance.get(m.id, 0),
                card_payments=card.get(m.id, 0),
                public_consumption=public_consumption.get(m.id, 0.0),
                private_consumption=private_consumption.get(m.id, 0.0),
            )
            for m in ledger.members
        ]

    def remaining_value(self, fund: FundStatus, context: RateContext) -> float:
        """Remaining foreign fund valued in KRW at the context rate."""
        return fund.remaining_foreign * context.rate
