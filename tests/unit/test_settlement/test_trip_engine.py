#!/usr/bin/env python3
"""Tests for the shared-fund trip engine."""

import pytest

from nbbang.core.dates import SettlementDate
from nbbang.core.exceptions import LeaderNotFoundError, RateSourceError
from nbbang.meeting.models import Contribution, IndividualPayer, Meeting, Member, Payment, SharedFund
from nbbang.rates.datastore import InMemoryRateStore
from nbbang.rates.models import RateQuote, RateSource
from nbbang.rates.resolver import ExchangeRateResolver
from nbbang.settlement.trip import (
    Direction,
    MemberSettlement,
    TripEngine,
    TripLedger,
    WalletStatus,
    burn_rate_status,
    share_ratio_status,
)

TODAY = SettlementDate.from_string("2024-08-20")
A = Member(id=1, meeting_id=1, name="A", leader=True)
B = Member(id=2, meeting_id=1, name="B")


class StubResolver:
    """Resolver double answering every quote with one fixed result."""

    def __init__(self, rate=9.0, source=RateSource.CACHE, error=None):
        self.rate = rate
        self.source = source
        self.error = error
        self.calls = 0

    def today(self):
        return TODAY

    def quote(self, currency, on=None):
        self.calls += 1
        if self.error:
            raise self.error
        return RateQuote(currency, self.rate, TODAY, self.source)


def trip_meeting(initial_gonggeum=100000, base_rate=10.0):
    return Meeting(
        id=1,
        user_id=1,
        uuid="trip",
        is_trip=True,
        country_code="JP",
        target_currency="JPY",
        base_exchange_rate=base_rate,
        initial_gonggeum=initial_gonggeum,
    )


def public(payment_id, original_price, attendees, rate=9.2):
    return Payment(
        id=payment_id,
        meeting_id=1,
        name=f"public-{payment_id}",
        price=round(original_price * rate),
        source=SharedFund(),
        attend_member_ids=attendees,
        currency="JPY",
        original_price=original_price,
        exchange_rate=rate,
    )


def make_ledger(payments, contributions=None, members=None, initial_gonggeum=100000):
    return TripLedger(
        meeting=trip_meeting(initial_gonggeum),
        members=[A, B] if members is None else members,
        payments=payments,
        contributions=[Contribution(1, 1, 100000)] if contributions is None else contributions,
    )


class TestFundStatus:
    """Test fund depletion tracking at the base rate."""

    @pytest.mark.trip
    def test_two_member_ramen(self):
        """Test one shared 2,000 JPY meal out of a 100,000 KRW fund at base rate 10."""
        engine = TripEngine()
        ledger = make_ledger([public(1, 2000, [1, 2])])

        fund = engine.fund_status(ledger)
        shares = engine.member_shares(ledger, fund)

        assert fund.total_foreign == 10000
        assert fund.spent_foreign == 2000
        assert fund.remaining_foreign == 8000
        assert fund.remaining_krw == 80000
        assert fund.burn_rate == pytest.approx(20.0)
        assert fund.status == WalletStatus.SAFE
        assert [s.used for s in shares] == [1000, 1000]
        assert [s.initial_share for s in shares] == [5000, 5000]
        assert [s.ratio for s in shares] == [pytest.approx(80.0)] * 2
        assert all(s.status == WalletStatus.SAFE for s in shares)

    @pytest.mark.trip
    def test_usage_conserves_spending(self):
        """Test member usage adds up to total spending when every payment has attendees."""
        engine = TripEngine()
        ledger = make_ledger([public(1, 2000, [1, 2]), public(2, 1001, [1, 2]), public(3, 333.33, [2])])

        fund = engine.fund_status(ledger)

        assert sum(fund.used_by_member.values()) == pytest.approx(fund.spent_foreign)
        assert fund.total_foreign - fund.spent_foreign == pytest.approx(fund.remaining_foreign)

    @pytest.mark.trip
    def test_single_attendee_bears_full_cost(self):
        fund = TripEngine().fund_status(make_ledger([public(1, 3000, [2])]))
        assert fund.used_by(2) == 3000
        assert fund.used_by(1) == 0

    @pytest.mark.trip
    def test_payment_without_attendees_counts_as_spent(self):
        fund = TripEngine().fund_status(make_ledger([public(1, 500, [])]))
        assert fund.spent_foreign == 500
        assert fund.used_by_member == {}

    @pytest.mark.trip
    def test_krw_payment_converts_at_base_rate(self):
        krw = Payment(id=1, meeting_id=1, name="택시", price=5000, source=SharedFund(), attend_member_ids=[1, 2])
        fund = TripEngine().fund_status(make_ledger([krw]))
        assert fund.spent_foreign == 500

    @pytest.mark.trip
    def test_individual_payments_do_not_touch_fund(self):
        card = Payment(
            id=1, meeting_id=1, name="쇼핑", price=9200, source=IndividualPayer(2), currency="JPY", original_price=1000
        )
        fund = TripEngine().fund_status(make_ledger([card]))
        assert fund.spent_foreign == 0

    @pytest.mark.trip
    def test_fund_size_takes_larger_of_contributions_and_initial(self):
        engine = TripEngine()
        topped_up = make_ledger([], contributions=[Contribution(1, 1, 100000), Contribution(2, 1, 100000)])
        preset = make_ledger([], initial_gonggeum=150000)
        assert engine.fund_status(topped_up).total_collected == 200000
        assert engine.fund_status(preset).total_collected == 150000

    @pytest.mark.trip
    def test_empty_fund(self):
        fund = TripEngine().fund_status(make_ledger([], contributions=[], initial_gonggeum=0))
        assert fund.burn_rate == 0.0
        assert fund.status == WalletStatus.SAFE

    @pytest.mark.trip
    def test_zero_members(self):
        engine = TripEngine()
        ledger = make_ledger([public(1, 100, [])], members=[])
        assert engine.member_shares(ledger) == []
        assert engine.settle(ledger, engine.base_context(ledger)) == []


class TestStatusThresholds:
    """Test SAFE / WARNING / DANGER boundaries."""

    @pytest.mark.trip
    def test_burn_rate_status(self):
        assert burn_rate_status(59.9) == WalletStatus.SAFE
        assert burn_rate_status(60) == WalletStatus.WARNING
        assert burn_rate_status(79.9) == WalletStatus.WARNING
        assert burn_rate_status(80) == WalletStatus.DANGER

    @pytest.mark.trip
    def test_share_ratio_status(self):
        assert share_ratio_status(50) == WalletStatus.SAFE
        assert share_ratio_status(49.9) == WalletStatus.WARNING
        assert share_ratio_status(20) == WalletStatus.WARNING
        assert share_ratio_status(19.9) == WalletStatus.DANGER
        assert share_ratio_status(-40) == WalletStatus.DANGER


class TestSettlement:
    """Test credit/debit netting."""

    @pytest.mark.trip
    def test_base_rate_settlement(self):
        engine = TripEngine()
        ledger = make_ledger([public(1, 2000, [1, 2])])

        a, b = engine.settle(ledger, engine.base_context(ledger))

        assert a.public_consumption == 10000
        assert a.settlement_amount == 90000
        assert a.direction == Direction.RECEIVE
        assert b.settlement_amount == -10000
        assert b.direction == Direction.SEND

    @pytest.mark.trip
    def test_card_and_advance_payments(self):
        """Test individual payments credit the payer and debit every attendee."""
        card = Payment(
            id=2,
            meeting_id=1,
            name="쇼핑",
            price=9200,
            source=IndividualPayer(2),
            attend_member_ids=[1, 2],
            currency="JPY",
            original_price=1000,
            exchange_rate=9.2,
        )
        advance = Payment(
            id=3, meeting_id=1, name="항공권", price=600000, source=IndividualPayer(1), attend_member_ids=[1, 2]
        )
        engine = TripEngine()
        ledger = make_ledger([card, advance])

        a, b = engine.settle(ledger, engine.base_context(ledger))

        assert (a.advance_payments, a.card_payments) == (600000, 0)
        assert (b.advance_payments, b.card_payments) == (0, 9200)
        assert a.private_consumption == 304600
        assert b.private_consumption == 304600
        assert a.settlement_amount == 100000 + 600000 - 304600
        assert b.settlement_amount == 9200 - 304600

    @pytest.mark.trip
    def test_krw_public_payment_uses_price(self):
        krw = Payment(id=1, meeting_id=1, name="택시", price=5001, source=SharedFund(), attend_member_ids=[1, 2])
        engine = TripEngine(StubResolver(rate=9.0))
        ledger = make_ledger([krw])
        a, _ = engine.settle(ledger, engine.settlement_context(ledger))
        assert a.public_consumption == 2500.5

    @pytest.mark.trip
    def test_rounding_and_tipping_send(self):
        settlement = MemberSettlement(member=B, private_consumption=1537)
        assert settlement.rounded_amount == -1537
        assert settlement.tipped_amount == -1540
        assert settlement.direction == Direction.SEND

    @pytest.mark.trip
    def test_already_round_send(self):
        settlement = MemberSettlement(member=B, private_consumption=1500)
        assert settlement.tipped_amount == -1500

    @pytest.mark.trip
    def test_balanced_member(self):
        settlement = MemberSettlement(member=B, contribution=1000, public_consumption=1000.0)
        assert settlement.direction == Direction.NONE
        assert settlement.tipped_amount == 0


class TestRateContext:
    """Test live revaluation for the final result."""

    @pytest.mark.trip
    def test_live_rate_applied_while_fund_remains(self):
        resolver = StubResolver(rate=9.0)
        engine = TripEngine(resolver)
        ledger = make_ledger([public(1, 2000, [1, 2])])
        fund = engine.fund_status(ledger)

        context = engine.settlement_context(ledger, fund)
        a, b = engine.settle(ledger, context)

        assert context.live
        assert context.rate == 9.0
        assert context.date == TODAY
        assert engine.remaining_value(fund, context) == 72000
        assert a.settlement_amount == 91000
        assert b.settlement_amount == -9000

    @pytest.mark.trip
    def test_identity_quote_falls_back_to_base(self):
        engine = TripEngine(StubResolver(rate=1.0, source=RateSource.IDENTITY))
        context = engine.settlement_context(make_ledger([public(1, 2000, [1, 2])]))
        assert not context.live
        assert context.rate == 10.0

    @pytest.mark.trip
    def test_resolver_error_falls_back_to_base(self):
        engine = TripEngine(StubResolver(error=RateSourceError("API down")))
        context = engine.settlement_context(make_ledger([public(1, 2000, [1, 2])]))
        assert not context.live
        assert context.rate == 10.0

    @pytest.mark.trip
    def test_unwritable_rate_cache_falls_back_to_base(self):
        """Test a live sync whose rates cannot be cached leaves the result on the base rate."""

        class UnwritableRateStore(InMemoryRateStore):
            def upsert_many(self, snapshots):
                raise OSError("disk full")

        class JpySource:
            def fetch_latest(self, base_currency="KRW"):
                return {"JPY": 0.11}

        resolver = ExchangeRateResolver(UnwritableRateStore(), JpySource(), clock=lambda: TODAY)
        engine = TripEngine(resolver)
        ledger = make_ledger([public(1, 2000, [1, 2])])

        context = engine.settlement_context(ledger)
        _, b = engine.settle(ledger, context)

        assert not context.live
        assert context.rate == 10.0
        assert b.settlement_amount == -10000

    @pytest.mark.trip
    def test_spent_fund_skips_live_lookup(self):
        """Test a fully spent fund never consults the resolver."""
        resolver = StubResolver(rate=9.0)
        engine = TripEngine(resolver)
        context = engine.settlement_context(make_ledger([public(1, 10000, [1, 2])]))
        assert resolver.calls == 0
        assert context.rate == 10.0

    @pytest.mark.trip
    def test_no_resolver_uses_base(self):
        engine = TripEngine()
        assert engine.settlement_context(make_ledger([])).rate == 10.0


class TestMemberShares:
    """Test per-member share and deficit."""

    @pytest.mark.trip
    def test_negative_share_deficit(self):
        """Test a member who used more than their share owes the deficit at today's rate."""
        ledger = make_ledger([public(1, 7000, [2])])
        live_engine = TripEngine(StubResolver(rate=9.0))
        _, b_share = live_engine.member_shares(ledger)

        assert b_share.current_share == -2000
        assert b_share.is_negative
        assert b_share.status == WalletStatus.DANGER
        assert live_engine.deficit_krw(ledger, b_share) == 18000
        assert TripEngine().deficit_krw(ledger, b_share) == 20000

    @pytest.mark.trip
    def test_positive_share_has_no_deficit(self):
        engine = TripEngine(StubResolver())
        ledger = make_ledger([public(1, 2000, [1, 2])])
        a_share, _ = engine.member_shares(ledger)
        assert engine.deficit_krw(ledger, a_share) == 0.0


class TestTripLedger:
    """Test ledger helpers."""

    @pytest.mark.trip
    def test_leader(self):
        assert make_ledger([]).leader() == A

    @pytest.mark.trip
    def test_missing_leader(self):
        with pytest.raises(LeaderNotFoundError):
            make_ledger([], members=[B]).leader()

    @pytest.mark.trip
    def test_member_for_user(self):
        linked = Member(id=3, meeting_id=1, name="C", user_id=42)
        ledger = make_ledger([], members=[A, linked])
        assert ledger.member_for_user(42) == linked
        assert ledger.member_for_user(None) is None
        assert ledger.member_for_user(7) is None
