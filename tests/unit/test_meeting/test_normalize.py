#!/usr/bin/env python3
"""Tests for payment normalization."""

import pytest

from nbbang.core.exceptions import InvalidRequestError, RateResolutionError
from nbbang.meeting.models import IndividualPayer, Payment, SharedFund
from nbbang.meeting.normalize import PaymentRequest, normalize_payment


class TestKrwPayments:
    """Test KRW payments skip rate lookup entirely."""

    @pytest.mark.meeting
    def test_krw_forces_rate_one(self, resolver):
        payment = normalize_payment(
            1, PaymentRequest(name="저녁", price=30000, exchange_rate=5.0, payer_id=1, attend_member_ids=[1, 2]), resolver
        )
        assert payment.price == 30000
        assert payment.original_price == 30000
        assert payment.exchange_rate == 1.0
        assert payment.currency == "KRW"
        assert payment.source == IndividualPayer(1)

    @pytest.mark.meeting
    def test_krw_fractional_amount_rounds_half_up(self, resolver):
        payment = normalize_payment(1, PaymentRequest(name="x", original_price=1000.5), resolver)
        assert payment.price == 1001
        assert payment.original_price == 1001

    @pytest.mark.meeting
    def test_no_payer_is_shared_fund(self, resolver):
        payment = normalize_payment(1, PaymentRequest(name="x", price=1000), resolver)
        assert payment.source == SharedFund()
        assert payment.created_at is not None

    @pytest.mark.meeting
    def test_missing_amount_raises(self, resolver):
        with pytest.raises(InvalidRequestError):
            normalize_payment(1, PaymentRequest(name="x"), resolver)


class TestForeignPayments:
    """Test foreign payments freeze a real exchange rate."""

    @pytest.mark.meeting
    def test_explicit_rate_wins(self, resolver):
        payment = normalize_payment(
            1, PaymentRequest(name="라멘", original_price=1500, currency="jpy", exchange_rate=9.15), resolver
        )
        assert payment.currency == "JPY"
        assert payment.exchange_rate == 9.15
        assert payment.price == 13725

    @pytest.mark.meeting
    def test_resolves_today_rate(self, resolver):
        payment = normalize_payment(1, PaymentRequest(name="라멘", original_price=1000, currency="JPY"), resolver)
        assert payment.exchange_rate == 9.2
        assert payment.price == 9200

    @pytest.mark.meeting
    def test_resolves_rate_on_payment_date(self, resolver):
        """Test a dated payment uses the most recent rate on or before its date."""
        payment = normalize_payment(
            1, PaymentRequest(name="x", original_price=1000, currency="JPY", date="2024-08-17"), resolver
        )
        assert payment.exchange_rate == 9.0
        assert payment.price == 9000

    @pytest.mark.meeting
    def test_price_rounds_half_up(self, resolver):
        payment = normalize_payment(
            1, PaymentRequest(name="x", original_price=10.5, currency="USD", exchange_rate=1.0), resolver
        )
        assert payment.price == 11

    @pytest.mark.meeting
    def test_no_usable_rate_raises(self, resolver):
        """Test a currency with no cached rate is rejected instead of frozen at 1.0."""
        with pytest.raises(RateResolutionError):
            normalize_payment(1, PaymentRequest(name="x", original_price=100, currency="GBP"), resolver)


class TestUpdates:
    """Test partial updates keep previously resolved state."""

    def _existing(self):
        return Payment(
            id=4,
            meeting_id=1,
            name="라멘",
            price=9000,
            source=IndividualPayer(2),
            attend_member_ids=[1, 2],
            currency="JPY",
            original_price=1000,
            exchange_rate=9.0,
            order_no=3,
            created_at="2024-08-17T12:00:00",
        )

    @pytest.mark.meeting
    def test_update_keeps_frozen_rate(self, resolver):
        """Test changing the amount reuses the stored rate rather than today's."""
        updated = normalize_payment(1, PaymentRequest(original_price=2000), resolver, self._existing())
        assert updated.exchange_rate == 9.0
        assert updated.price == 18000
        assert updated.currency == "JPY"
        assert updated.source == IndividualPayer(2)
        assert updated.attend_member_ids == [1, 2]
        assert (updated.id, updated.order_no, updated.created_at) == (4, 3, "2024-08-17T12:00:00")

    @pytest.mark.meeting
    def test_update_name_only(self, resolver):
        updated = normalize_payment(1, PaymentRequest(name="스시"), resolver, self._existing())
        assert updated.name == "스시"
        assert updated.original_price == 1000
        assert updated.price == 9000

    @pytest.mark.meeting
    def test_update_with_date_resolves_again(self, resolver):
        updated = normalize_payment(1, PaymentRequest(date="2024-08-20"), resolver, self._existing())
        assert updated.exchange_rate == 9.2
        assert updated.price == 9200

    @pytest.mark.meeting
    def test_update_switch_to_krw(self, resolver):
        updated = normalize_payment(1, PaymentRequest(currency="KRW", price=12000), resolver, self._existing())
        assert updated.exchange_rate == 1.0
        assert updated.price == 12000
        assert updated.original_price == 12000

    @pytest.mark.meeting
    def test_update_to_shared_fund(self, resolver):
        updated = normalize_payment(1, PaymentRequest(type="PUBLIC"), resolver, self._existing())
        assert updated.source == SharedFund()
