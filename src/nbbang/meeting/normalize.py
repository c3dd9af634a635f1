#!/usr/bin/env python3
"""
Payment Normalization

Turns a loosely-specified create/update request into a Payment whose KRW
price, currency and frozen exchange rate are consistent:

- KRW payments: price == original_price, exchange_rate == 1.0, no rate lookup
- Foreign payments: exchange_rate is the explicit positive override, the
  rate already frozen on the payment being updated, or a freshly resolved
  rate; price == round_half_up(original_price * exchange_rate)

A foreign payment that cannot get a real rate is rejected with
RateResolutionError rather than frozen at the 1.0 fallback.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from ..core.currency import SETTLEMENT_CURRENCY, convert_to_krw, is_settlement_currency, round_half_up
from ..core.exceptions import InvalidRequestError
from ..rates.resolver import RateResolver
from .models import Payment, PaymentSource, PaymentType, resolve_payment_source

logger = logging.getLogger(__name__)


@dataclass
class PaymentRequest:
    """Fields a caller may send when creating or updating a payment; None means unspecified."""

    place: str | None = None
    name: str | None = None
    price: float | None = None
    original_price: float | None = None
    currency: str | None = None
    payer_id: int | None = None
    type: PaymentType | str | None = None
    pay_member_id: int | None = None
    exchange_rate: float | None = None
    attend_member_ids: list[int] | None = None
    date: str | date | datetime | None = None

    def specifies_source(self) -> bool:
        return self.payer_id is not None or self.type is not None or self.pay_member_id is not None


def _resolve_source(request: PaymentRequest, existing: Payment | None) -> PaymentSource:
    if existing is not None and not request.specifies_source():
        return existing.source
    return resolve_payment_source(request.payer_id, request.type, request.pay_member_id)


def _resolve_amount(request: PaymentRequest, currency: str, existing: Payment | None) -> float:
    amount = request.original_price if request.original_price is not None else request.price
    if amount is None and existing is not None:
        if existing.currency == currency and existing.original_price is not None:
            amount = existing.original_price
        elif is_settlement_currency(currency):
            amount = existing.price
    if amount is None:
        raise InvalidRequestError("Payment requires a price or original_price")
    return amount


def _resolve_rate(
    request: PaymentRequest, currency: str, existing: Payment | None, resolver: RateResolver
) -> float:
    if request.exchange_rate is not None and request.exchange_rate > 0:
        return float(request.exchange_rate)
    if (
        existing is not None
        and request.date is None
        and existing.currency == currency
        and existing.exchange_rate
        and existing.exchange_rate > 0
    ):
        return existing.exchange_rate

    quote = resolver.require_rate(currency, request.date)
    logger.debug(f"Resolved {currency} rate {quote.rate} ({quote.source.value}, {quote.date})")
    return quote.rate


def normalize_payment(
    meeting_id: int,
    request: PaymentRequest,
    resolver: RateResolver,
    existing: Payment | None = None,
) -> Payment:
    """
    Build the Payment to store for a create or update request.

    Unspecified request fields fall back to the existing payment's values,
    so partial updates keep previously resolved currency and rate state.

    Args:
        meeting_id: Owning meeting
        request: Requested field values
        resolver: Exchange rate resolver, consulted only for foreign payments
        existing: Stored payment being updated, None on create

    Returns:
        New Payment (id, order_no and created_at carried over from existing)

    Raises:
        InvalidRequestError: No amount, or INDIVIDUAL without a paying member
        RateResolutionError: Foreign currency with no usable rate
    """
    currency = (request.currency or (existing.currency if existing else None) or SETTLEMENT_CURRENCY).upper()
    original_price = _resolve_amount(request, currency, existing)
    source = _resolve_source(request, existing)

    if is_settlement_currency(currency):
        price = round_half_up(original_price)
        original_price = price
        exchange_rate = 1.0
    else:
        exchange_rate = _resolve_rate(request, currency, existing, resolver)
        price = convert_to_krw(original_price, exchange_rate)

    name = request.name or request.place or (existing.name if existing else None) or ""
    place = request.place or request.name or (existing.place if existing else None)
    if request.attend_member_ids is not None:
        attend_member_ids = list(request.attend_member_ids)
    else:
        attend_member_ids = list(existing.attend_member_ids) if existing else []

    return Payment(
        id=existing.id if existing else None,
        meeting_id=meeting_id,
        name=name,
        place=place,
        price=price,
        source=source,
        attend_member_ids=attend_member_ids,
        currency=currency,
        original_price=original_price,
        exchange_rate=exchange_rate,
        order_no=existing.order_no if existing else None,
        created_at=existing.created_at if existing else datetime.now().isoformat(timespec="seconds"),
    )
