#!/usr/bin/env python3
"""
Meeting Domain Models

Meetings own members, payments and shared-fund contributions. All amounts
on these records are whole KRW except Payment.original_price, which is in
the payment's own currency.
"""

import uuid as uuid_lib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from ..core.currency import SETTLEMENT_CURRENCY, is_settlement_currency, split_even
from ..core.dates import SettlementDate
from ..core.exceptions import (
    InvalidRequestError,
    LeaderDeleteError,
    MeetingUserMismatchError,
    MemberInPaymentDeleteError,
    NotTripMeetingError,
)

DEFAULT_MEETING_NAME = "모임명을 설정해주세요"


class PaymentType(Enum):
    """Who funded a payment."""

    PUBLIC = "PUBLIC"  # shared fund (gonggeum)
    INDIVIDUAL = "INDIVIDUAL"  # one member's own money


@dataclass(frozen=True)
class SharedFund:
    """Payment paid out of the meeting's shared fund."""

    @property
    def type(self) -> PaymentType:
        return PaymentType.PUBLIC


@dataclass(frozen=True)
class IndividualPayer:
    """Payment paid by one member."""

    member_id: int

    @property
    def type(self) -> PaymentType:
        return PaymentType.INDIVIDUAL


PaymentSource = SharedFund | IndividualPayer


def resolve_payment_source(
    payer_id: int | None,
    payment_type: PaymentType | str | None = None,
    pay_member_id: int | None = None,
) -> PaymentSource:
    """
    Build the payment source from loosely-typed request fields.

    An explicit type wins. Without one, a payer id of None or 0 means the
    shared fund. An explicit INDIVIDUAL type with no payer id falls back to
    pay_member_id.

    Raises:
        InvalidRequestError: INDIVIDUAL requested without any paying member
    """
    if isinstance(payment_type, str):
        payment_type = PaymentType(payment_type.upper())
    if payment_type is None:
        payment_type = PaymentType.PUBLIC if not payer_id else PaymentType.INDIVIDUAL

    if payment_type == PaymentType.PUBLIC:
        return SharedFund()

    member_id = payer_id or pay_member_id
    if not member_id:
        raise InvalidRequestError("INDIVIDUAL payment requires a paying member")
    return IndividualPayer(member_id=member_id)


class EncryptedField(Protocol):
    """Opaque secret (bank name, account number); only reveal() may read it."""

    def reveal(self) -> str | None:
        ...


@dataclass(frozen=True)
class PlainField:
    """EncryptedField holding an already-decrypted value."""

    value: str | None

    def reveal(self) -> str | None:
        return self.value


@dataclass
class DepositInformation:
    """Where members send money: Toss bank account and/or KakaoPay id."""

    bank: EncryptedField | None = None
    account_number: EncryptedField | None = None
    kakao_deposit_id: str | None = None

    def revealed_bank(self) -> str | None:
        return self.bank.reveal() if self.bank else None

    def revealed_account_number(self) -> str | None:
        return self.account_number.reveal() if self.account_number else None

    def has_bank_account(self) -> bool:
        return bool(self.revealed_bank() and self.revealed_account_number())

    def to_dict(self) -> dict[str, Any]:
        return {
            "bank": self.revealed_bank(),
            "account_number": self.revealed_account_number(),
            "kakao_deposit_id": self.kakao_deposit_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DepositInformation":
        data = data or {}
        return cls(
            bank=PlainField(data["bank"]) if data.get("bank") else None,
            account_number=PlainField(data["account_number"]) if data.get("account_number") else None,
            kakao_deposit_id=data.get("kakao_deposit_id"),
        )


@dataclass
class Member:
    """One participant in a meeting. Exactly one member per meeting is the leader."""

    id: int | None
    meeting_id: int
    name: str
    leader: bool = False
    user_id: int | None = None

    def ensure_deletable(self, payments: list["Payment"]) -> None:
        """
        Raises:
            LeaderDeleteError: The member is the leader
            MemberInPaymentDeleteError: The member attends any payment
        """
        if self.leader:
            raise LeaderDeleteError()
        for payment in payments:
            if payment.includes(self.id):
                raise MemberInPaymentDeleteError()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "meeting_id": self.meeting_id,
            "name": self.name,
            "leader": self.leader,
            "user_id": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Member":
        return cls(
            id=data.get("id"),
            meeting_id=data["meeting_id"],
            name=data["name"],
            leader=bool(data.get("leader", False)),
            user_id=data.get("user_id"),
        )


@dataclass
class Payment:
    """
    One expense record.

    price is the authoritative KRW amount. For foreign payments
    price == round_half_up(original_price * exchange_rate); for KRW payments
    price == original_price and exchange_rate == 1.0.
    """

    id: int | None
    meeting_id: int
    name: str
    price: int
    source: PaymentSource
    attend_member_ids: list[int] = field(default_factory=list)
    currency: str = SETTLEMENT_CURRENCY
    original_price: float | None = None
    exchange_rate: float | None = None
    place: str | None = None
    order_no: int | None = None
    created_at: str | None = None

    def __post_init__(self) -> None:
        self.currency = (self.currency or SETTLEMENT_CURRENCY).upper()
        # Duplicated attendee ids carry no meaning; keep first occurrence order
        self.attend_member_ids = list(dict.fromkeys(self.attend_member_ids))
        if self.place is None:
            self.place = self.name

    @property
    def type(self) -> PaymentType:
        return self.source.type

    @property
    def is_shared_fund(self) -> bool:
        return isinstance(self.source, SharedFund)

    @property
    def payer_id(self) -> int | None:
        """Paying member id, or None for shared-fund payments."""
        return self.source.member_id if isinstance(self.source, IndividualPayer) else None

    @property
    def pay_member_id(self) -> int:
        """Legacy payer field: 0 marks a shared-fund payment."""
        return self.payer_id or 0

    @property
    def is_foreign(self) -> bool:
        return not is_settlement_currency(self.currency)

    @property
    def is_advance(self) -> bool:
        """KRW payment made by one member ahead of time (e.g. flights booked at home)."""
        return not self.is_shared_fund and not self.is_foreign

    @property
    def is_card(self) -> bool:
        """Foreign-currency payment on one member's own card."""
        return not self.is_shared_fund and self.is_foreign

    @property
    def attend_count(self) -> int:
        return len(self.attend_member_ids)

    @property
    def split_price(self) -> int:
        """Per-attendee KRW share (ceiling division, 0 without attendees)."""
        return split_even(self.price, self.attend_count)

    def includes(self, member_id: int | None) -> bool:
        return member_id in self.attend_member_ids

    def foreign_cost(self, base_exchange_rate: float) -> float:
        """
        Cost in the trip's foreign currency.

        Uses original_price for foreign payments; otherwise the KRW price
        divided by the trip's base rate.
        """
        if self.is_foreign and self.original_price:
            return float(self.original_price)
        if not base_exchange_rate:
            return 0.0
        return self.price / base_exchange_rate

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "meeting_id": self.meeting_id,
            "name": self.name,
            "place": self.place,
            "price": self.price,
            "original_price": self.original_price,
            "currency": self.currency,
            "exchange_rate": self.exchange_rate,
            "payer_id": self.payer_id,
            "pay_member_id": self.pay_member_id,
            "type": self.type.value,
            "attend_member_ids": list(self.attend_member_ids),
            "order_no": self.order_no,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Payment":
        return cls(
            id=data.get("id"),
            meeting_id=data["meeting_id"],
            name=data.get("name") or data.get("place") or "",
            place=data.get("place"),
            price=int(data["price"]),
            source=resolve_payment_source(
                data.get("payer_id"), data.get("type"), data.get("pay_member_id")
            ),
            attend_member_ids=list(data.get("attend_member_ids") or []),
            currency=data.get("currency") or SETTLEMENT_CURRENCY,
            original_price=data.get("original_price"),
            exchange_rate=data.get("exchange_rate"),
            order_no=data.get("order_no"),
            created_at=data.get("created_at"),
        )


@dataclass
class Contribution:
    """KRW a member has put into the meeting's shared fund."""

    member_id: int
    meeting_id: int
    amount_krw: int

    def to_dict(self) -> dict[str, Any]:
        return {"member_id": self.member_id, "meeting_id": self.meeting_id, "amount_krw": self.amount_krw}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contribution":
        return cls(
            member_id=data["member_id"],
            meeting_id=data["meeting_id"],
            amount_krw=int(data["amount_krw"]),
        )


@dataclass
class Meeting:
    """
    A settlement session.

    Three modes: normal (N-way split over payments), simple (one price
    split over a fixed headcount), and trip (shared foreign-currency fund).
    Non-trip meetings always settle in KRW with a base rate of 1.0.
    """

    id: int | None
    user_id: int
    name: str = DEFAULT_MEETING_NAME
    date: str = ""
    uuid: str | None = None
    deposit: DepositInformation = field(default_factory=DepositInformation)
    is_simple: bool = False
    simple_price: int | None = None
    simple_member_count: int | None = None
    is_trip: bool = False
    country_code: str | None = None
    target_currency: str = SETTLEMENT_CURRENCY
    base_exchange_rate: float = 1.0
    initial_gonggeum: int = 0
    images: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.date:
            self.date = SettlementDate.today().to_iso_string()
        if not self.is_trip:
            self.target_currency = SETTLEMENT_CURRENCY
            self.base_exchange_rate = 1.0
        else:
            self.target_currency = (self.target_currency or SETTLEMENT_CURRENCY).upper()
            self.base_exchange_rate = self.base_exchange_rate or 1.0
        self.initial_gonggeum = self.initial_gonggeum or 0

    @classmethod
    def create_template(cls, user_id: int, today: SettlementDate | None = None) -> "Meeting":
        """New normal meeting with placeholder name and a fresh share uuid."""
        today = today or SettlementDate.today()
        return cls(id=None, user_id=user_id, date=today.to_iso_string(), uuid=str(uuid_lib.uuid4()))

    @classmethod
    def create_simple_template(cls, user_id: int, today: SettlementDate | None = None) -> "Meeting":
        """New simple-mode meeting with placeholder name."""
        meeting = cls.create_template(user_id, today)
        meeting.is_simple = True
        return meeting

    @property
    def meeting_type(self) -> str:
        if self.is_trip:
            return "trip"
        if self.is_simple:
            return "simple"
        return "normal"

    @property
    def is_foreign_trip(self) -> bool:
        return self.is_trip and not is_settlement_currency(self.target_currency)

    def ensure_owner(self, user_id: int) -> None:
        """
        Raises:
            MeetingUserMismatchError: user_id does not own this meeting
        """
        if self.user_id != user_id:
            raise MeetingUserMismatchError(user_id, self.id or 0)

    def ensure_trip(self) -> None:
        """
        Raises:
            NotTripMeetingError: Meeting is not in trip mode
        """
        if not self.is_trip:
            raise NotTripMeetingError(self.id)

    def update_information(self, name: str, date: str | None) -> None:
        self.name = name
        self.date = date or SettlementDate.today().to_iso_string()

    def share_link(self, base_url: str) -> str:
        if self.is_simple:
            return f"{base_url}/share?simple-meeting={self.uuid}"
        return f"{base_url}/share?meeting={self.uuid}"

    def trip_share_link(self, base_url: str) -> str | None:
        if self.is_trip and self.uuid:
            return f"{base_url}/meeting/trip-page?uuid={self.uuid}"
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "date": self.date,
            "uuid": self.uuid,
            "meeting_type": self.meeting_type,
            "deposit": self.deposit.to_dict(),
            "is_simple": self.is_simple,
            "simple_price": self.simple_price,
            "simple_member_count": self.simple_member_count,
            "is_trip": self.is_trip,
            "country_code": self.country_code,
            "target_currency": self.target_currency,
            "base_exchange_rate": self.base_exchange_rate,
            "initial_gonggeum": self.initial_gonggeum,
            "images": list(self.images),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Meeting":
        return cls(
            id=data.get("id"),
            user_id=data["user_id"],
            name=data.get("name") or DEFAULT_MEETING_NAME,
            date=data.get("date") or "",
            uuid=data.get("uuid"),
            deposit=DepositInformation.from_dict(data.get("deposit")),
            is_simple=bool(data.get("is_simple", False)),
            simple_price=data.get("simple_price"),
            simple_member_count=data.get("simple_member_count"),
            is_trip=bool(data.get("is_trip", False)),
            country_code=data.get("country_code"),
            target_currency=data.get("target_currency") or SETTLEMENT_CURRENCY,
            base_exchange_rate=float(data.get("base_exchange_rate") or 1.0),
            initial_gonggeum=int(data.get("initial_gonggeum") or 0),
            images=list(data.get("images") or []),
        )
