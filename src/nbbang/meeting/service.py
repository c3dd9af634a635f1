#!/usr/bin/env python3
"""
Meeting, Member and Payment Services

Owner-checked operations over a LedgerStore. Every check runs before the
first write, so a rejected request leaves the ledger untouched.

Collaborators are passed in explicitly: the ledger store, the exchange
rate resolver and the trip engine built on it.
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..core.currency import SETTLEMENT_CURRENCY, round_half_up
from ..core.exceptions import (
    IncompleteShareError,
    InvalidRequestError,
    LeaderAlreadyExistsError,
    MeetingNotFoundError,
    MemberNotFoundError,
    PaymentNotFoundError,
    SharePageNotFoundError,
)
from ..rates.resolver import RateResolver
from ..settlement import report
from ..settlement.trip import TripEngine, TripLedger
from .countries import currency_for_country, is_domestic
from .datastore import LedgerStore
from .models import DepositInformation, IndividualPayer, Meeting, Member, Payment, PlainField
from .normalize import PaymentRequest, normalize_payment

logger = logging.getLogger(__name__)

DEFAULT_SHARE_BASE_URL = "https://nbbang.shop"


@dataclass
class TripContribution:
    """Initial shared-fund contribution of one trip member."""

    amount_krw: int
    name: str | None = None


@dataclass
class AdvancePayment:
    """KRW payment one member made before the trip, e.g. flights."""

    name: str
    price: float
    pay_member_name: str


class _LedgerService:
    def __init__(self, store: LedgerStore):
        self.store = store

    def _owned_meeting(self, meeting_id: int, user_id: int) -> Meeting:
        """
        Raises:
            MeetingNotFoundError: No such meeting
            MeetingUserMismatchError: user_id does not own it
        """
        meeting = self.store.get_meeting(meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        meeting.ensure_owner(user_id)
        return meeting

    def _trip_ledger(self, meeting: Meeting) -> TripLedger:
        return TripLedger(
            meeting=meeting,
            members=self.store.list_members(meeting.id),
            payments=self.store.list_payments(meeting.id),
            contributions=self.store.list_contributions(meeting.id),
        )

    def _check_members_belong(self, meeting_id: int, member_ids: list[int]) -> None:
        known = {m.id for m in self.store.list_members(meeting_id)}
        for member_id in member_ids:
            if member_id not in known:
                raise InvalidRequestError(f"Member {member_id} not found or does not belong to this meeting")


class MeetingService(_LedgerService):
    """
    Meeting lifecycle, trip fund management and meeting-level read views.

    Args:
        store: Ledger persistence
        resolver: Exchange rate resolver (trip creation and live revaluation)
        share_base_url: Base URL of public share links
    """

    def __init__(
        self,
        store: LedgerStore,
        resolver: RateResolver,
        share_base_url: str = DEFAULT_SHARE_BASE_URL,
    ):
        super().__init__(store)
        self.resolver = resolver
        self.engine = TripEngine(resolver)
        self.share_base_url = share_base_url.rstrip("/")

    def create(self, user_id: int) -> Meeting:
        meeting = self.store.add_meeting(Meeting.create_template(user_id, self.resolver.today()))
        logger.info(f"Created meeting {meeting.id} for user {user_id}")
        return meeting

    def create_simple(self, user_id: int) -> Meeting:
        meeting = self.store.add_meeting(Meeting.create_simple_template(user_id, self.resolver.today()))
        logger.info(f"Created simple meeting {meeting.id} for user {user_id}")
        return meeting

    def create_trip_meeting(
        self,
        user_id: int,
        country_code: str,
        total_foreign: float | None = None,
        contributions: list[TripContribution] | None = None,
        advance_payments: list[AdvancePayment] | None = None,
        deposit: DepositInformation | None = None,
    ) -> Meeting:
        """
        Create a trip meeting with its members, contributions and advance payments.

        Members are created in contribution order; the first is the leader
        and unnamed members are called "멤버 N". Advance payments are KRW
        INDIVIDUAL payments attended by every member, matched to their payer
        by member name.

        Args:
            user_id: Owner
            country_code: Destination (ISO 3166 alpha-2, "EU" for the euro zone)
            total_foreign: Foreign amount bought with the contributions; fixes
                the base rate at total KRW / total foreign
            contributions: Initial contributions, one per member
            advance_payments: Pre-trip KRW payments
            deposit: Owner's deposit information

        Raises:
            InvalidRequestError: Advance payments without members, or an
                advance payment naming an unknown member
        """
        contributions = contributions or []
        advance_payments = advance_payments or []
        country_code = country_code.upper()
        target_currency = currency_for_country(country_code)

        member_names = [c.name or f"멤버 {i + 1}" for i, c in enumerate(contributions)]
        if advance_payments and not member_names:
            raise InvalidRequestError(
                "Cannot create advance payments: no members found. Please create members first with contributions."
            )
        for advance in advance_payments:
            if advance.pay_member_name not in member_names:
                raise InvalidRequestError(
                    f"Member not found: {advance.pay_member_name}. "
                    "Please ensure the member name matches one in contributions."
                )

        total_krw = sum(c.amount_krw for c in contributions)
        base_exchange_rate = self._initial_base_rate(country_code, target_currency, total_krw, total_foreign)

        meeting = Meeting.create_template(user_id, self.resolver.today())
        meeting.is_trip = True
        meeting.country_code = country_code
        meeting.target_currency = target_currency
        meeting.base_exchange_rate = base_exchange_rate
        meeting.initial_gonggeum = total_krw
        if deposit is not None:
            meeting.deposit = deposit
        meeting = self.store.add_meeting(meeting)

        member_ids: dict[str, int] = {}
        all_member_ids: list[int] = []
        for index, (name, contribution) in enumerate(zip(member_names, contributions)):
            member = self.store.add_member(Member(id=None, meeting_id=meeting.id, name=name, leader=index == 0))
            member_ids.setdefault(name, member.id)
            all_member_ids.append(member.id)
            if contribution.amount_krw:
                self.store.add_contribution_amount(meeting.id, member.id, contribution.amount_krw)

        for advance in advance_payments:
            payer_id = member_ids[advance.pay_member_name]
            price = round_half_up(advance.price)
            self.store.add_payment(
                Payment(
                    id=None,
                    meeting_id=meeting.id,
                    name=advance.name,
                    price=price,
                    source=IndividualPayer(payer_id),
                    attend_member_ids=list(all_member_ids),
                    currency=SETTLEMENT_CURRENCY,
                    original_price=price,
                    exchange_rate=1.0,
                )
            )

        logger.info(
            f"Created trip meeting {meeting.id} ({country_code}/{target_currency}, "
            f"base rate {base_exchange_rate}, {len(member_names)} members, "
            f"{len(advance_payments)} advance payments)"
        )
        return meeting

    def _initial_base_rate(
        self, country_code: str, target_currency: str, total_krw: int, total_foreign: float | None
    ) -> float:
        if is_domestic(country_code) or target_currency == SETTLEMENT_CURRENCY:
            return 1.0
        if total_foreign and total_foreign > 0 and total_krw > 0:
            return total_krw / total_foreign
        return self.resolver.get_rate(target_currency)

    def update_simple_meeting_data(
        self,
        meeting_id: int,
        user_id: int,
        simple_price: int | None,
        simple_member_count: int | None,
        name: str | None = None,
        date: str | None = None,
    ) -> None:
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.simple_price = simple_price
        meeting.simple_member_count = simple_member_count
        if name is not None:
            meeting.update_information(name, date)
        self.store.update_meeting(meeting)

    def edit_information(self, meeting_id: int, user_id: int, name: str, date: str | None) -> None:
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.update_information(name, date)
        self.store.update_meeting(meeting)

    def edit_kakao_deposit(self, meeting_id: int, user_id: int, kakao_deposit_id: str | None) -> None:
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.deposit.kakao_deposit_id = kakao_deposit_id
        self.store.update_meeting(meeting)

    def edit_toss_deposit(self, meeting_id: int, user_id: int, bank: str, account_number: str) -> None:
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.deposit.bank = PlainField(bank)
        meeting.deposit.account_number = PlainField(account_number)
        self.store.update_meeting(meeting)

    def add_budget(self, meeting_id: int, user_id: int, amount: int, member_ids: list[int]) -> None:
        """
        Record an extra KRW fund-raising of amount per listed member.

        Raises:
            NotTripMeetingError: Meeting is not a trip
            InvalidRequestError: Empty member list or a member outside the meeting
        """
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.ensure_trip()
        self._add_contributions(meeting, amount, member_ids)

    def add_budget_foreign(self, meeting_id: int, user_id: int, foreign_amount: float, member_ids: list[int]) -> None:
        """
        Record an extra fund-raising given in the trip's currency.

        Each member is credited round_half_up(foreign_amount * base rate) KRW.

        Raises:
            NotTripMeetingError: Meeting is not a trip
            InvalidRequestError: Bad base rate, empty member list, or a
                member outside the meeting
        """
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.ensure_trip()
        if not meeting.base_exchange_rate or meeting.base_exchange_rate <= 0:
            raise InvalidRequestError("Invalid baseExchangeRate. Please set exchange rate for this meeting.")
        amount_krw = round_half_up(foreign_amount * meeting.base_exchange_rate)
        self._add_contributions(meeting, amount_krw, member_ids)

    def _add_contributions(self, meeting: Meeting, amount_krw: int, member_ids: list[int]) -> None:
        if not member_ids:
            raise InvalidRequestError("memberIds is required and must not be empty")
        self._check_members_belong(meeting.id, member_ids)
        for member_id in member_ids:
            self.store.add_contribution_amount(meeting.id, member_id, amount_krw)
        logger.info(f"Added {amount_krw} KRW to the fund of meeting {meeting.id} for {len(member_ids)} members")

    def remove(self, meeting_id: int, user_id: int) -> None:
        self._owned_meeting(meeting_id, user_id)
        self.store.delete_meeting(meeting_id)
        logger.info(f"Deleted meeting {meeting_id}")

    def read(self, meeting_id: int, user_id: int) -> dict[str, Any]:
        """Meeting with share links; trips also report their fund balance at the base rate."""
        meeting = self._owned_meeting(meeting_id, user_id)
        fund = self.engine.fund_status(self._trip_ledger(meeting)) if meeting.is_trip else None
        return report.meeting_view(meeting, self.share_base_url, fund)

    def read_meetings(self, user_id: int) -> list[dict[str, Any]]:
        return [report.meeting_view(m, self.share_base_url) for m in self.store.list_meetings(user_id)]

    def read_share_page(self, uuid: str) -> dict[str, Any]:
        """
        Public share page of a normal or simple meeting.

        Raises:
            SharePageNotFoundError: Unknown uuid
            IncompleteShareError: Simple meeting without price/headcount, or
                normal meeting without members or payments
        """
        meeting = self._meeting_by_uuid(uuid)
        if meeting.is_simple:
            if not meeting.simple_price or not meeting.simple_member_count:
                raise IncompleteShareError()
            return report.simple_share_view(meeting, self.share_base_url)

        members = self.store.list_members(meeting.id)
        payments = self.store.list_payments(meeting.id)
        if not members or not payments:
            raise IncompleteShareError()
        return report.share_page_view(meeting, members, payments, self.share_base_url)

    def trip_dashboard(
        self, uuid: str, user_id: int | None = None, limit: int = report.DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> dict[str, Any]:
        """
        Public tracking dashboard of a trip.

        Raises:
            SharePageNotFoundError: Unknown uuid
            NotTripMeetingError: Meeting is not a trip
        """
        meeting = self._meeting_by_uuid(uuid)
        meeting.ensure_trip()
        return report.trip_dashboard_view(self._trip_ledger(meeting), self.engine, user_id, limit, offset)

    def trip_dashboard_by_id(
        self, meeting_id: int, user_id: int, limit: int = report.DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> dict[str, Any]:
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.ensure_trip()
        return report.trip_dashboard_view(self._trip_ledger(meeting), self.engine, user_id, limit, offset)

    def trip_result(self, meeting_id: int, user_id: int) -> dict[str, Any]:
        """
        Final settlement of a trip, revaluing remaining fund at today's rate.

        Raises:
            NotTripMeetingError: Meeting is not a trip
            LeaderNotFoundError: Trip has no leader
        """
        meeting = self._owned_meeting(meeting_id, user_id)
        meeting.ensure_trip()
        return report.trip_result_view(self._trip_ledger(meeting), self.engine)

    def trip_page(self, uuid: str) -> dict[str, Any]:
        """Public share page of a trip's final settlement."""
        meeting = self._meeting_by_uuid(uuid)
        meeting.ensure_trip()
        data = report.trip_result_view(self._trip_ledger(meeting), self.engine)
        data["meeting"]["share_link"] = meeting.trip_share_link(self.share_base_url)
        return data

    def _meeting_by_uuid(self, uuid: str) -> Meeting:
        meeting = self.store.get_meeting_by_uuid(uuid)
        if meeting is None:
            raise SharePageNotFoundError()
        return meeting


class MemberService(_LedgerService):
    """Member create/update/delete with the single-leader rule, and member balance views."""

    def __init__(self, store: LedgerStore, engine: TripEngine | None = None):
        super().__init__(store)
        self.engine = engine or TripEngine()

    def create(self, meeting_id: int, user_id: int, name: str, leader: bool = False) -> Member:
        """
        Raises:
            LeaderAlreadyExistsError: leader requested while the meeting has one
        """
        self._owned_meeting(meeting_id, user_id)
        if leader and any(m.leader for m in self.store.list_members(meeting_id)):
            raise LeaderAlreadyExistsError()
        member = self.store.add_member(Member(id=None, meeting_id=meeting_id, name=name, leader=leader))
        logger.debug(f"Created member {member.id} in meeting {meeting_id}")
        return member

    def update(self, member_id: int, meeting_id: int, user_id: int, name: str, leader: bool) -> None:
        """
        Rename a member or make them leader; the previous leader is demoted.

        Raises:
            MemberNotFoundError: No such member in the meeting
            InvalidRequestError: Request would leave the meeting without a leader
        """
        self._owned_meeting(meeting_id, user_id)
        member = self._member_of(member_id, meeting_id)
        if member.leader and not leader:
            raise InvalidRequestError("리더 멤버는 리더를 해제할 수 없습니다.")

        if leader and not member.leader:
            for previous in self.store.list_members(meeting_id):
                if previous.leader:
                    previous.leader = False
                    self.store.update_member(previous)
                    logger.info(f"Leader of meeting {meeting_id} moved from member {previous.id} to {member_id}")

        member.name = name
        member.leader = leader
        self.store.update_member(member)

    def delete(self, member_id: int, meeting_id: int, user_id: int) -> None:
        """
        Raises:
            MemberNotFoundError: No such member in the meeting
            LeaderDeleteError: Member is the leader
            MemberInPaymentDeleteError: Member attends a payment
        """
        self._owned_meeting(meeting_id, user_id)
        member = self._member_of(member_id, meeting_id)
        member.ensure_deletable(self.store.list_payments(meeting_id))
        self.store.delete_member(member_id)
        logger.debug(f"Deleted member {member_id} from meeting {meeting_id}")

    def read(self, meeting_id: int, user_id: int) -> list[dict[str, Any]]:
        """
        Member balances: N-way for domestic meetings, credit/debit at the
        base rate (with trip_details) for trips.
        """
        meeting = self._owned_meeting(meeting_id, user_id)
        if meeting.is_trip:
            return report.trip_members_view(self._trip_ledger(meeting), self.engine)
        members = self.store.list_members(meeting_id)
        payments = self.store.list_payments(meeting_id)
        return report.members_view(members, payments, meeting.deposit)

    def _member_of(self, member_id: int, meeting_id: int) -> Member:
        member = self.store.get_member(member_id)
        if member is None or member.meeting_id != meeting_id:
            raise MemberNotFoundError(member_id)
        return member


class PaymentService(_LedgerService):
    """Payment writes with currency normalization, and the payment list view."""

    def __init__(self, store: LedgerStore, resolver: RateResolver):
        super().__init__(store)
        self.resolver = resolver

    def create(self, meeting_id: int, user_id: int, request: PaymentRequest) -> Payment:
        """
        Raises:
            InvalidRequestError: Bad amount/payer or members outside the meeting
            RateResolutionError: Foreign currency with no usable rate
        """
        self._owned_meeting(meeting_id, user_id)
        payment = normalize_payment(meeting_id, request, self.resolver)
        self._check_payment_members(payment)
        payment = self.store.add_payment(payment)
        logger.info(
            f"Created payment {payment.id} in meeting {meeting_id}: "
            f"{payment.original_price} {payment.currency} -> {payment.price} KRW"
        )
        return payment

    def update(self, payment_id: int, meeting_id: int, user_id: int, request: PaymentRequest) -> Payment:
        """Partial update; unspecified fields keep their stored values."""
        self._owned_meeting(meeting_id, user_id)
        existing = self._payment_of(payment_id, meeting_id)
        payment = normalize_payment(meeting_id, request, self.resolver, existing)
        self._check_payment_members(payment)
        self.store.update_payment(payment)
        logger.info(f"Updated payment {payment_id} in meeting {meeting_id}")
        return payment

    def delete(self, payment_id: int, meeting_id: int, user_id: int) -> None:
        self._owned_meeting(meeting_id, user_id)
        self._payment_of(payment_id, meeting_id)
        self.store.delete_payment(payment_id)
        logger.info(f"Deleted payment {payment_id} from meeting {meeting_id}")

    def read(self, meeting_id: int, user_id: int) -> list[dict[str, Any]]:
        """Payments in stored order with split price and member names."""
        self._owned_meeting(meeting_id, user_id)
        members = self.store.list_members(meeting_id)
        payments = self.store.list_payments(meeting_id)
        return report.payments_view(members, payments)

    def update_order(self, meeting_id: int, user_id: int, payment_ids: list[int]) -> None:
        """
        Set manual ordering: order_no = position in payment_ids.

        Raises:
            InvalidRequestError: An id does not belong to the meeting
        """
        self._owned_meeting(meeting_id, user_id)
        known = {p.id for p in self.store.list_payments(meeting_id)}
        for payment_id in payment_ids:
            if payment_id not in known:
                raise InvalidRequestError(f"Payment {payment_id} does not belong to meeting {meeting_id}")
        self.store.set_payment_order(meeting_id, payment_ids)

    def _payment_of(self, payment_id: int, meeting_id: int) -> Payment:
        payment = self.store.get_payment(payment_id)
        if payment is None or payment.meeting_id != meeting_id:
            raise PaymentNotFoundError(payment_id)
        return payment

    def _check_payment_members(self, payment: Payment) -> None:
        member_ids = list(payment.attend_member_ids)
        if payment.payer_id is not None:
            member_ids.append(payment.payer_id)
        self._check_members_belong(payment.meeting_id, member_ids)