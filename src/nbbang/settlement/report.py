#!/usr/bin/env python3
"""
Settlement Report Assembler

Turns engine results into plain dict views: domestic share pages, member
and payment lists, the trip dashboard and the trip final result.

All arithmetic happens in the engines. This module only rounds at the
boundary: whole won for KRW fields, two decimals for *_foreign fields,
one decimal for percentages.
"""

from typing import Any

from ..core.currency import round_foreign, round_half_up, round_ratio
from ..meeting.models import DepositInformation, Meeting, Member, Payment
from .domestic import MemberBalance, simple_split, split_members, split_payments
from .links import build_deposit_links
from .trip import (
    FundStatus,
    MemberSettlement,
    MemberShare,
    TripEngine,
    TripLedger,
    burn_rate_status,
    share_ratio_status,
)

DEFAULT_PAGE_SIZE = 10


def payments_view(members: list[Member], payments: list[Payment]) -> list[dict[str, Any]]:
    """Payments in stored order with split price, attendee names and payer name."""
    return [split.to_dict() for split in split_payments(members, payments)]


def member_balance_view(balance: MemberBalance, deposit: DepositInformation | None = None) -> dict[str, Any]:
    """
    One member's domestic balance, with transfer links when they owe money.
    """
    data = balance.to_dict()
    if deposit is not None and balance.amount.to_won() > 0:
        links = build_deposit_links(deposit, balance.amount.to_won(), balance.tipped_amount.to_won())
        data.update(links.to_dict())
    return data


def members_view(
    members: list[Member], payments: list[Payment], deposit: DepositInformation | None = None
) -> list[dict[str, Any]]:
    return [member_balance_view(b, deposit) for b in split_members(members, payments)]


def trip_details_view(settlement: MemberSettlement) -> dict[str, Any]:
    """Credit and debit breakdown shown next to each member of a trip meeting."""
    paid_individual = settlement.advance_payments + settlement.card_payments
    return {
        "paid_contribution": settlement.contribution,
        "paid_advance": paid_individual,
        "total_credit": settlement.total_credit,
        "used_public": round_half_up(settlement.public_consumption),
        "used_individual": round_half_up(settlement.private_consumption),
        "total_debit": round_half_up(settlement.total_debit),
        "balance": settlement.rounded_amount,
    }


def trip_members_view(ledger: TripLedger, engine: TripEngine) -> list[dict[str, Any]]:
    """Members of a trip meeting with balances at the frozen base rate."""
    settlements = engine.settle(ledger, engine.base_context(ledger))
    views = []
    for settlement in settlements:
        data = settlement.member.to_dict()
        data.update(
            {
                "amount": settlement.rounded_amount,
                "tipped_amount": settlement.tipped_amount,
                "trip_details": trip_details_view(settlement),
            }
        )
        views.append(data)
    return views


def share_page_view(
    meeting: Meeting, members: list[Member], payments: list[Payment], share_base_url: str
) -> dict[str, Any]:
    """Public share page of a normal meeting."""
    return {
        "meeting": meeting_view(meeting, share_base_url),
        "members": members_view(members, payments, meeting.deposit),
        "payments": payments_view(members, payments),
    }


def simple_share_view(meeting: Meeting, share_base_url: str) -> dict[str, Any]:
    """Public share page of a simple meeting: one per-member amount with links."""
    split = simple_split(meeting.simple_price or 0, meeting.simple_member_count or 0)
    amount = split.member_amount.to_won()
    tipped = split.tipped_member_amount.to_won()
    data = meeting_view(meeting, share_base_url)
    data.update({"simple_member_amount": amount, "simple_tipped_member_amount": tipped})
    data.update(build_deposit_links(meeting.deposit, amount, tipped).to_dict())
    return {"meeting": data}


def meeting_view(meeting: Meeting, share_base_url: str, fund: FundStatus | None = None) -> dict[str, Any]:
    """
    Meeting record with its share links and, for trips, the fund balance.
    """
    data = meeting.to_dict()
    data["share_link"] = meeting.share_link(share_base_url)
    data["trip_share_link"] = meeting.trip_share_link(share_base_url)
    if meeting.is_simple and meeting.simple_price and meeting.simple_member_count:
        split = simple_split(meeting.simple_price, meeting.simple_member_count)
        data["simple_member_amount"] = split.member_amount.to_won()
    if fund is not None:
        data.update(
            {
                "total_gonggeum_used": round_half_up(fund.spent_krw),
                "remaining_gonggeum_krw": round_half_up(fund.remaining_krw),
                "remaining_gonggeum_foreign": round_foreign(fund.remaining_foreign),
            }
        )
    return data


def _wallet_status_view(share: MemberShare, me: Member | None) -> dict[str, Any]:
    ratio = round_ratio(share.ratio)
    return {
        "member_id": share.member.id,
        "name": share.member.name,
        "initial_share": round_foreign(share.initial_share),
        "used_amount": round_foreign(share.used),
        "current_share": round_foreign(share.current_share),
        "ratio": ratio,
        "status": share_ratio_status(ratio).value,
        "is_me": me is not None and share.member.id == me.id,
    }


def _recent_payment_view(payment: Payment) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": payment.id,
        "name": payment.name or payment.place,
        "place": payment.place,
        "currency": payment.currency,
        "type": payment.type.value,
        "is_public": payment.is_shared_fund,
        "pay_member_id": payment.pay_member_id,
        "attend_member_ids": list(payment.attend_member_ids),
        "created_at": payment.created_at,
    }
    # Foreign payments show only the amount the member actually saw on the receipt
    if payment.is_foreign:
        data["original_price"] = payment.original_price
    else:
        data["price"] = payment.price
    return data


def trip_dashboard_view(
    ledger: TripLedger,
    engine: TripEngine,
    user_id: int | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> dict[str, Any]:
    """
    Live tracking dashboard of a trip, valued at the frozen base rate.

    Args:
        ledger: Trip snapshot
        engine: Trip engine (its resolver is only used for my_public_status)
        user_id: Viewer, used to flag is_me and build my_public_status
        limit: Page size of recent payments
        offset: Page offset of recent payments
    """
    fund = engine.fund_status(ledger)
    shares = engine.member_shares(ledger, fund)
    me = ledger.member_for_user(user_id)
    burn_rate = round_ratio(fund.burn_rate)

    my_public_status = None
    if me is not None:
        my_share = next(s for s in shares if s.member.id == me.id)
        my_public_status = {
            "initial_share": round_foreign(my_share.initial_share),
            "spent": round_foreign(my_share.used),
            "remaining": round_foreign(my_share.current_share),
            "is_negative": my_share.is_negative,
            "deficit_krw": round_half_up(engine.deficit_krw(ledger, my_share)),
        }

    newest_first = sorted(ledger.payments, key=lambda p: p.id or 0, reverse=True)
    page = newest_first[offset : offset + limit]

    return {
        "currency": ledger.currency,
        "total_public_remaining": round_foreign(fund.remaining_foreign),
        "my_public_status": my_public_status,
        "public_wallet": {
            "total_collected": fund.total_collected,
            "total_collected_foreign": round_foreign(fund.total_foreign),
            "total_spent": round_half_up(fund.spent_krw),
            "total_spent_foreign": round_foreign(fund.spent_foreign),
            "remaining": round_half_up(fund.remaining_krw),
            "remaining_foreign": round_foreign(fund.remaining_foreign),
            "burn_rate": burn_rate,
            "status": burn_rate_status(burn_rate).value,
        },
        "members_wallet_status": [_wallet_status_view(s, me) for s in shares],
        "recent_payments": [_recent_payment_view(p) for p in page],
        "pagination": {
            "limit": limit,
            "offset": offset,
            "total": len(newest_first),
            "has_more": offset + limit < len(newest_first),
        },
    }


def _member_result_view(settlement: MemberSettlement, leader: Member, deposit: DepositInformation) -> dict[str, Any]:
    rounded = settlement.rounded_amount
    tipped = settlement.tipped_amount
    # Only members who owe the leader get transfer helpers
    owes_leader = rounded < 0 and settlement.member.id != leader.id
    links = build_deposit_links(deposit, rounded, tipped) if owes_leader else None
    return {
        "member_id": settlement.member.id,
        "name": settlement.member.name,
        "credit": {
            "initial_contribution": settlement.contribution,
            "advance_payments": settlement.advance_payments,
            "card_payments": settlement.card_payments,
            "total": settlement.total_credit,
        },
        "debit": {
            "public_consumption": round_half_up(settlement.public_consumption),
            "private_consumption": round_half_up(settlement.private_consumption),
            "total": round_half_up(settlement.total_debit),
        },
        "final_balance": rounded,
        "tipped_balance": tipped,
        "direction": settlement.direction.value,
        "deposit_copy_text": links.deposit_copy_text if links else None,
        "tipped_deposit_copy_text": links.tipped_deposit_copy_text if links else None,
        "links": {
            "toss_deposit_link": links.toss_deposit_link if links else None,
            "tipped_toss_deposit_link": links.tipped_toss_deposit_link if links else None,
            "kakao_deposit_link": links.kakao_deposit_link if links else None,
            "tipped_kakao_deposit_link": links.tipped_kakao_deposit_link if links else None,
        },
    }


def trip_result_view(ledger: TripLedger, engine: TripEngine) -> dict[str, Any]:
    """
    Final settlement of a trip.

    Remaining foreign fund is revalued at today's rate (base rate fallback)
    and every member's foreign shared-fund consumption is costed at the same
    applied rate.

    Raises:
        LeaderNotFoundError: The trip has no leader to settle with
    """
    leader = ledger.leader()
    fund = engine.fund_status(ledger)
    context = engine.settlement_context(ledger, fund)
    settlements = engine.settle(ledger, context)
    remaining_value = engine.remaining_value(fund, context)
    deposit = ledger.meeting.deposit

    return {
        "meeting": {
            "id": ledger.meeting.id,
            "name": ledger.meeting.name,
            "currency": ledger.currency,
            "base_exchange_rate": ledger.base_rate,
        },
        "public_fund": {
            "total_foreign": round_foreign(fund.total_foreign),
            "total_spent_foreign": round_foreign(fund.spent_foreign),
            "remaining_foreign": round_foreign(fund.remaining_foreign),
            "remaining_krw_value": round_half_up(remaining_value),
            "applied_exchange_rate": context.rate,
            "exchange_rate_date": context.date.to_iso_string(),
            "is_live_rate": context.live,
        },
        "settlement": {
            "total_krw_spent": round_half_up(fund.total_collected - remaining_value),
            "members_balance": [_member_result_view(s, leader, deposit) for s in settlements],
        },
        "manager_info": {
            "member_id": leader.id,
            "name": leader.name,
            "bank": deposit.revealed_bank(),
            "account_number": deposit.revealed_account_number(),
            "kakao_deposit_id": deposit.kakao_deposit_id,
            "kakao_pay_link": f"https://qr.kakaopay.com/{deposit.kakao_deposit_id}" if deposit.kakao_deposit_id else None,
        },
    }
