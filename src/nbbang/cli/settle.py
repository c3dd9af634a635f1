#!/usr/bin/env python3
"""
Scenario Settlement CLI

Loads a meeting described in a YAML (or JSON) file into an in-memory
ledger and prints a settlement view as JSON.

Scenario format:

    today: 2024-08-20              # optional fixed clock
    meeting:
      name: 도쿄 여행
      trip: true                   # or simple: true
      country_code: JP
      base_exchange_rate: 9.0      # trips; defaults to the resolved rate
      simple_price: 10000          # simple meetings
      simple_member_count: 3
      deposit: {bank: 토스뱅크, account_number: 1000-1234, kakao_deposit_id: abc}
    members:
      - {name: A, leader: true, contribution: 100000}
      - {name: B, contribution: 100000}
    payments:
      - {name: 라멘, original_price: 2000, currency: JPY, attendees: [A, B]}
      - {name: 항공권, price: 300000, payer: A}
    rates:
      - {date: 2024-08-20, currency: JPY, rate: 9.2}

Payments without a payer are paid from the shared fund; payments without
attendees are attended by every member.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click
import yaml

from ..core.dates import SettlementDate
from ..core.exceptions import NbbangError
from ..core.json_utils import format_json
from ..meeting.countries import currency_for_country
from ..meeting.datastore import InMemoryLedgerStore
from ..meeting.models import DepositInformation, Meeting, Member
from ..meeting.normalize import PaymentRequest
from ..meeting.service import MeetingService, MemberService, PaymentService
from ..rates.datastore import InMemoryRateStore
from ..rates.models import ExchangeRateSnapshot
from ..rates.resolver import ExchangeRateResolver

SCENARIO_USER_ID = 1


@dataclass
class LoadedScenario:
    """Services over an in-memory ledger holding the scenario's single meeting."""

    meeting: Meeting
    meetings: MeetingService
    members: MemberService
    payments: PaymentService


def load_scenario(data: dict[str, Any], share_base_url: str = "https://nbbang.shop") -> LoadedScenario:
    """
    Build an in-memory ledger from a scenario mapping.

    Raises:
        click.BadParameter: Malformed scenario (unknown member name, missing section)
        NbbangError: A payment or member write was rejected
    """
    today = SettlementDate.coerce(data.get("today")) or SettlementDate.today()
    snapshots = [ExchangeRateSnapshot.from_dict(r) for r in data.get("rates") or []]
    resolver = ExchangeRateResolver(InMemoryRateStore(snapshots), clock=lambda: today)

    store = InMemoryLedgerStore()
    meetings = MeetingService(store, resolver, share_base_url)
    members_service = MemberService(store, meetings.engine)
    payments_service = PaymentService(store, resolver)

    meeting_data = data.get("meeting") or {}
    is_trip = bool(meeting_data.get("trip", False))
    if meeting_data.get("simple"):
        meeting = Meeting.create_simple_template(SCENARIO_USER_ID, today)
    else:
        meeting = Meeting.create_template(SCENARIO_USER_ID, today)
    meeting.name = meeting_data.get("name") or meeting.name
    meeting.deposit = DepositInformation.from_dict(meeting_data.get("deposit"))
    meeting.simple_price = meeting_data.get("simple_price")
    meeting.simple_member_count = meeting_data.get("simple_member_count")
    if is_trip:
        meeting.is_trip = True
        meeting.country_code = (meeting_data.get("country_code") or "KR").upper()
        meeting.target_currency = meeting_data.get("currency") or currency_for_country(meeting.country_code)
        base_rate = meeting_data.get("base_exchange_rate") or resolver.get_rate(meeting.target_currency)
        meeting.base_exchange_rate = float(base_rate)
        meeting.initial_gonggeum = int(meeting_data.get("initial_gonggeum") or 0)
    meeting = store.add_meeting(meeting)

    member_ids: dict[str, int] = {}
    for index, member_data in enumerate(data.get("members") or []):
        name = member_data.get("name") or f"멤버 {index + 1}"
        member = store.add_member(
            Member(id=None, meeting_id=meeting.id, name=name, leader=bool(member_data.get("leader", False)))
        )
        member_ids[name] = member.id
        if member_data.get("contribution"):
            store.add_contribution_amount(meeting.id, member.id, int(member_data["contribution"]))

    if is_trip and not meeting_data.get("initial_gonggeum"):
        meeting.initial_gonggeum = sum(c.amount_krw for c in store.list_contributions(meeting.id))
        store.update_meeting(meeting)

    def member_id(name: str) -> int:
        if name not in member_ids:
            raise click.BadParameter(f"Unknown member name in scenario: {name}")
        return member_ids[name]

    for payment_data in data.get("payments") or []:
        attendees = payment_data.get("attendees")
        payer = payment_data.get("payer")
        request = PaymentRequest(
            name=payment_data.get("name"),
            place=payment_data.get("place"),
            price=payment_data.get("price"),
            original_price=payment_data.get("original_price"),
            currency=payment_data.get("currency"),
            exchange_rate=payment_data.get("exchange_rate"),
            payer_id=member_id(payer) if payer else None,
            attend_member_ids=[member_id(n) for n in attendees] if attendees else list(member_ids.values()),
            date=payment_data.get("date"),
        )
        payments_service.create(meeting.id, SCENARIO_USER_ID, request)

    return LoadedScenario(meeting=meeting, meetings=meetings, members=members_service, payments=payments_service)


def render_view(scenario: LoadedScenario, view: str) -> dict[str, Any]:
    """Produce the requested view; "auto" picks the result for trips and the share page otherwise."""
    meeting = scenario.meeting
    if view == "auto":
        view = "result" if meeting.is_trip else "share"

    if view == "members":
        return {"members": scenario.members.read(meeting.id, SCENARIO_USER_ID)}
    if view == "payments":
        return {"payments": scenario.payments.read(meeting.id, SCENARIO_USER_ID)}
    if view == "share":
        if meeting.is_trip:
            return scenario.meetings.trip_page(meeting.uuid)
        return scenario.meetings.read_share_page(meeting.uuid)
    if view == "dashboard":
        return scenario.meetings.trip_dashboard_by_id(meeting.id, SCENARIO_USER_ID)
    return scenario.meetings.trip_result(meeting.id, SCENARIO_USER_ID)


@click.command()
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--view",
    type=click.Choice(["auto", "members", "payments", "share", "dashboard", "result"]),
    default="auto",
    show_default=True,
    help="Settlement view to print",
)
@click.pass_context
def settle(ctx: click.Context, scenario_file: Path, view: str) -> None:
    """
    Settle the meeting described in SCENARIO_FILE and print it as JSON.

    Examples:
      nbbang settle trip.yaml
      nbbang settle dinner.yaml --view members
    """
    with open(scenario_file, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    config = (ctx.obj or {}).get("config")
    share_base_url = config.ledger.share_base_url if config else "https://nbbang.shop"

    try:
        scenario = load_scenario(data, share_base_url)
        result = render_view(scenario, view)
    except NbbangError as e:
        raise click.ClickException(e.detail) from e

    click.echo(format_json(result))
