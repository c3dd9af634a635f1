#!/usr/bin/env python3
"""
Ledger DataStore Implementations

Persistence of meetings, members, payments and contributions.

Records are stored as plain dicts and rebuilt into models on every read,
so callers always work on a snapshot and must write changes back
explicitly. Ids are assigned sequentially per record type.
"""

import logging
from pathlib import Path
from typing import Any, Protocol

from ..core.exceptions import MeetingNotFoundError, MemberNotFoundError, PaymentNotFoundError
from ..core.json_utils import read_json, write_json
from .models import Contribution, Meeting, Member, Payment

logger = logging.getLogger(__name__)

_TABLES = ("meetings", "members", "payments", "contributions")


class LedgerStore(Protocol):
    """Persistence interface used by the meeting, member and payment services."""

    def add_meeting(self, meeting: Meeting) -> Meeting:
        ...

    def update_meeting(self, meeting: Meeting) -> None:
        ...

    def get_meeting(self, meeting_id: int) -> Meeting | None:
        ...

    def get_meeting_by_uuid(self, uuid: str) -> Meeting | None:
        ...

    def list_meetings(self, user_id: int) -> list[Meeting]:
        ...

    def delete_meeting(self, meeting_id: int) -> None:
        ...

    def add_member(self, member: Member) -> Member:
        ...

    def update_member(self, member: Member) -> None:
        ...

    def get_member(self, member_id: int) -> Member | None:
        ...

    def list_members(self, meeting_id: int) -> list[Member]:
        ...

    def delete_member(self, member_id: int) -> None:
        ...

    def add_payment(self, payment: Payment) -> Payment:
        ...

    def update_payment(self, payment: Payment) -> None:
        ...

    def get_payment(self, payment_id: int) -> Payment | None:
        ...

    def list_payments(self, meeting_id: int) -> list[Payment]:
        ...

    def delete_payment(self, payment_id: int) -> None:
        ...

    def set_payment_order(self, meeting_id: int, payment_ids: list[int]) -> None:
        ...

    def add_contribution_amount(self, meeting_id: int, member_id: int, amount_krw: int) -> Contribution:
        ...

    def list_contributions(self, meeting_id: int) -> list[Contribution]:
        ...


class InMemoryLedgerStore:
    """Ledger held in dicts; insertion order is kept for every table."""

    def __init__(self, data: dict[str, Any] | None = None):
        data = data or {}
        self._tables: dict[str, dict[int, dict[str, Any]]] = {
            table: {int(record["id"]): record for record in data.get(table, [])} for table in _TABLES
        }
        self._next_ids: dict[str, int] = {
            table: max(self._tables[table], default=0) + 1 for table in _TABLES
        }

    def _commit(self) -> None:
        """Hook called after every mutation."""

    def _insert(self, table: str, record: dict[str, Any]) -> int:
        record_id = self._next_ids[table]
        self._next_ids[table] += 1
        record["id"] = record_id
        self._tables[table][record_id] = record
        self._commit()
        return record_id

    def _replace(self, table: str, record: dict[str, Any]) -> None:
        self._tables[table][record["id"]] = record
        self._commit()

    def to_dict(self) -> dict[str, Any]:
        return {table: list(self._tables[table].values()) for table in _TABLES}

    def item_count(self) -> int:
        return sum(len(records) for records in self._tables.values())

    # Meetings

    def add_meeting(self, meeting: Meeting) -> Meeting:
        meeting.id = self._insert("meetings", meeting.to_dict())
        return meeting

    def update_meeting(self, meeting: Meeting) -> None:
        if meeting.id not in self._tables["meetings"]:
            raise MeetingNotFoundError(meeting.id or 0)
        self._replace("meetings", meeting.to_dict())

    def get_meeting(self, meeting_id: int) -> Meeting | None:
        record = self._tables["meetings"].get(meeting_id)
        return Meeting.from_dict(record) if record else None

    def get_meeting_by_uuid(self, uuid: str) -> Meeting | None:
        for record in self._tables["meetings"].values():
            if record.get("uuid") == uuid:
                return Meeting.from_dict(record)
        return None

    def list_meetings(self, user_id: int) -> list[Meeting]:
        return [Meeting.from_dict(r) for r in self._tables["meetings"].values() if r["user_id"] == user_id]

    def delete_meeting(self, meeting_id: int) -> None:
        """Delete a meeting with its members, payments and contributions."""
        self._tables["meetings"].pop(meeting_id, None)
        for table in ("members", "payments", "contributions"):
            owned = [rid for rid, r in self._tables[table].items() if r["meeting_id"] == meeting_id]
            for record_id in owned:
                del self._tables[table][record_id]
        self._commit()

    # Members

    def add_member(self, member: Member) -> Member:
        member.id = self._insert("members", member.to_dict())
        return member

    def update_member(self, member: Member) -> None:
        if member.id not in self._tables["members"]:
            raise MemberNotFoundError(member.id or 0)
        self._replace("members", member.to_dict())

    def get_member(self, member_id: int) -> Member | None:
        record = self._tables["members"].get(member_id)
        return Member.from_dict(record) if record else None

    def list_members(self, meeting_id: int) -> list[Member]:
        return [Member.from_dict(r) for r in self._tables["members"].values() if r["meeting_id"] == meeting_id]

    def delete_member(self, member_id: int) -> None:
        self._tables["members"].pop(member_id, None)
        self._commit()

    # Payments

    def add_payment(self, payment: Payment) -> Payment:
        payment.id = self._insert("payments", payment.to_dict())
        return payment

    def update_payment(self, payment: Payment) -> None:
        if payment.id not in self._tables["payments"]:
            raise PaymentNotFoundError(payment.id or 0)
        self._replace("payments", payment.to_dict())

    def get_payment(self, payment_id: int) -> Payment | None:
        record = self._tables["payments"].get(payment_id)
        return Payment.from_dict(record) if record else None

    def list_payments(self, meeting_id: int) -> list[Payment]:
        """Payments ordered by order_no ascending (unset last), then insertion order."""
        records = [r for r in self._tables["payments"].values() if r["meeting_id"] == meeting_id]
        records.sort(key=lambda r: (r.get("order_no") is None, r.get("order_no") or 0))
        return [Payment.from_dict(r) for r in records]

    def delete_payment(self, payment_id: int) -> None:
        self._tables["payments"].pop(payment_id, None)
        self._commit()

    def set_payment_order(self, meeting_id: int, payment_ids: list[int]) -> None:
        for index, payment_id in enumerate(payment_ids):
            record = self._tables["payments"].get(payment_id)
            if record is not None and record["meeting_id"] == meeting_id:
                record["order_no"] = index
        self._commit()

    # Contributions

    def add_contribution_amount(self, meeting_id: int, member_id: int, amount_krw: int) -> Contribution:
        """Increment a member's contribution, creating it on first use."""
        for record in self._tables["contributions"].values():
            if record["meeting_id"] == meeting_id and record["member_id"] == member_id:
                record["amount_krw"] += amount_krw
                self._commit()
                return Contribution.from_dict(record)

        contribution = Contribution(member_id=member_id, meeting_id=meeting_id, amount_krw=amount_krw)
        record = contribution.to_dict()
        self._insert("contributions", record)
        return contribution

    def list_contributions(self, meeting_id: int) -> list[Contribution]:
        return [
            Contribution.from_dict(r) for r in self._tables["contributions"].values() if r["meeting_id"] == meeting_id
        ]


class JsonLedgerStore(InMemoryLedgerStore):
    """
    Ledger persisted to a single JSON file.

    The whole ledger is rewritten after every mutation.
    """

    def __init__(self, ledger_file: Path):
        self.ledger_file = ledger_file
        data = None
        if ledger_file.exists():
            data = read_json(ledger_file)
            logger.debug(f"Loaded ledger from {ledger_file}")
        super().__init__(data)

    def exists(self) -> bool:
        return self.ledger_file.exists()

    def _commit(self) -> None:
        write_json(self.ledger_file, self.to_dict())
