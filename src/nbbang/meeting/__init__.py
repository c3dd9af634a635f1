"""
Meeting Package

Meetings, members, payments and shared-fund contributions, with payment
normalization and ledger persistence. Services live in nbbang.meeting.service.
"""

from .datastore import InMemoryLedgerStore, JsonLedgerStore, LedgerStore
from .models import (
    Contribution,
    DepositInformation,
    EncryptedField,
    IndividualPayer,
    Meeting,
    Member,
    Payment,
    PaymentSource,
    PaymentType,
    PlainField,
    SharedFund,
)
from .normalize import PaymentRequest, normalize_payment

__all__ = [
    "Contribution",
    "DepositInformation",
    "EncryptedField",
    "InMemoryLedgerStore",
    "IndividualPayer",
    "JsonLedgerStore",
    "LedgerStore",
    "Meeting",
    "Member",
    "Payment",
    "PaymentRequest",
    "PaymentSource",
    "PaymentType",
    "PlainField",
    "SharedFund",
    "normalize_payment",
]
