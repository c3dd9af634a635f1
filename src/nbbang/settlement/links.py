#!/usr/bin/env python3
"""
Deposit Links and Copy Text

Builds Toss and KakaoPay transfer links plus the "bank account amount원"
clipboard text offered next to every settlement amount. Each comes in an
exact and a tipped (rounded up to 10 won) variant.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from ..meeting.models import DepositInformation

TOSS_SEND_URL = "supertoss://send"
KAKAO_QR_URL = "https://qr.kakaopay.com/"
# KakaoPay QR links encode the amount as hex(amount * 2^19)
KAKAO_AMOUNT_MULTIPLIER = 524288


def toss_deposit_link(amount: int, bank: str, account_number: str) -> str:
    """
    Toss app deep link for sending a whole-won amount.

    Example:
        toss_deposit_link(3340, "토스뱅크", "1000-1234") ->
        'supertoss://send?amount=3340&bank=%ED%86%A0...&accountNo=1000-1234'
    """
    params = urlencode({"amount": str(int(amount)), "bank": bank, "accountNo": account_number})
    return f"{TOSS_SEND_URL}?{params}"


def kakao_deposit_link(amount: int, kakao_deposit_id: str) -> str:
    """KakaoPay QR link; the amount is appended as lowercase hex of amount * 524288."""
    hex_amount = format(int(amount) * KAKAO_AMOUNT_MULTIPLIER, "x")
    return f"{KAKAO_QR_URL}{kakao_deposit_id}{hex_amount}"


def deposit_copy_text(amount: int, bank: str, account_number: str) -> str:
    return f"{bank} {account_number} {int(amount)}원"


@dataclass(frozen=True)
class DepositLinks:
    """Transfer helpers for one amount; fields are None when the deposit info is missing."""

    toss_deposit_link: str | None = None
    tipped_toss_deposit_link: str | None = None
    kakao_deposit_link: str | None = None
    tipped_kakao_deposit_link: str | None = None
    deposit_copy_text: str | None = None
    tipped_deposit_copy_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "toss_deposit_link": self.toss_deposit_link,
            "tipped_toss_deposit_link": self.tipped_toss_deposit_link,
            "kakao_deposit_link": self.kakao_deposit_link,
            "tipped_kakao_deposit_link": self.tipped_kakao_deposit_link,
            "deposit_copy_text": self.deposit_copy_text,
            "tipped_deposit_copy_text": self.tipped_deposit_copy_text,
        }


def build_deposit_links(deposit: DepositInformation, amount: int, tipped_amount: int) -> DepositLinks:
    """
    Build every available transfer helper for an amount to send.

    Amounts are sent as magnitudes; callers carry the direction separately.
    A zero amount yields no links.

    Args:
        deposit: Receiving side's deposit information
        amount: Exact whole-won amount
        tipped_amount: Same amount rounded up to 10 won
    """
    amount = abs(int(amount))
    tipped_amount = abs(int(tipped_amount))
    if amount == 0:
        return DepositLinks()

    toss: dict[str, str | None] = {}
    bank = deposit.revealed_bank()
    account_number = deposit.revealed_account_number()
    if bank and account_number:
        toss = {
            "toss_deposit_link": toss_deposit_link(amount, bank, account_number),
            "tipped_toss_deposit_link": toss_deposit_link(tipped_amount, bank, account_number),
            "deposit_copy_text": deposit_copy_text(amount, bank, account_number),
            "tipped_deposit_copy_text": deposit_copy_text(tipped_amount, bank, account_number),
        }

    kakao: dict[str, str | None] = {}
    if deposit.kakao_deposit_id:
        kakao = {
            "kakao_deposit_link": kakao_deposit_link(amount, deposit.kakao_deposit_id),
            "tipped_kakao_deposit_link": kakao_deposit_link(tipped_amount, deposit.kakao_deposit_id),
        }

    return DepositLinks(**toss, **kakao)
