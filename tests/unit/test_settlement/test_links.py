#!/usr/bin/env python3
"""Tests for deposit links and copy text."""

from urllib.parse import parse_qs, urlparse

import pytest

from nbbang.meeting.models import DepositInformation, PlainField
from nbbang.settlement.links import (
    build_deposit_links,
    deposit_copy_text,
    kakao_deposit_link,
    toss_deposit_link,
)

FULL_DEPOSIT = DepositInformation(PlainField("토스뱅크"), PlainField("1000-1234-5678"), "kakaoid")


class TestLinkFormats:
    """Test individual link builders."""

    @pytest.mark.settlement
    def test_toss_link_is_url_encoded(self):
        link = toss_deposit_link(3340, "토스뱅크", "1000-1234-5678")
        parsed = urlparse(link)
        assert f"{parsed.scheme}://{parsed.netloc}" == "supertoss://send"
        assert parse_qs(parsed.query) == {"amount": ["3340"], "bank": ["토스뱅크"], "accountNo": ["1000-1234-5678"]}
        assert "토스" not in link

    @pytest.mark.settlement
    def test_kakao_link_hex_amount(self):
        """Test the amount is appended as lowercase hex of amount * 2^19."""
        assert kakao_deposit_link(1, "abc") == "https://qr.kakaopay.com/abc80000"
        assert kakao_deposit_link(3334, "abc") == "https://qr.kakaopay.com/abc" + format(3334 * 524288, "x")

    @pytest.mark.settlement
    def test_copy_text(self):
        assert deposit_copy_text(3334, "토스뱅크", "1000-1234") == "토스뱅크 1000-1234 3334원"


class TestBuildDepositLinks:
    """Test the combined transfer helpers."""

    @pytest.mark.settlement
    def test_full_deposit_info(self):
        links = build_deposit_links(FULL_DEPOSIT, 3334, 3340)
        assert links.deposit_copy_text == "토스뱅크 1000-1234-5678 3334원"
        assert links.tipped_deposit_copy_text == "토스뱅크 1000-1234-5678 3340원"
        assert links.kakao_deposit_link.endswith(format(3334 * 524288, "x"))
        assert links.tipped_kakao_deposit_link.endswith(format(3340 * 524288, "x"))
        assert "amount=3340" in links.tipped_toss_deposit_link

    @pytest.mark.settlement
    def test_negative_amounts_use_magnitude(self):
        links = build_deposit_links(FULL_DEPOSIT, -1537, -1540)
        assert links.deposit_copy_text == "토스뱅크 1000-1234-5678 1537원"
        assert links.tipped_deposit_copy_text == "토스뱅크 1000-1234-5678 1540원"

    @pytest.mark.settlement
    def test_kakao_only(self):
        links = build_deposit_links(DepositInformation(kakao_deposit_id="kakaoid"), 1000, 1000)
        assert links.toss_deposit_link is None
        assert links.deposit_copy_text is None
        assert links.kakao_deposit_link is not None

    @pytest.mark.settlement
    def test_bank_without_account_has_no_toss(self):
        links = build_deposit_links(DepositInformation(bank=PlainField("토스뱅크")), 1000, 1000)
        assert links.to_dict() == {key: None for key in links.to_dict()}

    @pytest.mark.settlement
    def test_zero_amount_has_no_links(self):
        links = build_deposit_links(FULL_DEPOSIT, 0, 0)
        assert all(value is None for value in links.to_dict().values())
