#!/usr/bin/env python3
"""
Trip Destination Countries

Country code to currency mapping used when a trip meeting is created.
"""

from dataclasses import dataclass

from ..core.currency import SETTLEMENT_CURRENCY


@dataclass(frozen=True)
class Country:
    code: str
    name: str
    currency: str
    symbol: str


COUNTRIES: list[Country] = [
    Country("KR", "대한민국", "KRW", "₩"),
    Country("JP", "일본", "JPY", "¥"),
    Country("US", "미국", "USD", "$"),
    Country("CN", "중국", "CNY", "¥"),
    Country("GB", "영국", "GBP", "£"),
    Country("EU", "유럽연합", "EUR", "€"),
    Country("TH", "태국", "THB", "฿"),
    Country("VN", "베트남", "VND", "₫"),
    Country("PH", "필리핀", "PHP", "₱"),
    Country("SG", "싱가포르", "SGD", "S$"),
    Country("MY", "말레이시아", "MYR", "RM"),
    Country("ID", "인도네시아", "IDR", "Rp"),
    Country("AU", "호주", "AUD", "A$"),
    Country("NZ", "뉴질랜드", "NZD", "NZ$"),
    Country("CA", "캐나다", "CAD", "C$"),
    Country("TW", "대만", "TWD", "NT$"),
]

_BY_CODE = {country.code: country for country in COUNTRIES}


def currency_for_country(country_code: str | None) -> str:
    """
    Currency of a destination country; unknown codes settle in KRW.

    Examples:
        currency_for_country("jp") -> 'JPY'
        currency_for_country("XX") -> 'KRW'
    """
    country = _BY_CODE.get((country_code or "").upper())
    return country.currency if country else SETTLEMENT_CURRENCY


def is_domestic(country_code: str | None) -> bool:
    return (country_code or "").upper() == "KR"
