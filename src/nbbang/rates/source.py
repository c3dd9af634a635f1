#!/usr/bin/env python3
"""
ExchangeRate-API Client

Fetches the full table of latest rates with KRW as the base currency.
The API answers "1 KRW = X currency"; inversion to "1 currency = 1/X KRW"
happens in the resolver, not here.
"""

import logging
from typing import Any

import requests

from ..core.exceptions import RateSourceError

logger = logging.getLogger(__name__)


class ExchangeRateApiSource:
    """
    Bulk rate source backed by https://www.exchangerate-api.com/.

    Network calls are bounded by a short timeout; any failure is raised as
    RateSourceError so callers can decide whether to fall back.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://v6.exchangerate-api.com/v6",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_latest(self, base_currency: str = "KRW") -> dict[str, float]:
        """
        Fetch all latest conversion rates for a base currency.

        Args:
            base_currency: Base currency code (default KRW)

        Returns:
            Mapping of currency code -> units of that currency per 1 base unit

        Raises:
            RateSourceError: Missing API key, HTTP/network failure, or a
                non-success API result or malformed rate values
        """
        if not self.api_key:
            raise RateSourceError("EXCHANGE_RATE_API_KEY is not set in environment variables")

        url = f"{self.base_url}/{self.api_key}/latest/{base_currency}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload: dict[str, Any] = response.json()
        except requests.RequestException as e:
            raise RateSourceError(f"Failed to fetch exchange rate: {e}") from e
        except ValueError as e:
            raise RateSourceError(f"Invalid exchange rate response: {e}") from e

        if not isinstance(payload, dict) or payload.get("result") != "success":
            result = payload.get("result") if isinstance(payload, dict) else payload
            raise RateSourceError(f"ExchangeRate API error: {result}")

        try:
            rates = {code: float(value) for code, value in (payload.get("conversion_rates") or {}).items()}
        except (TypeError, ValueError, AttributeError) as e:
            raise RateSourceError(f"Invalid exchange rate response: {e}") from e

        logger.info(f"Fetched {len(rates)} exchange rates from API (base={base_currency})")
        return rates
