#!/usr/bin/env python3
"""Tests for the ExchangeRate-API client."""

from unittest.mock import MagicMock

import pytest
import requests

from nbbang.core.exceptions import RateSourceError
from nbbang.rates.source import ExchangeRateApiSource


def make_session(payload=None, error=None):
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
        return session
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session.get.return_value = response
    return session


class TestExchangeRateApiSource:
    """Test fetching and error mapping."""

    @pytest.mark.rates
    def test_fetch_latest_success(self):
        session = make_session({"result": "success", "conversion_rates": {"KRW": 1, "JPY": 0.11, "USD": 0.00075}})
        source = ExchangeRateApiSource("secret", base_url="https://api.example.com/v6/", timeout=3, session=session)

        rates = source.fetch_latest()

        assert rates == {"KRW": 1.0, "JPY": 0.11, "USD": 0.00075}
        session.get.assert_called_once_with("https://api.example.com/v6/secret/latest/KRW", timeout=3)

    @pytest.mark.rates
    def test_missing_api_key(self):
        session = make_session()
        source = ExchangeRateApiSource(None, session=session)

        with pytest.raises(RateSourceError, match="EXCHANGE_RATE_API_KEY"):
            source.fetch_latest()
        session.get.assert_not_called()

    @pytest.mark.rates
    def test_api_error_result(self):
        session = make_session({"result": "error", "error-type": "invalid-key"})
        source = ExchangeRateApiSource("secret", session=session)

        with pytest.raises(RateSourceError, match="error"):
            source.fetch_latest()

    @pytest.mark.rates
    def test_network_failure(self):
        session = make_session(error=requests.ConnectionError("connection refused"))
        source = ExchangeRateApiSource("secret", session=session)

        with pytest.raises(RateSourceError, match="connection refused"):
            source.fetch_latest()

    @pytest.mark.rates
    def test_http_error_status(self):
        session = make_session({})
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        source = ExchangeRateApiSource("secret", session=session)

        with pytest.raises(RateSourceError, match="503"):
            source.fetch_latest()

    @pytest.mark.rates
    def test_invalid_json(self):
        session = make_session()
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        source = ExchangeRateApiSource("secret", session=session)

        with pytest.raises(RateSourceError, match="Invalid exchange rate response"):
            source.fetch_latest()

    @pytest.mark.rates
    def test_non_numeric_rate_value(self):
        """Test a malformed rate value is reported as a source failure."""
        session = make_session({"result": "success", "conversion_rates": {"JPY": "n/a"}})
        source = ExchangeRateApiSource("secret", session=session)

        with pytest.raises(RateSourceError, match="Invalid exchange rate response"):
            source.fetch_latest()
