"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from pathlib import Path

import pytest

from nbbang.core.dates import SettlementDate
from nbbang.meeting.datastore import InMemoryLedgerStore
from nbbang.meeting.service import MeetingService, MemberService, PaymentService
from nbbang.rates.datastore import InMemoryRateStore
from nbbang.rates.models import ExchangeRateSnapshot
from nbbang.rates.resolver import ExchangeRateResolver

TODAY = SettlementDate.from_string("2024-08-20")
OWNER_ID = 7


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def today() -> SettlementDate:
    return TODAY


@pytest.fixture
def rate_store() -> InMemoryRateStore:
    """Cached JPY/USD rates for the days before and on TODAY."""
    return InMemoryRateStore(
        [
            ExchangeRateSnapshot(SettlementDate.from_string("2024-08-15"), "JPY", 9.0),
            ExchangeRateSnapshot(SettlementDate.from_string("2024-08-19"), "JPY", 9.1),
            ExchangeRateSnapshot(TODAY, "JPY", 9.2),
            ExchangeRateSnapshot(SettlementDate.from_string("2024-08-15"), "USD", 1350.0),
        ]
    )


@pytest.fixture
def resolver(rate_store) -> ExchangeRateResolver:
    """Resolver with a fixed clock and no external source."""
    return ExchangeRateResolver(rate_store, clock=lambda: TODAY)


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def meeting_service(ledger_store, resolver) -> MeetingService:
    return MeetingService(ledger_store, resolver, "https://nbbang.shop")


@pytest.fixture
def member_service(ledger_store, meeting_service) -> MemberService:
    return MemberService(ledger_store, meeting_service.engine)


@pytest.fixture
def payment_service(ledger_store, resolver) -> PaymentService:
    return PaymentService(ledger_store, resolver)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real data or a real API key
    monkeypatch.setenv("NBBANG_ENV", "test")
    monkeypatch.setenv("NBBANG_DATA_DIR", str(tmp_path / "nbbang_data"))
    monkeypatch.setenv("EXCHANGE_RATE_API_KEY", "test-key")
    monkeypatch.setattr("nbbang.core.config._config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for rounding and money handling")
    config.addinivalue_line("markers", "rates: Tests for exchange rate resolution")
    config.addinivalue_line("markers", "settlement: Tests for split and settlement engines")
    config.addinivalue_line("markers", "trip: Tests for shared-fund trip settlement")
    config.addinivalue_line("markers", "meeting: Tests for meeting, member and payment services")
    config.addinivalue_line("markers", "cli: Tests for the command-line interface")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
