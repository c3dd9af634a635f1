#!/usr/bin/env python3
"""
Exchange Rate Resolver

Answers "1 currency = ? KRW" for a calendar date using a cache-then-fallback
policy:

1. Snapshot for (date, currency) in the store.
2. On a miss for today only: sync all of today's rates from the source,
   then look again.
3. Most recent snapshot dated on or before the requested date.
4. 1.0 as a last resort.

Lookups never raise. Payment writes that need a real rate call
require_rate(), which raises RateResolutionError instead of accepting the
1.0 identity fallback.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Protocol

from ..core.currency import SETTLEMENT_CURRENCY
from ..core.dates import SettlementDate
from ..core.exceptions import RateResolutionError, RateSourceError
from .datastore import RateStore
from .models import ExchangeRateSnapshot, RateQuote, RateSource

logger = logging.getLogger(__name__)

DateLike = SettlementDate | date | datetime | str | None


class BulkRateSource(Protocol):
    """External source returning every rate for one base currency."""

    def fetch_latest(self, base_currency: str = "KRW") -> dict[str, float]:
        ...


class RateResolver(Protocol):
    """What the services and the trip engine need from a resolver."""

    def quote(self, currency: str, on: DateLike = None) -> RateQuote:
        ...

    def get_rate(self, currency: str, on: DateLike = None) -> float:
        ...

    def require_rate(self, currency: str, on: DateLike = None) -> RateQuote:
        ...

    def today(self) -> SettlementDate:
        ...


class ExchangeRateResolver:
    """
    Cache-backed exchange rate lookup with on-demand daily sync.

    Args:
        store: Snapshot cache
        source: Bulk rate source used by sync_daily_rates(); None disables sync
        clock: Returns today's date (injectable for tests)
    """

    def __init__(
        self,
        store: RateStore,
        source: BulkRateSource | None = None,
        clock: Callable[[], SettlementDate] = SettlementDate.today,
    ):
        self.store = store
        self.source = source
        self._clock = clock

    def today(self) -> SettlementDate:
        return self._clock()

    def sync_daily_rates(self) -> int:
        """
        Fetch today's rates from the source and upsert them as snapshots.

        The source quotes "1 KRW = X currency"; snapshots store the
        reciprocal "1 currency = 1/X KRW".

        Returns:
            Number of snapshots written

        Raises:
            RateSourceError: No source configured, the fetch failed, or the
                snapshots could not be written to the store
        """
        if self.source is None:
            raise RateSourceError("No exchange rate source configured")

        today = self.today()
        logger.info(f"Starting daily rate sync for {today}...")

        try:
            conversion_rates = self.source.fetch_latest(SETTLEMENT_CURRENCY)
        except RateSourceError as e:
            logger.error(f"Failed to sync daily rates: {e}")
            raise

        snapshots = [
            ExchangeRateSnapshot(date=today, currency=code, rate=1 / api_rate)
            for code, api_rate in conversion_rates.items()
            if code != SETTLEMENT_CURRENCY and api_rate > 0
        ]
        try:
            saved = self.store.upsert_many(snapshots)
        except OSError as e:
            logger.error(f"Failed to cache synced rates: {e}")
            raise RateSourceError(f"Failed to cache exchange rates: {e}") from e
        logger.info(f"Successfully synced {saved} exchange rates for {today}")
        return saved

    def quote(self, currency: str, on: DateLike = None) -> RateQuote:
        """
        Resolve the rate for a currency on a date (default today). Never raises.
        """
        quote, _ = self._resolve(currency, on)
        return quote

    def get_rate(self, currency: str, on: DateLike = None) -> float:
        """Rate as a plain number ("1 currency = rate KRW")."""
        return self.quote(currency, on).rate

    def require_rate(self, currency: str, on: DateLike = None) -> RateQuote:
        """
        Resolve a rate that is safe to freeze into a payment.

        Raises:
            RateResolutionError: Only the 1.0 identity fallback was available
        """
        quote, sync_error = self._resolve(currency, on)
        if not quote.is_usable:
            reason = str(sync_error) if sync_error else f"no exchange rate on or before {quote.date}"
            raise RateResolutionError(quote.currency, reason)
        return quote

    def get_rates(self, currencies: Iterable[str]) -> dict[str, float]:
        """
        Rates for several currencies as of today, syncing at most once.
        """
        today = self.today()
        rates: dict[str, float] = {}
        missing: list[str] = []

        for currency in {c.upper() for c in currencies}:
            if currency == SETTLEMENT_CURRENCY:
                rates[currency] = 1.0
                continue
            snapshot = self.store.get(today, currency)
            if snapshot:
                rates[currency] = snapshot.rate
            else:
                missing.append(currency)

        if missing:
            logger.debug(f"Missing rates for: {', '.join(sorted(missing))}, syncing...")
            self._try_sync()
            for currency in missing:
                rates[currency] = self._fallback(currency, today).rate

        return rates

    def _resolve(self, currency: str, on: DateLike) -> tuple[RateQuote, RateSourceError | None]:
        currency = currency.upper()
        today = self.today()

        if currency == SETTLEMENT_CURRENCY:
            return RateQuote(currency, 1.0, today, RateSource.SETTLEMENT), None

        target = SettlementDate.coerce(on) or today

        cached = self.store.get(target, currency)
        if cached:
            return RateQuote(currency, cached.rate, target, RateSource.CACHE), None

        sync_error = None
        if target == today:
            sync_error = self._try_sync()
            synced = self.store.get(target, currency)
            if synced:
                return RateQuote(currency, synced.rate, target, RateSource.SYNCED), None

        return self._fallback(currency, target), sync_error

    def _fallback(self, currency: str, target: SettlementDate) -> RateQuote:
        latest = self.store.latest_on_or_before(currency, target)
        if latest:
            logger.debug(f"Using fallback rate for {currency}: {latest.date} (requested: {target})")
            return RateQuote(currency, latest.rate, latest.date, RateSource.FALLBACK)

        logger.warning(f"No exchange rate found for {currency} on {target}, returning 1.0 as fallback")
        return RateQuote(currency, 1.0, target, RateSource.IDENTITY)

    def _try_sync(self) -> RateSourceError | None:
        try:
            self.sync_daily_rates()
        except RateSourceError as e:
            return e
        return None
