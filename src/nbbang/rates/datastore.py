#!/usr/bin/env python3
"""
Exchange Rate DataStore Implementations

Append-only cache of daily rate snapshots keyed by (date, currency).
"""

import logging
from pathlib import Path
from typing import Protocol

from ..core.dates import SettlementDate
from ..core.json_utils import read_json, write_json
from .models import ExchangeRateSnapshot

logger = logging.getLogger(__name__)


class RateStore(Protocol):
    """Persistence interface for daily exchange-rate snapshots."""

    def get(self, on: SettlementDate, currency: str) -> ExchangeRateSnapshot | None:
        """Exact snapshot for a date and currency, if cached."""
        ...

    def latest_on_or_before(self, currency: str, on: SettlementDate) -> ExchangeRateSnapshot | None:
        """Most recent snapshot for the currency dated on or before the given date."""
        ...

    def upsert_many(self, snapshots: list[ExchangeRateSnapshot]) -> int:
        """Insert or refresh snapshots; returns the number written."""
        ...

    def item_count(self) -> int:
        ...


class InMemoryRateStore:
    """Rate snapshots held in a dict; used by tests and the CLI scenario runner."""

    def __init__(self, snapshots: list[ExchangeRateSnapshot] | None = None):
        self._snapshots: dict[tuple[SettlementDate, str], ExchangeRateSnapshot] = {}
        for snapshot in snapshots or []:
            self._snapshots[(snapshot.date, snapshot.currency)] = snapshot

    def get(self, on: SettlementDate, currency: str) -> ExchangeRateSnapshot | None:
        return self._snapshots.get((on, currency))

    def latest_on_or_before(self, currency: str, on: SettlementDate) -> ExchangeRateSnapshot | None:
        candidates = [s for (d, c), s in self._snapshots.items() if c == currency and d <= on]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.date)

    def upsert_many(self, snapshots: list[ExchangeRateSnapshot]) -> int:
        for snapshot in snapshots:
            self._snapshots[(snapshot.date, snapshot.currency)] = snapshot
        return len(snapshots)

    def item_count(self) -> int:
        return len(self._snapshots)

    def all(self) -> list[ExchangeRateSnapshot]:
        """All snapshots ordered by date then currency."""
        return sorted(self._snapshots.values(), key=lambda s: (s.date, s.currency))


class JsonRateStore(InMemoryRateStore):
    """
    Rate snapshots persisted to a single JSON file.

    The file is a list of {"date", "currency", "rate"} records and is
    rewritten after every upsert.
    """

    def __init__(self, cache_file: Path):
        self.cache_file = cache_file
        snapshots = []
        if cache_file.exists():
            snapshots = [ExchangeRateSnapshot.from_dict(item) for item in read_json(cache_file)]
            logger.debug(f"Loaded {len(snapshots)} rate snapshots from {cache_file}")
        super().__init__(snapshots)

    def exists(self) -> bool:
        return self.cache_file.exists()

    def upsert_many(self, snapshots: list[ExchangeRateSnapshot]) -> int:
        written = super().upsert_many(snapshots)
        write_json(self.cache_file, [s.to_dict() for s in self.all()])
        return written
