"""
Exchange Rate Package

Daily exchange-rate snapshots, the external ExchangeRate-API source, and the
cache-then-fallback resolver used when payments are recorded in a foreign
currency and when a trip's remaining fund is revalued.
"""

from .datastore import InMemoryRateStore, JsonRateStore, RateStore
from .models import ExchangeRateSnapshot, RateQuote, RateSource
from .resolver import BulkRateSource, ExchangeRateResolver, RateResolver
from .source import ExchangeRateApiSource

__all__ = [
    "BulkRateSource",
    "ExchangeRateApiSource",
    "ExchangeRateResolver",
    "ExchangeRateSnapshot",
    "InMemoryRateStore",
    "JsonRateStore",
    "RateQuote",
    "RateResolver",
    "RateSource",
    "RateStore",
]
