#!/usr/bin/env python3
"""
Exchange Rate CLI

Syncs today's rates from ExchangeRate-API into the local cache and looks
up cached rates with the same fallback policy the settlement engine uses.
"""

import click

from ..core.config import get_config
from ..core.dates import SettlementDate
from ..core.exceptions import NbbangError
from ..rates.datastore import JsonRateStore
from ..rates.models import RateSource
from ..rates.resolver import ExchangeRateResolver
from ..rates.source import ExchangeRateApiSource


def build_resolver() -> ExchangeRateResolver:
    """Resolver over the configured JSON cache and API source."""
    config = get_config()
    store = JsonRateStore(config.rates.cache_file)
    source = ExchangeRateApiSource(
        api_key=config.rates.api_key,
        base_url=config.rates.base_url,
        timeout=config.rates.timeout,
    )
    return ExchangeRateResolver(store, source)


@click.group()
def rates() -> None:
    """Exchange rate cache commands."""
    pass


@rates.command()
def sync() -> None:
    """
    Fetch today's rates (base KRW) and store them as "1 unit = X KRW".

    Example:
      nbbang rates sync
    """
    resolver = build_resolver()
    try:
        saved = resolver.sync_daily_rates()
    except NbbangError as e:
        click.echo(f"❌ Rate sync failed: {e.detail}", err=True)
        raise click.ClickException(e.detail) from e

    click.echo(f"✅ Synced {saved} exchange rates for {resolver.today()}")


@rates.command()
@click.argument("currency")
@click.option("--date", "date_str", help="Rate date (YYYY-MM-DD), default today")
@click.option("--strict", is_flag=True, help="Fail instead of returning the 1.0 fallback")
def get(currency: str, date_str: str | None, strict: bool) -> None:
    """
    Show the rate for CURRENCY ("1 CURRENCY = rate KRW").

    Examples:
      nbbang rates get JPY
      nbbang rates get USD --date 2024-08-15
    """
    try:
        on = SettlementDate.from_string(date_str) if date_str else None
    except ValueError as e:
        raise click.ClickException(f"Invalid date format: {date_str}. Use YYYY-MM-DD") from e

    resolver = build_resolver()
    try:
        quote = resolver.require_rate(currency, on) if strict else resolver.quote(currency, on)
    except NbbangError as e:
        raise click.ClickException(e.detail) from e

    click.echo(f"1 {quote.currency} = {quote.rate:.6f} KRW ({quote.date}, {quote.source.value})")
    if quote.source == RateSource.IDENTITY:
        click.echo("⚠️  No cached rate found; 1.0 is a placeholder, not a market rate", err=True)
