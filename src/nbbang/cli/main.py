#!/usr/bin/env python3
"""
Main CLI Entry Point for N-bbang

The `nbbang` command group. Subcommands receive the validated Config in
ctx.obj["config"].
"""

import logging
import os

import click

from ..core.config import Config, get_config
from .rates import rates
from .settle import settle

logger = logging.getLogger(__name__)


def _config_lines(config: Config) -> list[tuple[str, object]]:
    return [
        ("Environment", config.environment.value),
        ("Data Directory", config.data_dir),
        ("Rate Cache", config.rates.cache_file),
        ("Rate API", config.rates.base_url),
        ("Rate API Key", "set" if config.rates.api_key else "not set"),
        ("Rate Timeout", f"{config.rates.timeout}s"),
        ("Ledger File", config.ledger.ledger_file),
        ("Settlement Currency", config.ledger.settlement_currency),
        ("Share Base URL", config.ledger.share_base_url),
        ("Debug Mode", config.debug),
        ("Log Level", config.log_level),
    ]


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override NBBANG_ENV for this run",
)
@click.option("--verbose", "-v", is_flag=True, help="Print the environment before running")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    N-bbang - Group Expense Settlement

    Splits meeting payments N ways and settles shared trip funds.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["NBBANG_ENV"] = config_env
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    try:
        config = get_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if debug:
        logging.getLogger("nbbang").setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")

    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config

    if verbose:
        click.echo(f"Environment: {config.environment.value}")
        click.echo(f"Data directory: {config.data_dir}")


@main.command()
def version() -> None:
    """Show version information."""
    from nbbang import __author__, __version__

    click.echo(f"N-bbang v{__version__}")
    click.echo(f"Author: {__author__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration (the API key itself is never printed)."""
    click.echo("Current Configuration:")
    for label, value in _config_lines(ctx.obj["config"]):
        click.echo(f"  {label}: {value}")


main.add_command(rates)
main.add_command(settle)


if __name__ == "__main__":
    main()
