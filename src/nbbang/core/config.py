#!/usr/bin/env python3
"""
Configuration Management for N-bbang Settlement

Environment-driven settings for the exchange-rate source, the JSON ledger
and share links. A .env file in the working directory is honoured.

Environment variables:
    NBBANG_ENV                  development | test | production
    NBBANG_DATA_DIR             Root of the rate cache and ledger files
    NBBANG_SHARE_BASE_URL       Base of public share links
    EXCHANGE_RATE_API_KEY       ExchangeRate-API key (required in production)
    EXCHANGE_RATE_API_BASE_URL  ExchangeRate-API endpoint root
    EXCHANGE_RATE_TIMEOUT       HTTP timeout in seconds
    LOG_LEVEL, DEBUG
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .currency import SETTLEMENT_CURRENCY

load_dotenv()

DEFAULT_RATE_API_URL = "https://v6.exchangerate-api.com/v6"
DEFAULT_SHARE_BASE_URL = "https://nbbang.shop"
REDACTED = "***REDACTED***"


class Environment(Enum):
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class ExchangeRateConfig:
    """Where daily rates come from and where they are cached."""

    cache_file: Path
    api_key: str | None = None
    base_url: str = DEFAULT_RATE_API_URL
    timeout: float = 10.0

    @classmethod
    def from_environment(cls, data_dir: Path) -> "ExchangeRateConfig":
        return cls(
            cache_file=data_dir / "rates" / "daily_rates.json",
            api_key=os.getenv("EXCHANGE_RATE_API_KEY") or None,
            base_url=os.getenv("EXCHANGE_RATE_API_BASE_URL", DEFAULT_RATE_API_URL).rstrip("/"),
            timeout=_env_float("EXCHANGE_RATE_TIMEOUT", 10.0),
        )

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        api_key = self.api_key if include_sensitive else REDACTED
        return {
            "cache_file": str(self.cache_file),
            "api_key": api_key,
            "base_url": self.base_url,
            "timeout": self.timeout,
        }


@dataclass
class LedgerConfig:
    """Ledger file and public share link settings."""

    ledger_file: Path
    settlement_currency: str = SETTLEMENT_CURRENCY
    share_base_url: str = DEFAULT_SHARE_BASE_URL

    @classmethod
    def from_environment(cls, data_dir: Path) -> "LedgerConfig":
        return cls(
            ledger_file=data_dir / "ledger" / "ledger.json",
            share_base_url=os.getenv("NBBANG_SHARE_BASE_URL", DEFAULT_SHARE_BASE_URL).rstrip("/"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ledger_file": str(self.ledger_file),
            "settlement_currency": self.settlement_currency,
            "share_base_url": self.share_base_url,
        }


@dataclass
class Config:
    """
    Settings for one process.

    Build it with from_environment(); get_config() caches a validated
    instance and configures logging once.
    """

    environment: Environment
    data_dir: Path

    rates: ExchangeRateConfig
    ledger: LedgerConfig

    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        env = Environment(os.getenv("NBBANG_ENV", Environment.DEVELOPMENT.value).lower())

        # Tests never write into the working directory
        if env == Environment.TEST:
            default_dir = Path(tempfile.gettempdir()) / "test_nbbang"
        else:
            default_dir = Path("./data")
        data_dir = Path(os.getenv("NBBANG_DATA_DIR") or default_dir).expanduser()
        if env != Environment.TEST:
            data_dir = data_dir.resolve()
        data_dir.mkdir(parents=True, exist_ok=True)

        return cls(
            environment=env,
            data_dir=data_dir,
            rates=ExchangeRateConfig.from_environment(data_dir),
            ledger=LedgerConfig.from_environment(data_dir),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Return every configuration problem; an empty list means usable."""
        errors = []

        if self.environment == Environment.PRODUCTION and not self.rates.api_key:
            errors.append("EXCHANGE_RATE_API_KEY is required in production")

        if self.rates.timeout <= 0:
            errors.append("Exchange rate timeout must be positive")

        if self.ledger.settlement_currency != SETTLEMENT_CURRENCY:
            errors.append(f"Unsupported settlement currency: {self.ledger.settlement_currency}")

        return errors

    def setup_logging(self) -> None:
        level = logging.DEBUG if self.debug else getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        # Rate sync requests are logged by the source itself
        if self.environment == Environment.PRODUCTION:
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("requests").setLevel(logging.WARNING)

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Plain view for display; the API key is redacted unless asked for."""
        return {
            "environment": self.environment.value,
            "data_dir": str(self.data_dir),
            "rates": self.rates.to_dict(include_sensitive),
            "ledger": self.ledger.to_dict(),
            "debug": self.debug,
            "log_level": self.log_level,
        }


_config: Config | None = None


def get_config() -> Config:
    """
    Process-wide configuration, built and validated on first use.

    Raises:
        ValueError: The environment describes an unusable configuration
    """
    global _config
    if _config is None:
        config = Config.from_environment()

        errors = config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        config.setup_logging()
        _config = config

    return _config


def reload_config() -> Config:
    """Drop the cached configuration and read the environment again."""
    global _config
    _config = None
    return get_config()


def get_data_dir() -> Path:
    return get_config().data_dir


def is_test() -> bool:
    return get_config().environment == Environment.TEST


def is_production() -> bool:
    return get_config().environment == Environment.PRODUCTION
