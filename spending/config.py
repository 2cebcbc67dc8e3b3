# spending/config.py
# Role: Runtime configuration for the spending app.
#       Reads environment variables (optionally from a .env file) into an
#       immutable SpendingConfig that is passed explicitly to the services.

"""
Configuration for the spending app.

Environment variables:
- SPENDING_BACKEND          "local" (JSON blob on disk) or "synced" (SQL collection)
- SPENDING_DATA_FILE        path of the local JSON blob
- MAIN_CURRENCY             default main currency for new sessions
- EXCHANGE_RATES            "EUR=1,USD=1.1,..." (rates relative to a base unit)
- SPENDING_CATEGORIES       comma-separated category list
- SPENDING_PAYMENT_METHODS  comma-separated payment method list
- LOG_LEVEL                 logging level name (DEBUG, INFO, WARNING, ...)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from spending.errors import ConfigError

load_dotenv()

# Project root (one level above this package)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_DATA_FILE = os.path.join(BASE_DIR, "data", "travel-spending-data.json")

DEFAULT_RATES = "EUR=1,USD=1.1,GBP=0.86,JPY=150"
DEFAULT_CATEGORIES = "Food,Transport,Accommodation,Entertainment,Shopping,Other"
DEFAULT_PAYMENT_METHODS = "Cash,Credit Card,Debit Card,Digital Wallet"

BACKENDS = ("local", "synced")


@dataclass(frozen=True)
class SpendingConfig:
    backend: str
    data_file: str
    main_currency: str
    rates: Mapping[str, float]
    categories: Tuple[str, ...]
    payment_methods: Tuple[str, ...]
    log_level: str = "INFO"

    @property
    def currencies(self) -> Tuple[str, ...]:
        return tuple(self.rates)


def _split_list(raw: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def parse_rates(raw: str) -> Mapping[str, float]:
    """
    Parse "EUR=1,USD=1.1" into a read-only {code: rate} mapping.
    Codes are upper-cased; order is preserved (it drives the currency dropdowns).
    """
    rates = {}
    for pair in _split_list(raw):
        code, sep, value = pair.partition("=")
        code = code.strip().upper()
        if not sep or not code:
            raise ConfigError(f"Invalid EXCHANGE_RATES entry: {pair!r}")
        try:
            rate = float(value)
        except ValueError:
            raise ConfigError(f"Invalid rate for {code}: {value!r}") from None
        if rate <= 0:
            raise ConfigError(f"Rate for {code} must be positive, got {rate}")
        rates[code] = rate

    if not rates:
        raise ConfigError("EXCHANGE_RATES is empty")
    return MappingProxyType(rates)


def parse_log_level(raw: str) -> str:
    level = raw.strip().upper()
    # getLevelName maps known names to their numeric level
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Invalid LOG_LEVEL: {raw!r}")
    return level


def load_config(env: Optional[Mapping[str, str]] = None) -> SpendingConfig:
    """Build a SpendingConfig from `env` (defaults to os.environ)."""
    env = os.environ if env is None else env

    backend = env.get("SPENDING_BACKEND", "local").strip().lower()
    if backend not in BACKENDS:
        raise ConfigError(f"SPENDING_BACKEND must be one of {BACKENDS}, got {backend!r}")

    rates = parse_rates(env.get("EXCHANGE_RATES", DEFAULT_RATES))

    main_currency = env.get("MAIN_CURRENCY", "EUR").strip().upper()
    if main_currency not in rates:
        raise ConfigError(f"MAIN_CURRENCY {main_currency!r} is not in EXCHANGE_RATES")

    return SpendingConfig(
        backend=backend,
        data_file=env.get("SPENDING_DATA_FILE", DEFAULT_DATA_FILE),
        main_currency=main_currency,
        rates=rates,
        categories=_split_list(env.get("SPENDING_CATEGORIES", DEFAULT_CATEGORIES)),
        payment_methods=_split_list(env.get("SPENDING_PAYMENT_METHODS", DEFAULT_PAYMENT_METHODS)),
        log_level=parse_log_level(env.get("LOG_LEVEL", "INFO")),
    )
