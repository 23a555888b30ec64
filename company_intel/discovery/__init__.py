"""Ticker discovery: strategies, parsers and the cascade engine."""

from .engine import TickerDiscoveryEngine
from .mappings import MANUAL_MAPPINGS, ManualMapping, lookup_manual_mapping
from .patterns import (
    exchange_from_url,
    ticker_from_content,
    ticker_from_google_finance_url,
    ticker_from_yahoo_finance_url,
)
from .strategies import DiscoveryQuery, DiscoveryStrategy, build_default_strategies

__all__ = [
    "TickerDiscoveryEngine",
    "MANUAL_MAPPINGS",
    "ManualMapping",
    "lookup_manual_mapping",
    "exchange_from_url",
    "ticker_from_content",
    "ticker_from_google_finance_url",
    "ticker_from_yahoo_finance_url",
    "DiscoveryQuery",
    "DiscoveryStrategy",
    "build_default_strategies",
]
