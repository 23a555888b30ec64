"""Ticker and exchange parsers for quote URLs and free text."""

import re
from typing import Optional

from company_intel.models.matches import is_valid_ticker

GOOGLE_FINANCE_QUOTE = re.compile(r"/finance/quote/([A-Z0-9.\-]+):([A-Z0-9.\-]*)", re.I)
YAHOO_FINANCE_QUOTE = re.compile(r"/quote/([A-Z0-9.\-]+)", re.I)

# Ordered; the first match wins
CONTENT_PATTERNS = [
    re.compile(r"ticker[:\s]+([A-Z]{1,5})\b", re.I),
    re.compile(r"symbol[:\s]+([A-Z]{1,5})\b", re.I),
    re.compile(r"stock[:\s]+([A-Z]{1,5})\b", re.I),
    re.compile(r"NYSE[:\s]+([A-Z]{1,5})\b", re.I),
    re.compile(r"NASDAQ[:\s]+([A-Z]{1,5})\b", re.I),
    re.compile(r"\(([A-Z]{1,5})\)"),
]

EXCHANGE_URL_MAP = [
    ("google.com/finance", "Google Finance"),
    ("finance.yahoo.com", "Yahoo Finance"),
    ("nyse.com", "NYSE"),
    ("nasdaq.com", "NASDAQ"),
    ("londonstockexchange.com", "LSE"),
    ("xetra.com", "XETRA"),
]


def ticker_from_google_finance_url(url: str) -> Optional[str]:
    """``.../finance/quote/AAPL:NASDAQ`` -> ``AAPL``."""
    match = GOOGLE_FINANCE_QUOTE.search(url or "")
    if not match:
        return None
    ticker = match.group(1).upper()
    return ticker if is_valid_ticker(ticker) else None


def ticker_from_yahoo_finance_url(url: str) -> Optional[str]:
    """``.../quote/AAPL/`` -> ``AAPL``."""
    match = YAHOO_FINANCE_QUOTE.search(url or "")
    if not match:
        return None
    ticker = match.group(1).upper()
    return ticker if is_valid_ticker(ticker) else None


def ticker_from_content(text: str) -> Optional[str]:
    """First ticker-like token found by the ordered content patterns."""
    if not text:
        return None

    for pattern in CONTENT_PATTERNS:
        match = pattern.search(text)
        if match and len(match.group(1)) <= 5:
            return match.group(1).upper()
    return None


def exchange_from_url(url: str) -> Optional[str]:
    """Exchange named in a Google Finance quote URL, else from the host map."""
    url = url or ""

    match = GOOGLE_FINANCE_QUOTE.search(url)
    if match and match.group(2):
        return match.group(2).upper()

    lowered = url.lower()
    for fragment, exchange in EXCHANGE_URL_MAP:
        if fragment in lowered:
            return exchange
    return None
