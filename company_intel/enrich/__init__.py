"""Identification, classification and extraction stages."""

from .identifier import (
    PublicCompanyIdentifier,
    find_directory_match,
    jaccard_similarity,
    normalize_company_name,
    normalize_domain,
    normalize_regulatory_id,
    strip_regulatory_id,
)
from .overrides import TickerOverrides, load_ticker_overrides
from .filings import FilingClassifier
from .parser import PageInfoParser
from .signals import SignalExtractor

__all__ = [
    "PublicCompanyIdentifier",
    "find_directory_match",
    "jaccard_similarity",
    "normalize_company_name",
    "normalize_domain",
    "normalize_regulatory_id",
    "strip_regulatory_id",
    "TickerOverrides",
    "load_ticker_overrides",
    "FilingClassifier",
    "PageInfoParser",
    "SignalExtractor",
]
