"""Data models for company intelligence enrichment."""

from .company import (
    OrganizationProfile,
    Headquarters,
    FundingHistory,
)
from .matches import (
    TickerCandidate,
    TickerMethod,
    PublicCompanyMatch,
    MatchProvenance,
    DirectoryEntry,
)
from .filings import FilingRecord, FilingDocument
from .signals import StructuredSignals, SignalSummary, SIGNAL_CATEGORIES
from .web import (
    SearchResult,
    SearchOptions,
    ScrapeResult,
    WebIntel,
    CompanyWebProfile,
)
from .enrichment import EnrichmentOptions, EnrichmentRecord, SecData

__all__ = [
    "OrganizationProfile",
    "Headquarters",
    "FundingHistory",
    "TickerCandidate",
    "TickerMethod",
    "PublicCompanyMatch",
    "MatchProvenance",
    "DirectoryEntry",
    "FilingRecord",
    "FilingDocument",
    "StructuredSignals",
    "SignalSummary",
    "SIGNAL_CATEGORIES",
    "SearchResult",
    "SearchOptions",
    "ScrapeResult",
    "WebIntel",
    "CompanyWebProfile",
    "EnrichmentOptions",
    "EnrichmentRecord",
    "SecData",
]
