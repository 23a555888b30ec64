"""External collaborators: firmographics, web search, SEC EDGAR and scraping."""

from .base import ProfileProvider, WebSearchClient
from .crustdata import CrustDataClient, extract_enrichment_fields
from .web_search import DuckDuckGoSearchClient, ExaSearchClient
from .sec_edgar import SECEdgarClient
from .firecrawl import FirecrawlScraper
from .mock import (
    MockProfileProvider,
    MockScraper,
    MockSECClient,
    MockSignalExtractor,
    MockWebSearch,
)

__all__ = [
    "ProfileProvider",
    "WebSearchClient",
    "CrustDataClient",
    "extract_enrichment_fields",
    "DuckDuckGoSearchClient",
    "ExaSearchClient",
    "SECEdgarClient",
    "FirecrawlScraper",
    "MockProfileProvider",
    "MockScraper",
    "MockSECClient",
    "MockSignalExtractor",
    "MockWebSearch",
]
