"""Mock collaborators for offline runs and testing."""

import asyncio
import json
import re
from typing import Any, Callable, Optional, Union

from company_intel.enrich.identifier import find_directory_match
from company_intel.enrich.parser import PageInfoParser
from company_intel.enrich.signals import SignalExtractor
from company_intel.errors import ProfileNotFoundError, ProviderError
from company_intel.models import (
    CompanyWebProfile,
    DirectoryEntry,
    FilingDocument,
    FilingRecord,
    OrganizationProfile,
    ScrapeResult,
    SearchOptions,
    SearchResult,
)
from .base import ProfileProvider, WebSearchClient
from .sec_edgar import SECEdgarClient


class MockProfileProvider(ProfileProvider):
    """Profile provider that serves predefined profiles."""

    name = "crustdata"

    def __init__(
        self,
        profiles: Optional[list[OrganizationProfile]] = None,
        delay: float = 0.0,
        fail: bool = False,
    ):
        self._profiles = profiles if profiles is not None else self._default_profiles()
        self.delay = delay
        self.fail = fail
        self.calls: list[tuple[str, bool]] = []
        self.active = 0
        self.max_active = 0

    async def fetch_profile(self, identifier: str, is_domain: bool = True) -> OrganizationProfile:
        self.calls.append((identifier, is_domain))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail:
                raise ProviderError(self.name, f"lookup failed for {identifier}")

            key = identifier.lower().strip()
            for profile in self._profiles:
                if key in {(profile.domain or "").lower(), profile.name.lower(), profile.identifier.lower()}:
                    return profile
            raise ProfileNotFoundError(f"No profile for {identifier}")
        finally:
            self.active -= 1

    async def search_companies(self, filters: dict[str, Any], limit: int = 50) -> list[OrganizationProfile]:
        industry = (filters.get("industry") or "").lower()
        technologies = {t.lower() for t in filters.get("technologies") or []}

        matches = []
        for profile in self._profiles:
            if industry and industry not in (profile.industry or "").lower():
                continue
            if technologies and not technologies & {t.lower() for t in profile.technologies}:
                continue
            matches.append(profile)
        return matches[:limit]

    def _default_profiles(self) -> list[OrganizationProfile]:
        return [
            OrganizationProfile(
                identifier="apple.com",
                name="Apple Inc",
                domain="apple.com",
                description="Consumer electronics, software and services",
                industry="Consumer Electronics",
                employee_count=161000,
                founded_year=1976,
                headquarters={"city": "Cupertino", "state": "CA", "country": "USA"},
                technologies=["Swift", "AWS"],
            ),
            OrganizationProfile(
                identifier="boeing.com",
                name="Boeing",
                domain="boeing.com",
                description="Aerospace manufacturer",
                industry="Aerospace & Defense",
                employee_count=171000,
                founded_year=1916,
                headquarters={"city": "Arlington", "state": "VA", "country": "USA"},
                technologies=["SAP", "Azure"],
            ),
            OrganizationProfile(
                identifier="acme-robotics.io",
                name="Acme Robotics",
                domain="acme-robotics.io",
                description="Private industrial automation startup",
                industry="Industrial Automation",
                employee_count=45,
                founded_year=2019,
                technologies=["Python", "AWS"],
            ),
        ]


SearchResponder = Callable[[str, SearchOptions], list[SearchResult]]


class MockWebSearch(WebSearchClient):
    """Search client returning canned results and recording every query.

    ``responses`` maps a query substring to results; the first matching
    substring wins. A callable responder receives (query, options) instead.
    """

    name = "mock_search"

    def __init__(
        self,
        responses: Union[dict[str, list[SearchResult]], SearchResponder, None] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        super().__init__(query_delay=0.0)
        self.responses = responses if responses is not None else {}
        self.error = error
        self.delay = delay
        self.queries: list[str] = []
        self.options: list[SearchOptions] = []

    async def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
    ) -> list[SearchResult]:
        options = options or SearchOptions()
        self.queries.append(query)
        self.options.append(options)

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error

        if callable(self.responses):
            return list(self.responses(query, options))

        for fragment, results in self.responses.items():
            if fragment in query:
                return list(results)
        return []


class MockSECClient(SECEdgarClient):
    """SEC client backed by an in-memory directory and submissions feed."""

    def __init__(
        self,
        directory: Optional[list[DirectoryEntry]] = None,
        filings: Optional[dict[str, list[dict]]] = None,
        document_text: str = "Annual report text.",
        directory_error: Optional[Exception] = None,
    ):
        super().__init__(download_delay=0.0)
        self._directory_rows = directory if directory is not None else default_directory()
        self._filings = {
            key.lstrip("0"): rows
            for key, rows in (filings if filings is not None else default_filings()).items()
        }
        self.document_text = document_text
        self.directory_error = directory_error
        self.downloaded: list[str] = []

    async def load_ticker_directory(self, force_refresh: bool = False) -> list[DirectoryEntry]:
        if self.directory_error:
            raise self.directory_error
        return list(self._directory_rows)

    async def get_company_submissions(self, regulatory_id: str) -> dict:
        rows = self._filings.get(str(regulatory_id).lstrip("0"), [])
        columns: dict[str, list] = {}
        for column in ("form", "accessionNumber", "primaryDocument", "reportDate", "filingDate", "primaryDocDescription"):
            columns[column] = [row.get(column) for row in rows]
        return {"filings": {"recent": columns}}

    async def download_filing(self, regulatory_id: str, filing: FilingRecord) -> FilingDocument:
        if filing.is_excluded:
            raise ValueError(f"Refusing to download excluded filing {filing.accession_id}")

        url = self.build_filing_url(regulatory_id, filing.accession_id, filing.primary_document_ref)
        self.downloaded.append(url)
        filed = filing.effective_date.isoformat() if filing.effective_date else None
        return FilingDocument(
            filing=filing,
            url=url,
            title=f"{filing.form_type} - {filed or 'undated'}",
            date=filed,
            content=f"{filing.form_type}: {self.document_text}",
        )


class MockScraper:
    """Website scraper serving predefined pages."""

    name = "firecrawl"

    def __init__(self, pages: Optional[dict[str, str]] = None, parser: Optional[PageInfoParser] = None):
        self.pages = pages if pages is not None else {
            "/about": "Founded: 1976. Headquarters: Cupertino, California. 161,000 employees.",
            "/investor-relations": "Revenue: $383.3 billion. Market cap $3.1 trillion.",
            "/products": "Our platform combines machine learning, cloud computing and software.",
            "/news": "2024-05-07 Company announces new products. Series A funding news.",
        }
        self.parser = parser or PageInfoParser()

    async def scrape_company_website(self, company_name: str, website: Optional[str] = None) -> list[ScrapeResult]:
        if not website:
            return []
        root = (website if website.startswith("http") else f"https://{website}").rstrip("/")
        return [
            ScrapeResult(url=f"{root}{path}", text=text, success=True)
            for path, text in self.pages.items()
        ]

    async def extract_company_information(
        self, company_name: str, website: Optional[str] = None
    ) -> CompanyWebProfile:
        pages = await self.scrape_company_website(company_name, website)
        return self.parser.parse_pages(pages)


class MockSignalExtractor(SignalExtractor):
    """Signal extractor whose model call returns a canned response."""

    def __init__(self, response: Optional[Union[str, dict]] = None, error: Optional[Exception] = None):
        super().__init__(api_key="mock")
        if response is None:
            response = default_signal_response()
        self.response = response if isinstance(response, str) else json.dumps(response)
        self.error = error
        self.prompts: list[str] = []

    def _call_api(self, system: str, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


def default_directory() -> list[DirectoryEntry]:
    return [
        DirectoryEntry(regulatory_id="0000320193", ticker="AAPL", title="Apple Inc."),
        DirectoryEntry(regulatory_id="0000012927", ticker="BA", title="BOEING CO"),
        DirectoryEntry(regulatory_id="0000789019", ticker="MSFT", title="MICROSOFT CORP"),
        DirectoryEntry(regulatory_id="0000936468", ticker="LMT", title="LOCKHEED MARTIN CORP"),
    ]


def default_filings() -> dict[str, list[dict]]:
    return {
        "320193": [
            {
                "form": "4",
                "accessionNumber": "0000320193-24-000120",
                "primaryDocument": "xslF345X05/wk-form4.xml",
                "filingDate": "2024-11-15",
                "primaryDocDescription": "FORM 4",
            },
            {
                "form": "10-K",
                "accessionNumber": "0000320193-24-000123",
                "primaryDocument": "aapl-20240928.htm",
                "reportDate": "2024-09-28",
                "filingDate": "2024-11-01",
                "primaryDocDescription": "10-K",
            },
            {
                "form": "8-K",
                "accessionNumber": "0000320193-24-000069",
                "primaryDocument": "aapl-20240502.htm",
                "reportDate": "2024-05-02",
                "filingDate": "2024-05-02",
                "primaryDocDescription": "8-K",
            },
        ],
        "12927": [
            {
                "form": "10-K",
                "accessionNumber": "0000012927-25-000015",
                "primaryDocument": "ba-20241231.htm",
                "reportDate": "2024-12-31",
                "filingDate": "2025-02-03",
                "primaryDocDescription": "10-K",
            },
        ],
    }


def default_signal_response() -> dict:
    return {
        "financial_metrics": {"revenue": {"total": 391035000000}},
        "projects_programs": [
            {
                "name": "Vision Pro",
                "type": "product_development",
                "description": "Spatial computing platform launch",
                "status": "active",
                "citation": {"quote": "introduced Apple Vision Pro", "section": "Item 1", "document": "10-K"},
            }
        ],
        "technology_signals": [
            {
                "category": "ai_ml",
                "description": "Investment in generative AI features",
                "status": "implemented",
                "citation": {"quote": "Apple Intelligence", "section": "Item 7", "document": "10-K"},
            }
        ],
        "business_challenges": [
            {
                "category": "supply_chain",
                "description": "Dependence on outsourcing partners in Asia",
                "impact": "high",
                "citation": {"quote": "substantially all of the Company's manufacturing", "section": "Item 1A", "document": "10-K"},
            }
        ],
        "strategic_priorities": [],
        "organizational_changes": [],
        "timing_urgency": [],
        "summary": {
            "financial_health_score": 90,
            "technology_readiness_score": 85,
            "urgency_score": 40,
            "opportunity_score": 70,
            "key_findings": ["Strong cash generation"],
            "red_flags": ["Supply chain concentration"],
            "opportunities": ["AI platform build-out"],
            "recommended_approach": "Lead with AI infrastructure",
        },
    }


def default_search_responder(query: str, options: SearchOptions) -> list[SearchResult]:
    """Canned web results for the default mock companies.

    Google Finance queries resolve against the mock directory; news and
    technology queries get one generic page each.
    """
    quoted = re.search(r'"([^"]+)"', query)
    name = quoted.group(1) if quoted else query

    if "google.com/finance" in query:
        match = find_directory_match(name, default_directory())
        if not match:
            return []
        entry, _ = match
        return [
            SearchResult(
                url=f"https://www.google.com/finance/quote/{entry.ticker}:NASDAQ",
                title=f"{entry.title} ({entry.ticker}) Stock Price",
            )
        ]

    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    if query.endswith(" news"):
        return [SearchResult(url=f"https://news.example.com/{slug}", title=f"{name} in the news", text=f"{name} announces results")]
    if "tech stack" in query or "technology stack" in query:
        return [SearchResult(url=f"https://stackshare.example.com/{slug}", title=f"{name} tech stack", text="Python, AWS, Kubernetes")]
    return []
