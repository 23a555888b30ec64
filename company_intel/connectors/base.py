"""Abstract interfaces for external collaborators."""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Optional

from company_intel.config import settings
from company_intel.models import OrganizationProfile, SearchOptions, SearchResult

logger = logging.getLogger(__name__)


class WebSearchClient(ABC):
    """Abstract interface for web search providers."""

    name: str = "base"

    def __init__(self, query_delay: Optional[float] = None):
        self.query_delay = settings.search_query_delay if query_delay is None else query_delay

    @abstractmethod
    async def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
    ) -> list[SearchResult]:
        """
        Run a single web search.

        Args:
            query: Free-text query, may contain ``site:`` operators
            options: Result count, domain filters and date range

        Returns:
            Ranked search results
        """
        pass

    async def search_financial_documents(
        self,
        company_name: str,
        ticker: str,
        num_results: int = 8,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[SearchResult]:
        """Search sec.gov for annual-report material about the company."""
        queries = [
            f'"{company_name}" 10-K filetype:htm site:sec.gov/Archives/edgar',
            f'"{ticker}" form 10-K filetype:htm site:sec.gov/Archives/edgar',
            f'"{company_name}" annual report 10-K filing site:sec.gov/Archives/edgar',
            f'"{ticker}" 10-K management discussion analysis site:sec.gov/Archives/edgar',
            f'"{company_name}" business description 10-K site:sec.gov/Archives/edgar',
        ]
        now = datetime.utcnow()
        options = SearchOptions(
            mode="keyword",
            live_crawl="always",
            num_results=num_results,
            include_domains=["sec.gov"],
            start_published_date=start_date or datetime(now.year - 3, 1, 1),
            end_published_date=end_date or now,
        )

        company_lower = company_name.lower()
        ticker_lower = ticker.lower()

        def mentions_company(result: SearchResult) -> bool:
            haystacks = [(result.text or "").lower(), (result.title or "").lower()]
            return any(
                needle and needle in haystack
                for haystack in haystacks
                for needle in (company_lower, ticker_lower)
            )

        return await self._run_queries(queries, options, keep=mentions_company)

    async def search_company_news(
        self,
        company_name: str,
        num_results: int = 10,
        days_back: int = 30,
    ) -> list[SearchResult]:
        """Recent news about the company, excluding regulatory filings."""
        now = datetime.utcnow()
        options = SearchOptions(
            mode="keyword",
            live_crawl="always",
            num_results=num_results,
            exclude_domains=["sec.gov"],
            start_published_date=now - timedelta(days=days_back),
            end_published_date=now,
        )
        return await self.search(f"{company_name} news", options)

    async def search_technology_stack(
        self,
        company_name: str,
        num_results: int = 5,
    ) -> list[SearchResult]:
        """Pages describing the company's software and tooling."""
        queries = [
            f"{company_name} technology stack",
            f"{company_name} software tools",
            f"{company_name} tech stack",
            f"{company_name} programming languages",
            f"{company_name} development tools",
        ]
        options = SearchOptions(mode="keyword", live_crawl="fallback", num_results=num_results)
        return await self._run_queries(queries, options)

    async def _run_queries(
        self,
        queries: list[str],
        options: SearchOptions,
        keep=None,
    ) -> list[SearchResult]:
        """Run queries in order, deduplicating by URL; failed queries are skipped."""
        results: list[SearchResult] = []
        seen_urls: set[str] = set()

        for i, query in enumerate(queries):
            if i and self.query_delay:
                await asyncio.sleep(self.query_delay)

            try:
                batch = await self.search(query, options)
            except Exception as e:
                logger.warning(f"{self.name} query failed: {query} - {e}")
                continue

            for result in batch:
                if result.url in seen_urls:
                    continue
                if keep and not keep(result):
                    continue
                seen_urls.add(result.url)
                results.append(result)

        return results


class ProfileProvider(ABC):
    """Abstract interface for firmographic profile providers."""

    name: str = "base"

    @abstractmethod
    async def fetch_profile(self, identifier: str, is_domain: bool = True) -> OrganizationProfile:
        """
        Fetch the base profile for a domain or a legal name.

        Raises ProfileNotFoundError or ProviderError when no profile can be
        produced.
        """
        pass

    @abstractmethod
    async def search_companies(self, filters: dict[str, Any], limit: int = 50) -> list[OrganizationProfile]:
        """Search profiles by firmographic filters."""
        pass

    async def get_companies_by_industry(self, industry: str, limit: int = 50) -> list[OrganizationProfile]:
        return await self.search_companies({"industry": industry}, limit=limit)

    async def get_companies_by_technology(
        self, technologies: list[str], limit: int = 50
    ) -> list[OrganizationProfile]:
        return await self.search_companies({"technologies": technologies}, limit=limit)
