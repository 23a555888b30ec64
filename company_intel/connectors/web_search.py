"""Web search connectors (Exa and DuckDuckGo)."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import httpx
from duckduckgo_search import DDGS

from company_intel.config import settings
from company_intel.enrich.identifier import normalize_domain
from company_intel.errors import ConfigurationError, ProviderError
from company_intel.models import SearchOptions, SearchResult
from .base import WebSearchClient

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%Y-%m-%dT%H:%M:%S.000Z")


class ExaSearchClient(WebSearchClient):
    """Search the web with the Exa REST API."""

    name = "exa"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        query_delay: Optional[float] = None,
    ):
        super().__init__(query_delay=query_delay)
        self.api_key = api_key or settings.exa_api_key
        if not self.api_key:
            raise ConfigurationError("EXA_API_KEY not configured")
        self.base_url = (base_url or settings.exa_base_url).rstrip("/")

    async def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
    ) -> list[SearchResult]:
        options = options or SearchOptions()
        payload = self._build_payload(query, options)

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(settings.read_timeout, connect=settings.connect_timeout)
            ) as client:
                response = await client.post(
                    f"{self.base_url}/search",
                    json=payload,
                    headers={
                        "x-api-key": self.api_key,
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                    },
                )
        except httpx.TimeoutException:
            raise ProviderError(self.name, f"search timed out: {query}")
        except httpx.RequestError as e:
            raise ProviderError(self.name, f"search failed: {e}")

        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                f"search failed: {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON response: {e}")

        return [self._parse_result(r) for r in data.get("results") or [] if r.get("url")]

    @staticmethod
    def _build_payload(query: str, options: SearchOptions) -> dict:
        payload = {
            "query": query,
            "type": options.mode,
            "numResults": options.num_results,
            "contents": {"text": True, "livecrawl": options.live_crawl},
        }
        if options.include_domains:
            payload["includeDomains"] = options.include_domains
        if options.exclude_domains:
            payload["excludeDomains"] = options.exclude_domains
        if options.start_published_date:
            payload["startPublishedDate"] = _iso(options.start_published_date)
        if options.end_published_date:
            payload["endPublishedDate"] = _iso(options.end_published_date)
        return payload

    @staticmethod
    def _parse_result(result: dict) -> SearchResult:
        return SearchResult(
            url=result["url"],
            title=result.get("title") or "",
            text=result.get("text"),
            published_date=result.get("publishedDate"),
            score=result.get("score"),
        )


class DuckDuckGoSearchClient(WebSearchClient):
    """Search the web using DuckDuckGo; needs no API key."""

    name = "duckduckgo"

    def __init__(self, query_delay: Optional[float] = None):
        super().__init__(query_delay=query_delay)

    async def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
    ) -> list[SearchResult]:
        options = options or SearchOptions()
        full_query = self._build_query(query, options)

        # Run synchronous DDG search in thread pool
        try:
            raw = await asyncio.to_thread(
                self._execute_search,
                full_query,
                options.num_results,
                self._timelimit(options.start_published_date),
            )
        except Exception as e:
            raise ProviderError(self.name, f"search failed for '{full_query}': {e}")

        results = []
        for item in raw:
            result = self._parse_result(item)
            if result and not self._is_excluded(result.url, options.exclude_domains):
                results.append(result)
        return results

    def _execute_search(self, query: str, max_results: int, timelimit: Optional[str]) -> list[dict]:
        """Execute a DuckDuckGo search (synchronous)."""
        with DDGS() as ddgs:
            return list(ddgs.text(query, timelimit=timelimit, max_results=max_results) or [])

    @staticmethod
    def _build_query(query: str, options: SearchOptions) -> str:
        """Map domain filters onto ``site:`` operators."""
        parts = [query]
        if options.include_domains and "site:" not in query:
            parts.append(" OR ".join(f"site:{d}" for d in options.include_domains))
        parts.extend(f"-site:{d}" for d in options.exclude_domains)
        return " ".join(parts)

    @staticmethod
    def _timelimit(start: Optional[datetime]) -> Optional[str]:
        """Closest DuckDuckGo time window covering ``start``..now."""
        if start is None:
            return None
        days = (datetime.utcnow() - start).days
        if days <= 1:
            return "d"
        if days <= 7:
            return "w"
        if days <= 31:
            return "m"
        if days <= 366:
            return "y"
        return None

    @staticmethod
    def _is_excluded(url: str, exclude_domains: list[str]) -> bool:
        domain = normalize_domain(url)
        return any(domain == d or domain.endswith("." + d) for d in exclude_domains)

    @staticmethod
    def _parse_result(item: dict) -> Optional[SearchResult]:
        url = item.get("href") or item.get("url")
        if not url:
            return None
        return SearchResult(url=url, title=item.get("title") or "", text=item.get("body"))
