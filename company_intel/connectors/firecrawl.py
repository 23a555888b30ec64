"""Firecrawl scraping connector."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from company_intel.config import settings
from company_intel.enrich.parser import PageInfoParser
from company_intel.errors import ConfigurationError, ProviderError
from company_intel.models import CompanyWebProfile, ScrapeResult, SearchResult

logger = logging.getLogger(__name__)


class FirecrawlScraper:
    """Scrape and search pages through the Firecrawl REST API."""

    name = "firecrawl"

    # Common company pages tried under the website root
    COMPANY_PAGES = [
        "about", "company", "investor-relations", "news",
        "press", "careers", "products", "services",
    ]

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        parser: Optional[PageInfoParser] = None,
    ):
        self.api_key = api_key or settings.firecrawl_api_key
        if not self.api_key:
            raise ConfigurationError("FIRECRAWL_API_KEY not configured")
        self.base_url = (base_url or settings.firecrawl_base_url).rstrip("/")
        self.max_retries = max_retries or settings.scrape_max_retries
        self.retry_delay = settings.scrape_retry_delay if retry_delay is None else retry_delay
        self.parser = parser or PageInfoParser()

    async def scrape_url(
        self,
        url: str,
        formats: Optional[list[str]] = None,
        timeout_ms: int = 60000,
        include_html: bool = False,
        include_links: bool = False,
        include_metadata: bool = True,
    ) -> ScrapeResult:
        """Scrape one URL, retrying with linear back-off; never raises."""
        payload = {"url": url, "formats": formats or ["markdown", "html"], "timeout": timeout_ms}
        error = None

        for attempt in range(self.max_retries):
            try:
                data = (await self._post("/scrape", payload)).get("data")
                if not data:
                    return ScrapeResult(url=url, error="No data returned from Firecrawl")

                metadata = data.get("metadata") or {}
                return ScrapeResult(
                    url=url,
                    title=metadata.get("title"),
                    description=metadata.get("description"),
                    markdown=data.get("markdown"),
                    html=data.get("html") if include_html else None,
                    text=data.get("text"),
                    links=(data.get("links") or []) if include_links else [],
                    images=data.get("images") or [],
                    metadata=metadata if include_metadata else {},
                    success=True,
                )

            except ProviderError as e:
                error = str(e)
                if attempt < self.max_retries - 1:
                    logger.warning(f"Scrape attempt {attempt + 1} failed for {url}: {e}")
                    await asyncio.sleep(self.retry_delay * (attempt + 1))

        return ScrapeResult(url=url, error=f"Failed after {self.max_retries} attempts: {error}")

    async def search(self, query: str, limit: int = 10, scrape_content: bool = False) -> list[SearchResult]:
        """Search through Firecrawl; failures yield an empty list."""
        payload: dict[str, Any] = {"query": query, "limit": limit}
        if scrape_content:
            payload["scrapeOptions"] = {"formats": ["markdown"]}

        try:
            data = (await self._post("/search", payload)).get("data") or []
        except ProviderError as e:
            logger.warning(f"Firecrawl search failed for '{query}': {e}")
            return []

        return [
            SearchResult(
                url=item["url"],
                title=item.get("title") or "",
                text=item.get("markdown") or item.get("description"),
                published_date=item.get("publishedDate"),
                score=item.get("score"),
            )
            for item in data
            if item.get("url")
        ]

    async def scrape_multiple_urls(
        self,
        urls: list[str],
        concurrency: int = 3,
        batch_delay: float = 1.0,
        **scrape_kwargs,
    ) -> list[ScrapeResult]:
        """Scrape URLs in small concurrent batches, preserving order."""
        results: list[ScrapeResult] = []

        for i in range(0, len(urls), concurrency):
            batch = urls[i:i + concurrency]
            results.extend(await asyncio.gather(*(self.scrape_url(u, **scrape_kwargs) for u in batch)))

            if i + concurrency < len(urls) and batch_delay:
                await asyncio.sleep(batch_delay)

        return results

    async def scrape_company_website(self, company_name: str, website: Optional[str] = None) -> list[ScrapeResult]:
        """Scrape the site's key pages plus pages found by search."""
        urls: list[str] = []

        if website:
            root = website if website.startswith("http") else f"https://{website}"
            root = root.rstrip("/")
            urls.append(root)
            urls.extend(f"{root}/{page}" for page in self.COMPANY_PAGES)

        queries = [
            f'"{company_name}" company website',
            f'"{company_name}" about us',
            f'"{company_name}" investor relations',
            f'"{company_name}" news press release',
        ]
        for query in queries:
            for result in await self.search(query, limit=3):
                if result.url not in urls:
                    urls.append(result.url)

        logger.debug(f"Scraping {len(urls)} pages for {company_name}")
        return await self.scrape_multiple_urls(urls)

    async def extract_company_information(
        self, company_name: str, website: Optional[str] = None
    ) -> CompanyWebProfile:
        pages = await self.scrape_company_website(company_name, website)
        return self.parser.parse_pages(pages)

    async def _post(self, endpoint: str, payload: dict) -> dict:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(settings.read_timeout * 2, connect=settings.connect_timeout)
            ) as client:
                response = await client.post(
                    f"{self.base_url}{endpoint}",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException:
            raise ProviderError(self.name, f"{endpoint} timed out")
        except httpx.RequestError as e:
            raise ProviderError(self.name, f"{endpoint} failed: {e}")

        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                f"{endpoint} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON from {endpoint}: {e}")
