"""HTTP fetcher with caching and rate limiting."""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from company_intel.config import settings
from company_intel.errors import ProviderError
from company_intel.models.database import DBCache, get_session

logger = logging.getLogger(__name__)


class FetchResult:
    """Result of a fetch operation."""

    def __init__(
        self,
        url: str,
        content: Optional[str] = None,
        status_code: int = 0,
        content_type: Optional[str] = None,
        error: Optional[str] = None,
        from_cache: bool = False,
    ):
        self.url = url
        self.content = content
        self.status_code = status_code
        self.content_type = content_type
        self.error = error
        self.from_cache = from_cache

    @property
    def success(self) -> bool:
        return self.content is not None and 200 <= self.status_code < 400


class Fetcher:
    """HTTP fetcher with response caching and per-host rate limiting."""

    def __init__(
        self,
        user_agent: Optional[str] = None,
        use_cache: Optional[bool] = None,
        request_delay: Optional[float] = None,
        provider: str = "http",
    ):
        self.user_agent = user_agent or settings.sec_user_agent
        self.use_cache = settings.use_http_cache if use_cache is None else use_cache
        self.request_delay = settings.sec_request_delay if request_delay is None else request_delay
        self.provider = provider

        # Rate limiting per host
        self._host_last_request: dict[str, datetime] = {}
        self._rate_limit_lock = asyncio.Lock()

    async def fetch(
        self,
        url: str,
        accept: str = "*/*",
        cache_ttl: Optional[timedelta] = None,
        force_refresh: bool = False,
    ) -> FetchResult:
        """Fetch a URL, serving from cache when a fresh copy exists."""
        if self.use_cache and not force_refresh:
            cached = self._get_cached(url)
            if cached:
                return cached

        await self._wait_for_rate_limit(url)
        result = await self._do_fetch(url, accept)

        if self.use_cache and result.success:
            self._cache_result(result, cache_ttl or timedelta(days=settings.cache_duration_days))

        return result

    async def fetch_text(self, url: str, **kwargs) -> str:
        """Fetch a URL and return its body, raising ProviderError on failure."""
        result = await self.fetch(url, **kwargs)
        if not result.success:
            raise ProviderError(
                self.provider,
                f"request failed for {url}: {result.error or result.status_code}",
                status_code=result.status_code or None,
            )
        return result.content

    async def fetch_json(self, url: str, **kwargs) -> Any:
        """Fetch a URL and decode it as JSON."""
        text = await self.fetch_text(url, accept="application/json", **kwargs)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ProviderError(self.provider, f"invalid JSON from {url}: {e}")

    async def _wait_for_rate_limit(self, url: str):
        """Wait to respect rate limiting for the host."""
        host = urlparse(url).netloc

        async with self._rate_limit_lock:
            last_request = self._host_last_request.get(host)
            if last_request:
                elapsed = (datetime.utcnow() - last_request).total_seconds()
                if elapsed < self.request_delay:
                    await asyncio.sleep(self.request_delay - elapsed)

            self._host_last_request[host] = datetime.utcnow()

    async def _do_fetch(self, url: str, accept: str) -> FetchResult:
        """Perform the actual HTTP fetch."""
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=settings.connect_timeout,
                    read=settings.read_timeout,
                    write=settings.read_timeout,
                    pool=settings.connect_timeout,
                ),
                follow_redirects=True,
            ) as client:
                response = await client.get(
                    url,
                    headers={
                        "User-Agent": self.user_agent,
                        "Accept": accept,
                    },
                )

                if response.status_code >= 400:
                    return FetchResult(
                        url=url,
                        status_code=response.status_code,
                        content_type=response.headers.get("content-type"),
                        error=f"HTTP {response.status_code}",
                    )

                return FetchResult(
                    url=url,
                    content=response.text,
                    status_code=response.status_code,
                    content_type=response.headers.get("content-type", ""),
                )

        except httpx.TimeoutException:
            logger.warning(f"Timeout fetching {url}")
            return FetchResult(url=url, error="Timeout", status_code=0)

        except httpx.RequestError as e:
            logger.warning(f"Request error fetching {url}: {e}")
            return FetchResult(url=url, error=str(e), status_code=0)

    def _get_cached(self, url: str) -> Optional[FetchResult]:
        """Get cached fetch result."""
        try:
            session = get_session()
            try:
                cached = session.query(DBCache).filter_by(url=url).first()
                if cached and cached.expires_at and cached.expires_at > datetime.utcnow():
                    return FetchResult(
                        url=url,
                        content=cached.content,
                        status_code=cached.status_code or 200,
                        content_type=cached.content_type,
                        from_cache=True,
                    )
            finally:
                session.close()
        except Exception as e:
            logger.debug(f"Cache lookup failed: {e}")

        return None

    def _cache_result(self, result: FetchResult, ttl: timedelta):
        """Cache a fetch result."""
        try:
            session = get_session()
            try:
                expires_at = datetime.utcnow() + ttl

                cached = session.query(DBCache).filter_by(url=result.url).first()
                if cached:
                    cached.content = result.content
                    cached.content_type = result.content_type
                    cached.status_code = result.status_code
                    cached.fetched_at = datetime.utcnow()
                    cached.expires_at = expires_at
                else:
                    cached = DBCache(
                        url=result.url,
                        content=result.content,
                        content_type=result.content_type,
                        status_code=result.status_code,
                        fetched_at=datetime.utcnow(),
                        expires_at=expires_at,
                    )
                    session.add(cached)

                session.commit()
            finally:
                session.close()

        except Exception as e:
            logger.debug(f"Failed to cache result: {e}")
