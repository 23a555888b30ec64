"""Web search and scraping result models."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class SearchResult(BaseModel):
    """A ranked result from the web-search collaborator."""

    url: str
    title: str = ""
    text: Optional[str] = None
    published_date: Optional[str] = None
    score: Optional[float] = None


class SearchOptions(BaseModel):
    """Request options understood by every web-search client."""

    mode: str = Field(default="keyword", description="keyword, neural or auto")
    num_results: int = 10
    live_crawl: str = Field(default="fallback", description="always, fallback or never")
    include_domains: list[str] = Field(default_factory=list)
    exclude_domains: list[str] = Field(default_factory=list)
    start_published_date: Optional[datetime] = None
    end_published_date: Optional[datetime] = None


class ScrapeResult(BaseModel):
    """Outcome of scraping one URL."""

    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    markdown: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None
    links: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    success: bool = False
    error: Optional[str] = None
    scraped_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def content(self) -> str:
        return self.text or self.markdown or ""


class WebIntel(BaseModel):
    """Auxiliary web content found for a company."""

    financial_documents: list[SearchResult] = Field(default_factory=list)
    news: list[SearchResult] = Field(default_factory=list)
    technology_stack: list[SearchResult] = Field(default_factory=list)


class CompanyWebProfile(BaseModel):
    """Facts pulled out of the company's own scraped pages."""

    basic_info: dict[str, Any] = Field(default_factory=dict)
    financial_info: dict[str, Any] = Field(default_factory=dict)
    technology_info: dict[str, Any] = Field(default_factory=dict)
    news_info: dict[str, Any] = Field(default_factory=dict)
    scraped_pages: list[ScrapeResult] = Field(default_factory=list)
