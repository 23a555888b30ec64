"""Enrichment request options and the fused enrichment record."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from company_intel.config import settings
from .company import OrganizationProfile
from .filings import FilingDocument, FilingRecord
from .matches import PublicCompanyMatch, TickerCandidate
from .signals import StructuredSignals
from .web import CompanyWebProfile, WebIntel


class EnrichmentOptions(BaseModel):
    """Per-request toggles and limits for one enrichment."""

    include_firmographic: bool = True
    include_ticker_discovery: bool = True
    include_sec: bool = True
    include_sec_signals: bool = True
    include_web_intel: bool = True
    include_financial_docs: bool = True
    include_news: bool = True
    include_tech_stack: bool = True
    include_scraping: bool = True
    include_international: bool = True

    max_concurrency: int = Field(default_factory=lambda: settings.max_concurrency, ge=1)
    task_timeout: float = Field(default_factory=lambda: settings.task_timeout, gt=0)
    strategy_timeout: float = Field(default_factory=lambda: settings.strategy_timeout, gt=0)
    batch_delay: float = Field(default_factory=lambda: settings.batch_delay, ge=0)
    max_filings: int = Field(default_factory=lambda: settings.max_filings, ge=0)
    max_filing_documents: int = Field(default_factory=lambda: settings.max_filing_documents, ge=0)


class SecData(BaseModel):
    """Public-company identification plus the filings retrieved for it."""

    match: PublicCompanyMatch
    filings: list[FilingRecord] = Field(default_factory=list)
    documents: list[FilingDocument] = Field(default_factory=list)

    @property
    def included_filings(self) -> list[FilingRecord]:
        return [f for f in self.filings if not f.is_excluded]


class EnrichmentRecord(BaseModel):
    """Fused output of one enrichment request.

    Built incrementally by the orchestrator. Every concurrent task writes
    only its own attribute; ``enrichment_fields`` is assembled once during
    finalization.
    """

    identifier: str
    profile: Optional[OrganizationProfile] = None
    ticker: Optional[TickerCandidate] = None
    sec_data: Optional[SecData] = None
    signals: Optional[StructuredSignals] = None
    web_intel: Optional[WebIntel] = None
    web_profile: Optional[CompanyWebProfile] = None

    enrichment_fields: dict[str, Any] = Field(default_factory=dict)
    task_errors: dict[str, str] = Field(default_factory=dict)
    success: bool = False
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    processing_time: float = Field(default=0.0, description="Elapsed seconds")

    @property
    def is_public(self) -> bool:
        return bool(self.sec_data and self.sec_data.match.is_public)

    @property
    def ticker_symbol(self) -> Optional[str]:
        """Discovered ticker, falling back to the one from the SEC match."""
        if self.ticker:
            return self.ticker.ticker
        if self.sec_data and self.sec_data.match.ticker:
            return self.sec_data.match.ticker
        return None
