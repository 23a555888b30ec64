"""SEC EDGAR connector: ticker directory, submissions feed and filing archive."""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Optional

from company_intel.config import settings
from company_intel.crawler import ContentExtractor, Fetcher
from company_intel.enrich.filings import FilingClassifier
from company_intel.enrich.identifier import normalize_regulatory_id, strip_regulatory_id
from company_intel.models import DirectoryEntry, FilingDocument, FilingRecord

logger = logging.getLogger(__name__)

# Columns of the submissions feed's ``filings.recent`` block that we keep
RECENT_FILING_COLUMNS = (
    "form",
    "accessionNumber",
    "primaryDocument",
    "reportDate",
    "filingDate",
    "primaryDocDescription",
)


class SECEdgarClient:
    """Read-only access to EDGAR's public JSON feeds and filing archive."""

    name = "sec"

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[ContentExtractor] = None,
        classifier: Optional[FilingClassifier] = None,
        download_delay: Optional[float] = None,
    ):
        self.fetcher = fetcher or Fetcher(provider=self.name)
        self.extractor = extractor or ContentExtractor()
        self.classifier = classifier or FilingClassifier()
        self.download_delay = settings.sec_request_delay if download_delay is None else download_delay
        self._directory: Optional[list[DirectoryEntry]] = None

    @property
    def directory_url(self) -> str:
        return f"{settings.sec_base_url}/files/company_tickers.json"

    async def load_ticker_directory(self, force_refresh: bool = False) -> list[DirectoryEntry]:
        """Load the bulk ticker table, memoized for the life of the client."""
        if self._directory is not None and not force_refresh:
            return self._directory

        data = await self.fetcher.fetch_json(
            self.directory_url,
            cache_ttl=timedelta(hours=settings.directory_cache_hours),
            force_refresh=force_refresh,
        )
        self._directory = self.parse_directory(data)
        logger.info(f"Loaded {len(self._directory)} entries from the SEC ticker directory")
        return self._directory

    @staticmethod
    def parse_directory(data: Any) -> list[DirectoryEntry]:
        """Parse ``company_tickers.json`` (an index-keyed object or a plain list)."""
        rows = data.values() if isinstance(data, dict) else (data or [])

        entries = []
        for row in rows:
            try:
                entries.append(DirectoryEntry(
                    regulatory_id=normalize_regulatory_id(row["cik_str"]),
                    ticker=str(row["ticker"]).upper(),
                    title=str(row["title"]),
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed directory row {row!r}: {e}")
        return entries

    async def get_company_submissions(self, regulatory_id: str) -> dict:
        padded = normalize_regulatory_id(regulatory_id)
        url = f"{settings.sec_data_url}/submissions/CIK{padded}.json"
        return await self.fetcher.fetch_json(
            url, cache_ttl=timedelta(hours=settings.directory_cache_hours)
        )

    @staticmethod
    def recent_filing_rows(submissions: Any) -> list[dict]:
        """Pivot the columnar ``filings.recent`` arrays into one dict per filing."""
        recent = ((submissions or {}).get("filings") or {}).get("recent") or {}
        forms = recent.get("form") or []

        rows = []
        for i in range(len(forms)):
            row = {}
            for column in RECENT_FILING_COLUMNS:
                values = recent.get(column) or []
                row[column] = values[i] if i < len(values) else None
            rows.append(row)
        return rows

    async def list_filings(self, regulatory_id: str, max_count: int = 50) -> list[FilingRecord]:
        """Most recent filings, newest first, with exclusion flags set."""
        submissions = await self.get_company_submissions(regulatory_id)
        rows = self.recent_filing_rows(submissions)[:max_count]
        return self.classifier.classify(rows)

    async def list_annual_reports(self, regulatory_id: str, max_count: int = 5) -> list[FilingRecord]:
        submissions = await self.get_company_submissions(regulatory_id)
        records = self.classifier.classify(self.recent_filing_rows(submissions))
        return self.classifier.annual_reports(records)[:max_count]

    def build_filing_url(self, regulatory_id: str, accession_id: str, document_ref: str) -> str:
        """Archive URL: de-padded CIK and dash-free accession number."""
        return (
            f"{settings.sec_base_url}/Archives/edgar/data/"
            f"{strip_regulatory_id(regulatory_id)}/{accession_id.replace('-', '')}/{document_ref}"
        )

    async def download_filing(self, regulatory_id: str, filing: FilingRecord) -> FilingDocument:
        """Download one filing and convert it to plain text."""
        if filing.is_excluded:
            raise ValueError(f"Refusing to download excluded filing {filing.accession_id}")

        url = self.build_filing_url(regulatory_id, filing.accession_id, filing.primary_document_ref)
        raw = await self.fetcher.fetch_text(url)
        content = self.extractor.to_text(raw, filing.primary_document_ref)

        filed = filing.effective_date.isoformat() if filing.effective_date else None
        return FilingDocument(
            filing=filing,
            url=url,
            title=f"{filing.form_type} - {filed or 'undated'}",
            date=filed,
            content=content,
        )

    async def download_filings(
        self,
        regulatory_id: str,
        filings: list[FilingRecord],
        max_documents: Optional[int] = None,
    ) -> list[FilingDocument]:
        """Download non-excluded filings in order; failed downloads are skipped."""
        documents: list[FilingDocument] = []
        attempted = 0

        for filing in filings:
            if max_documents is not None and len(documents) >= max_documents:
                break

            if filing.is_excluded:
                logger.debug(f"Skipping excluded filing: {filing.form_type} - {filing.description}")
                continue

            if attempted and self.download_delay:
                await asyncio.sleep(self.download_delay)
            attempted += 1

            try:
                documents.append(await self.download_filing(regulatory_id, filing))
            except Exception as e:
                logger.warning(f"Failed to process filing {filing.accession_id}: {e}")

        return documents
