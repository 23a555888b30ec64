"""Filing classification: exclude insider and stock-transaction filings."""

import logging
from datetime import date
from typing import Any, Iterable, Optional

from company_intel.models import FilingRecord

logger = logging.getLogger(__name__)


class FilingClassifier:
    """Turn raw submissions-feed rows into classified FilingRecords."""

    # Ownership and insider-sale forms, including amendments
    EXCLUDED_FORMS = frozenset({"3", "4", "5", "144", "3/A", "4/A", "5/A", "144/A"})

    EXCLUDED_KEYWORDS = (
        "stock purchase",
        "stock sale",
        "share purchase",
        "share sale",
        "insider trading",
        "beneficial ownership",
        "ownership change",
        "acquisition of securities",
        "disposition of securities",
        "form 3",
        "form 4",
        "form 5",
        "form 144",
    )

    ANNUAL_REPORT_FORMS = frozenset({"10-K", "10-K/A"})

    def is_excluded(self, form_type: str, description: Optional[str]) -> bool:
        """True if the filing is a stock-transaction or ownership filing."""
        if form_type.strip().upper() in self.EXCLUDED_FORMS:
            return True

        text = (description or "").lower()
        return any(keyword in text for keyword in self.EXCLUDED_KEYWORDS)

    def classify(self, raw_filings: Iterable[dict[str, Any]]) -> list[FilingRecord]:
        """Classify filings, keeping input order; malformed rows are skipped."""
        records = []
        for raw in raw_filings:
            record = self._to_record(raw)
            if record is not None:
                records.append(record)
        return records

    def annual_reports(self, records: Iterable[FilingRecord]) -> list[FilingRecord]:
        return [r for r in records if r.form_type in self.ANNUAL_REPORT_FORMS]

    def _to_record(self, raw: Any) -> Optional[FilingRecord]:
        if not isinstance(raw, dict):
            logger.debug(f"Skipping malformed filing entry: {raw!r}")
            return None

        form = raw.get("form")
        accession = raw.get("accessionNumber")
        document = raw.get("primaryDocument")
        if not (isinstance(form, str) and form.strip() and isinstance(accession, str) and accession.strip()):
            logger.debug(f"Skipping filing without form or accession number: {raw!r}")
            return None

        document = document if isinstance(document, str) else ""
        description = raw.get("primaryDocDescription") or raw.get("description") or document
        description = str(description) if description else None

        form = form.strip()
        return FilingRecord(
            form_type=form,
            accession_id=accession.strip(),
            primary_document_ref=document,
            report_date=_parse_date(raw.get("reportDate")),
            filing_date=_parse_date(raw.get("filingDate")),
            description=description,
            is_excluded=self.is_excluded(form, description),
        )


def _parse_date(value: Any) -> Optional[date]:
    """Parse YYYY-MM-DD; blank or invalid values become None."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None
