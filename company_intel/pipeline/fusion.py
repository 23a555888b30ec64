"""Fusion of per-source slices into flat enrichment fields."""

import logging
from typing import Any, Iterable, Optional

from company_intel.connectors.crustdata import extract_enrichment_fields
from company_intel.models import (
    CompanyWebProfile,
    EnrichmentRecord,
    SecData,
    StructuredSignals,
    TickerCandidate,
    WebIntel,
)

logger = logging.getLogger(__name__)

# Scraped facts are namespaced so they never shadow firmographic fields
SCRAPED_PREFIX = "scraped_"


def merge_slice(fields: dict[str, Any], slice_fields: dict[str, Any], source: str) -> None:
    """Add a slice's keys to ``fields``; on a conflicting key the first writer is kept."""
    for key, value in slice_fields.items():
        if key not in fields:
            fields[key] = value
        elif fields[key] != value:
            logger.warning(
                f"Field collision on {key!r} from {source}: keeping {fields[key]!r}, dropping {value!r}"
            )


def ticker_fields(candidate: Optional[TickerCandidate]) -> dict[str, Any]:
    if candidate is None:
        return {}

    fields = {
        "ticker_symbol": candidate.ticker,
        "ticker_confidence": candidate.confidence,
        "ticker_method": candidate.method.value,
    }
    if candidate.exchange:
        fields["ticker_exchange"] = candidate.exchange
    return fields


def sec_fields(sec_data: Optional[SecData]) -> dict[str, Any]:
    if sec_data is None or not sec_data.match.is_public:
        return {"is_public_company": False}

    match = sec_data.match
    fields: dict[str, Any] = {
        "is_public_company": True,
        "sec_confidence": match.confidence,
        "sec_provenance": match.provenance.value if match.provenance else None,
    }
    if match.ticker:
        fields["sec_ticker"] = match.ticker
        fields["ticker_symbol"] = match.ticker
    if match.regulatory_id:
        fields["cik"] = match.regulatory_id
    if match.matched_title:
        fields["sec_matched_title"] = match.matched_title

    if sec_data.filings:
        latest = sec_data.filings[0].effective_date
        fields["recent_filings"] = len(sec_data.filings)
        fields["excluded_filings"] = len(sec_data.filings) - len(sec_data.included_filings)
        fields["latest_filing_date"] = latest.isoformat() if latest else None
    if sec_data.documents:
        fields["filing_documents_downloaded"] = len(sec_data.documents)

    return fields


def signal_fields(signals: Optional[StructuredSignals]) -> dict[str, Any]:
    if signals is None:
        return {}

    summary = signals.summary
    return {
        "sec_signals_extracted": True,
        "total_signals": summary.total_signals,
        "financial_health_score": summary.financial_health_score,
        "technology_readiness_score": summary.technology_readiness_score,
        "urgency_score": summary.urgency_score,
        "opportunity_score": summary.opportunity_score,
    }


def web_intel_fields(web_intel: Optional[WebIntel]) -> dict[str, Any]:
    if web_intel is None:
        return {}

    fields = {}
    if web_intel.financial_documents:
        fields["financial_documents_found"] = len(web_intel.financial_documents)
    if web_intel.news:
        fields["recent_news_found"] = len(web_intel.news)
    if web_intel.technology_stack:
        fields["tech_stack_sources"] = len(web_intel.technology_stack)
    return fields


def scraped_fields(web_profile: Optional[CompanyWebProfile]) -> dict[str, Any]:
    if web_profile is None:
        return {}

    found = {
        **{k: web_profile.basic_info.get(k) for k in ("employee_count", "founded_year", "headquarters", "industry")},
        **{k: web_profile.financial_info.get(k) for k in ("revenue", "market_cap")},
        "technologies": web_profile.technology_info.get("technologies"),
    }
    fields = {f"{SCRAPED_PREFIX}{k}": v for k, v in found.items() if v}
    if web_profile.scraped_pages:
        fields["scraped_pages"] = sum(1 for p in web_profile.scraped_pages if p.success)
    return fields


def finalize_fields(record: EnrichmentRecord, data_sources: Iterable[str]) -> dict[str, Any]:
    """Build the flat field mapping from every populated slice of the record."""
    fields: dict[str, Any] = {}

    slices = [
        ("profile", extract_enrichment_fields(record.profile) if record.profile else {}),
        ("ticker_discovery", ticker_fields(record.ticker)),
        ("sec", sec_fields(record.sec_data)),
        ("sec_signals", signal_fields(record.signals)),
        ("web_intel", web_intel_fields(record.web_intel)),
        ("scraping", scraped_fields(record.web_profile)),
    ]
    for source, slice_fields in slices:
        merge_slice(fields, slice_fields, source)

    fields["enhanced_enrichment"] = True
    fields["data_sources"] = list(data_sources)
    return fields
