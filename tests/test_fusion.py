"""Tests for fusing per-source slices into enrichment fields."""

import logging
from datetime import date

from company_intel.models import (
    CompanyWebProfile,
    EnrichmentRecord,
    FilingRecord,
    MatchProvenance,
    OrganizationProfile,
    PublicCompanyMatch,
    ScrapeResult,
    SearchResult,
    SecData,
    TickerCandidate,
    TickerMethod,
    WebIntel,
)
from company_intel.pipeline.fusion import (
    finalize_fields,
    merge_slice,
    scraped_fields,
    sec_fields,
    ticker_fields,
    web_intel_fields,
)


def make_match(ticker="AAPL", regulatory_id="0000320193") -> PublicCompanyMatch:
    return PublicCompanyMatch(
        is_public=True,
        confidence=1.0,
        matched_title="Apple Inc.",
        ticker=ticker,
        regulatory_id=regulatory_id,
        provenance=MatchProvenance.DIRECTORY_MATCH,
    )


def make_filing(form: str, filed: date, excluded: bool = False) -> FilingRecord:
    return FilingRecord(
        form_type=form,
        accession_id=f"0000320193-24-{form}",
        primary_document_ref="doc.htm",
        filing_date=filed,
        is_excluded=excluded,
    )


class TestMergeSlice:
    """Tests for the first-writer-wins merge."""

    def test_adds_new_keys(self):
        fields = {"a": 1}
        merge_slice(fields, {"b": 2}, "test")
        assert fields == {"a": 1, "b": 2}

    def test_first_writer_wins(self, caplog):
        fields = {"ticker_symbol": "AAPL"}
        with caplog.at_level(logging.WARNING, logger="company_intel.pipeline.fusion"):
            merge_slice(fields, {"ticker_symbol": "APLE"}, "sec")

        assert fields["ticker_symbol"] == "AAPL"
        assert "ticker_symbol" in caplog.text

    def test_equal_values_do_not_warn(self, caplog):
        fields = {"ticker_symbol": "AAPL"}
        with caplog.at_level(logging.WARNING, logger="company_intel.pipeline.fusion"):
            merge_slice(fields, {"ticker_symbol": "AAPL"}, "sec")
        assert caplog.records == []


class TestSliceFields:
    """Tests for individual slices."""

    def test_ticker_fields(self):
        candidate = TickerCandidate(
            ticker="BA", confidence=0.99, method=TickerMethod.MANUAL_MAPPING, exchange="NYSE"
        )
        assert ticker_fields(candidate) == {
            "ticker_symbol": "BA",
            "ticker_confidence": 0.99,
            "ticker_method": "manual_mapping",
            "ticker_exchange": "NYSE",
        }

    def test_ticker_fields_empty(self):
        assert ticker_fields(None) == {}

    def test_sec_fields_for_private_company(self):
        assert sec_fields(SecData(match=PublicCompanyMatch.not_public())) == {"is_public_company": False}
        assert sec_fields(None) == {"is_public_company": False}

    def test_sec_fields_with_filings(self):
        sec_data = SecData(
            match=make_match(),
            filings=[
                make_filing("4", date(2024, 11, 15), excluded=True),
                make_filing("10-K", date(2024, 11, 1)),
            ],
        )
        fields = sec_fields(sec_data)

        assert fields["is_public_company"] is True
        assert fields["cik"] == "0000320193"
        assert fields["sec_ticker"] == "AAPL"
        assert fields["sec_provenance"] == "directory-match"
        assert fields["recent_filings"] == 2
        assert [f.form_type for f in sec_data.included_filings] == ["10-K"]
        assert fields["excluded_filings"] == 1
        assert fields["latest_filing_date"] == "2024-11-15"
        assert "filing_documents_downloaded" not in fields

    def test_web_intel_counts_only_when_found(self):
        intel = WebIntel(news=[SearchResult(url="https://news.example.com/a")])
        assert web_intel_fields(intel) == {"recent_news_found": 1}
        assert web_intel_fields(WebIntel()) == {}

    def test_scraped_fields_are_prefixed(self):
        profile = CompanyWebProfile(
            basic_info={"employee_count": 161000, "headquarters": "Cupertino, California"},
            financial_info={"revenue": 383.0e9},
            technology_info={"technologies": ["software"]},
            scraped_pages=[
                ScrapeResult(url="https://apple.com/about", success=True),
                ScrapeResult(url="https://apple.com/careers", success=False),
            ],
        )
        fields = scraped_fields(profile)

        assert fields == {
            "scraped_employee_count": 161000,
            "scraped_headquarters": "Cupertino, California",
            "scraped_revenue": 383.0e9,
            "scraped_technologies": ["software"],
            "scraped_pages": 1,
        }


class TestFinalizeFields:
    """Tests for full-record finalization."""

    def test_bare_record(self):
        fields = finalize_fields(EnrichmentRecord(identifier="acme.io"), [])
        assert fields == {"is_public_company": False, "enhanced_enrichment": True, "data_sources": []}

    def test_profile_and_scraped_values_do_not_collide(self):
        record = EnrichmentRecord(
            identifier="apple.com",
            profile=OrganizationProfile(name="Apple Inc", domain="apple.com", employee_count=164000),
            web_profile=CompanyWebProfile(basic_info={"employee_count": 161000}),
        )
        fields = finalize_fields(record, ["crustdata", "firecrawl"])

        assert fields["employee_count"] == 164000
        assert fields["scraped_employee_count"] == 161000
        assert fields["data_sources"] == ["crustdata", "firecrawl"]

    def test_sec_ticker_fills_missing_discovery(self):
        record = EnrichmentRecord(identifier="apple.com", sec_data=SecData(match=make_match()))
        fields = finalize_fields(record, ["sec"])

        assert fields["ticker_symbol"] == "AAPL"
        assert "ticker_method" not in fields

    def test_discovered_ticker_wins_over_sec(self):
        record = EnrichmentRecord(
            identifier="alphabet.com",
            ticker=TickerCandidate(ticker="GOOG", confidence=0.95, method=TickerMethod.GOOGLE_FINANCE),
            sec_data=SecData(match=make_match(ticker="GOOGL", regulatory_id="0001652044")),
        )
        fields = finalize_fields(record, [])

        assert fields["ticker_symbol"] == "GOOG"
        assert fields["sec_ticker"] == "GOOGL"
