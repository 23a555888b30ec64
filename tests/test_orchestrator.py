"""Tests for the enrichment orchestrator, driven by mock collaborators."""

import asyncio

from company_intel.connectors.mock import (
    MockProfileProvider,
    MockSECClient,
    MockSignalExtractor,
    MockWebSearch,
    default_search_responder,
)
from company_intel.errors import ProviderError
from company_intel.models import EnrichmentOptions, MatchProvenance, TickerMethod
from company_intel.pipeline import EnrichmentOrchestrator


def make_options(**overrides) -> EnrichmentOptions:
    values = {"max_concurrency": 3, "task_timeout": 5.0, "strategy_timeout": 5.0, "batch_delay": 0.0}
    values.update(overrides)
    return EnrichmentOptions(**values)


class RecordingOrchestrator(EnrichmentOrchestrator):
    """Records inter-batch pauses instead of sleeping."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pauses: list[float] = []

    async def _batch_pause(self, delay: float):
        self.pauses.append(delay)


def make_orchestrator(**collaborators) -> RecordingOrchestrator:
    defaults = EnrichmentOrchestrator.with_mocks(**collaborators)
    return RecordingOrchestrator(
        provider=defaults.provider,
        search_client=defaults.search_client,
        sec_client=defaults.sec_client,
        signal_extractor=defaults.signal_extractor,
        scraper=defaults.scraper,
    )


class TestEnrich:
    """Tests for single-identifier enrichment."""

    def test_apple_full_enrichment(self):
        orchestrator = make_orchestrator()
        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options()))

        assert record.success
        assert record.error is None
        assert record.task_errors == {}
        assert record.profile.name == "Apple Inc"

        assert record.ticker.ticker == "AAPL"
        assert record.ticker.method == TickerMethod.GOOGLE_FINANCE

        match = record.sec_data.match
        assert match.is_public
        assert match.regulatory_id == "0000320193"
        assert match.provenance == MatchProvenance.DIRECTORY_MATCH

        assert len(record.sec_data.filings) == 3
        assert len(record.sec_data.documents) == 2
        assert all(not doc.filing.is_excluded for doc in record.sec_data.documents)
        assert record.signals.summary.total_signals == 3

        fields = record.enrichment_fields
        assert fields["company_name"] == "Apple Inc"
        assert fields["ticker_symbol"] == "AAPL"
        assert fields["ticker_method"] == "google_finance"
        assert fields["cik"] == "0000320193"
        assert fields["excluded_filings"] == 1
        assert fields["filing_documents_downloaded"] == 2
        assert fields["sec_signals_extracted"] is True
        assert fields["recent_news_found"] == 1
        assert fields["scraped_founded_year"] == 1976
        assert fields["enhanced_enrichment"] is True
        assert fields["data_sources"] == [
            "crustdata", "ticker_discovery", "sec", "mock_search", "firecrawl", "sec_signals",
        ]
        assert record.processing_time >= 0

    def test_excluded_filings_are_never_downloaded(self):
        sec = MockSECClient()
        orchestrator = make_orchestrator(sec_client=sec)

        asyncio.run(orchestrator.enrich("apple.com", options=make_options()))

        assert len(sec.downloaded) == 2
        assert not any("000032019324000120" in url for url in sec.downloaded)

    def test_profile_failure_skips_dependent_tasks(self):
        search = MockWebSearch(default_search_responder)
        sec = MockSECClient()
        orchestrator = make_orchestrator(
            provider=MockProfileProvider(fail=True), search_client=search, sec_client=sec
        )

        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options()))

        assert not record.success
        assert "lookup failed" in record.error
        assert record.ticker is None
        assert record.sec_data is None
        assert record.web_intel is None
        assert search.queries == []
        assert sec.downloaded == []
        assert set(record.task_errors) == {"base_profile"}
        assert record.enrichment_fields["data_sources"] == []

    def test_unknown_identifier_fails(self):
        record = asyncio.run(make_orchestrator().enrich("unknown.example", options=make_options()))
        assert not record.success
        assert record.error

    def test_private_company(self):
        record = asyncio.run(make_orchestrator().enrich("acme-robotics.io", options=make_options()))

        assert record.success
        assert not record.is_public
        assert record.ticker is None
        assert record.signals is None
        assert record.enrichment_fields["is_public_company"] is False
        assert "sec" not in record.enrichment_fields["data_sources"]
        assert "sec_signals" not in record.task_errors

    def test_lookup_by_name(self):
        provider = MockProfileProvider()
        orchestrator = make_orchestrator(provider=provider)

        record = asyncio.run(orchestrator.enrich("Boeing", is_domain=False, options=make_options()))

        assert record.success
        assert provider.calls == [("Boeing", False)]
        assert record.ticker_symbol == "BA"
        assert record.enrichment_fields["cik"] == "0000012927"

    def test_signal_failure_is_surfaced_not_fatal(self):
        orchestrator = make_orchestrator(signal_extractor=MockSignalExtractor(error=RuntimeError("overloaded")))

        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options()))

        assert record.success
        assert record.signals is None
        assert "overloaded" in record.task_errors["sec_signals"]
        assert "sec_signals" not in record.enrichment_fields["data_sources"]

    def test_unparseable_signal_reply_is_surfaced(self):
        orchestrator = make_orchestrator(signal_extractor=MockSignalExtractor("no json here"))
        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options()))

        assert record.success
        assert "No JSON" in record.task_errors["sec_signals"]

    def test_search_outage_degrades(self):
        orchestrator = make_orchestrator(search_client=MockWebSearch(error=ProviderError("mock_search", "down")))

        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options()))

        assert record.success
        assert record.ticker is None
        assert "news" in record.task_errors
        # the SEC match still supplies a ticker for signal extraction
        assert record.ticker_symbol == "AAPL"
        assert record.signals is not None
        assert "mock_search" not in record.enrichment_fields["data_sources"]

    def test_task_timeout_is_recorded(self):
        orchestrator = make_orchestrator(search_client=MockWebSearch(default_search_responder, delay=0.5))

        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options(task_timeout=0.05)))

        assert record.success
        assert "timed out" in record.task_errors["news"]
        assert "timed out" in record.task_errors["ticker_discovery"]

    def test_skipping_sec(self):
        sec = MockSECClient()
        orchestrator = make_orchestrator(sec_client=sec)

        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options(include_sec=False)))

        assert record.sec_data is None
        assert record.signals is None
        assert sec.downloaded == []
        assert record.ticker_symbol == "AAPL"

    def test_skipping_firmographic(self):
        provider = MockProfileProvider()
        orchestrator = make_orchestrator(provider=provider)

        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options(include_firmographic=False)))

        assert record.success
        assert provider.calls == []
        assert record.profile.domain == "apple.com"
        assert "crustdata" not in record.enrichment_fields["data_sources"]

    def test_without_optional_collaborators(self):
        orchestrator = EnrichmentOrchestrator(provider=MockProfileProvider())
        record = asyncio.run(orchestrator.enrich("apple.com", options=make_options()))

        assert record.success
        assert record.ticker is None
        assert record.sec_data is None
        assert record.enrichment_fields["data_sources"] == ["crustdata"]


class TestEnrichMany:
    """Tests for batch enrichment."""

    def test_batches_and_pauses(self):
        orchestrator = make_orchestrator()
        identifiers = ["apple.com", "boeing.com", "acme-robotics.io", "unknown.example", "apple.com"]

        records = asyncio.run(
            orchestrator.enrich_many(identifiers, options=make_options(max_concurrency=2, batch_delay=1.5))
        )

        assert [r.identifier for r in records] == identifiers
        assert orchestrator.pauses == [1.5, 1.5]
        assert [r.success for r in records] == [True, True, True, False, True]

    def test_no_pause_for_single_batch(self):
        orchestrator = make_orchestrator()
        asyncio.run(orchestrator.enrich_many(["apple.com"], options=make_options(batch_delay=2.0)))
        assert orchestrator.pauses == []

    def test_concurrency_one_serializes(self):
        provider = MockProfileProvider(delay=0.02)
        orchestrator = make_orchestrator(provider=provider)

        asyncio.run(orchestrator.enrich_many(
            ["apple.com", "boeing.com", "acme-robotics.io"], options=make_options(max_concurrency=1)
        ))

        assert provider.max_active == 1
        assert orchestrator.pauses == [0.0, 0.0]

    def test_concurrency_n_runs_in_parallel(self):
        provider = MockProfileProvider(delay=0.05)
        orchestrator = make_orchestrator(provider=provider)

        asyncio.run(orchestrator.enrich_many(
            ["apple.com", "boeing.com", "acme-robotics.io"], options=make_options(max_concurrency=3)
        ))

        assert provider.max_active == 3

    def test_empty_input(self):
        assert asyncio.run(make_orchestrator().enrich_many([])) == []


class TestSupplementalOperations:
    """Tests for discovery-only and filter-driven entry points."""

    def test_discover_tickers_keeps_input_order(self):
        orchestrator = make_orchestrator()
        results = asyncio.run(orchestrator.discover_tickers([
            {"name": "Apple Inc"},
            {"name": "Acme Robotics", "website": "acme-robotics.io"},
            {"name": "Boeing"},
        ]))

        assert [r["company_name"] for r in results] == ["Apple Inc", "Acme Robotics", "Boeing"]
        assert results[0]["ticker"] == "AAPL"
        assert results[0]["method"] == "google_finance"
        assert results[1] == {"company_name": "Acme Robotics", "ticker": None, "confidence": 0.0, "method": None}
        assert results[2]["ticker"] == "BA"

    def test_enrich_by_industry(self):
        records = asyncio.run(make_orchestrator().enrich_by_industry("aerospace", options=make_options()))
        assert [r.identifier for r in records] == ["boeing.com"]
        assert records[0].ticker_symbol == "BA"

    def test_enrich_by_technology(self):
        records = asyncio.run(make_orchestrator().enrich_by_technology(["aws"], options=make_options()))
        assert [r.identifier for r in records] == ["apple.com", "acme-robotics.io"]

    def test_search_failure_returns_empty(self):
        orchestrator = make_orchestrator(provider=MockProfileProvider(fail=True))

        async def broken(filters, limit=50):
            raise ProviderError("crustdata", "screener down")

        orchestrator.provider.search_companies = broken
        assert asyncio.run(orchestrator.enrich_by_industry("aerospace")) == []

    def test_scrape_pass_through(self):
        pages = asyncio.run(make_orchestrator().scrape_company_website("Apple Inc", "apple.com"))
        assert [p.url for p in pages][0] == "https://apple.com/about"
