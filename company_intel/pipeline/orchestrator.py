"""Phased, concurrent enrichment of one or many organizations."""

import asyncio
import logging
import time
from typing import Any, Optional

from company_intel.config import settings
from company_intel.connectors import (
    CrustDataClient,
    DuckDuckGoSearchClient,
    ExaSearchClient,
    FirecrawlScraper,
    MockProfileProvider,
    MockScraper,
    MockSECClient,
    MockSignalExtractor,
    MockWebSearch,
    ProfileProvider,
    SECEdgarClient,
    WebSearchClient,
)
from company_intel.connectors.mock import default_search_responder
from company_intel.discovery import TickerDiscoveryEngine
from company_intel.enrich import (
    PublicCompanyIdentifier,
    SignalExtractor,
    TickerOverrides,
    load_ticker_overrides,
    normalize_domain,
)
from company_intel.errors import SignalExtractionError
from company_intel.models import (
    CompanyWebProfile,
    EnrichmentOptions,
    EnrichmentRecord,
    OrganizationProfile,
    ScrapeResult,
    SecData,
    StructuredSignals,
    WebIntel,
)
from .concurrency import run_bounded
from .fusion import finalize_fields

logger = logging.getLogger(__name__)

TICKER_DISCOVERY_SOURCE = "ticker_discovery"


class EnrichmentOrchestrator:
    """Fan an identifier out to every collaborator and fuse the results.

    Tasks run in three phases. A phase only schedules tasks whose inputs
    were already present when the phase started:

    1. base profile (fatal on failure)
    2. ticker discovery, SEC identification and filings, news search,
       tech-stack search and website scraping (need the profile)
    3. signal extraction and financial-document search (need a ticker
       or downloaded filings)

    Within a phase tasks share one bounded-concurrency gate and each task
    is time-boxed. Each task writes only its own slice of the record.
    """

    def __init__(
        self,
        provider: ProfileProvider,
        search_client: Optional[WebSearchClient] = None,
        sec_client: Optional[SECEdgarClient] = None,
        signal_extractor: Optional[SignalExtractor] = None,
        scraper: Optional[Any] = None,
        overrides: Optional[TickerOverrides] = None,
        discovery: Optional[TickerDiscoveryEngine] = None,
    ):
        self.provider = provider
        self.search_client = search_client
        self.sec_client = sec_client
        self.signal_extractor = signal_extractor
        self.scraper = scraper

        if discovery is None and search_client is not None:
            discovery = TickerDiscoveryEngine(search_client)
        self.discovery = discovery

        self.identifier = (
            PublicCompanyIdentifier(sec_client, overrides=overrides) if sec_client is not None else None
        )

    @classmethod
    def from_settings(cls) -> "EnrichmentOrchestrator":
        """Wire live collaborators; optional ones are skipped when their key is unset."""
        if settings.exa_api_key:
            search_client: WebSearchClient = ExaSearchClient()
        else:
            logger.info("EXA_API_KEY not set, using DuckDuckGo for web search")
            search_client = DuckDuckGoSearchClient()

        return cls(
            provider=CrustDataClient(),
            search_client=search_client,
            sec_client=SECEdgarClient(),
            signal_extractor=SignalExtractor() if settings.anthropic_api_key else None,
            scraper=FirecrawlScraper() if settings.firecrawl_api_key else None,
            overrides=load_ticker_overrides(),
        )

    @classmethod
    def with_mocks(cls, **overrides) -> "EnrichmentOrchestrator":
        """Fully offline orchestrator; keyword arguments replace single collaborators."""
        collaborators = {
            "provider": MockProfileProvider(),
            "search_client": MockWebSearch(default_search_responder),
            "sec_client": MockSECClient(),
            "signal_extractor": MockSignalExtractor(),
            "scraper": MockScraper(),
        }
        collaborators.update(overrides)
        return cls(**collaborators)

    def _data_sources(self, contributors: set[str]) -> list[str]:
        ordered = [
            self.provider.name,
            TICKER_DISCOVERY_SOURCE,
            self.sec_client.name if self.sec_client else None,
            self.search_client.name if self.search_client else None,
            getattr(self.scraper, "name", None),
            self.signal_extractor.name if self.signal_extractor else None,
        ]
        return [source for source in ordered if source and source in contributors]

    async def enrich(
        self,
        identifier: str,
        is_domain: bool = True,
        options: Optional[EnrichmentOptions] = None,
    ) -> EnrichmentRecord:
        """Enrich one domain or company name. Never raises for collaborator failures."""
        options = options or EnrichmentOptions()
        started = time.monotonic()
        record = EnrichmentRecord(identifier=identifier)
        contributors: set[str] = set()

        logger.info(f"Enriching {identifier}")

        # Phase 1: base profile
        if options.include_firmographic:
            async def fetch_profile():
                record.profile = await self.provider.fetch_profile(identifier, is_domain=is_domain)
                contributors.add(self.provider.name)

            await self._run_phase([("base_profile", fetch_profile)], record, options)
            if record.profile is None:
                record.error = record.task_errors.get("base_profile", "Base profile unavailable")
                logger.error(f"Base profile failed for {identifier}: {record.error}")
        else:
            record.profile = OrganizationProfile(
                identifier=identifier,
                name=identifier,
                domain=normalize_domain(identifier) if is_domain else None,
            )

        # Phase 2: needs the profile
        if record.profile is not None:
            await self._run_phase(self._profile_tasks(record, options, contributors), record, options)

        # Phase 3: needs a ticker or downloaded filings
        if record.profile is not None:
            await self._run_phase(self._ticker_tasks(record, options, contributors), record, options)

        record.enrichment_fields = finalize_fields(record, self._data_sources(contributors))
        record.success = record.error is None
        record.processing_time = time.monotonic() - started

        logger.info(
            f"Finished {identifier} in {record.processing_time:.2f}s "
            f"(success={record.success}, failed tasks={len(record.task_errors)})"
        )
        return record

    async def _run_phase(self, tasks, record: EnrichmentRecord, options: EnrichmentOptions):
        if not tasks:
            return
        await run_bounded(
            tasks,
            options.max_concurrency,
            timeout=options.task_timeout,
            errors=record.task_errors,
            hard_errors=(SignalExtractionError,),
        )

    def _profile_tasks(self, record: EnrichmentRecord, options: EnrichmentOptions, contributors: set[str]):
        profile = record.profile
        tasks = []

        if options.include_ticker_discovery and self.discovery is not None:
            async def discover_ticker():
                record.ticker = await self.discovery.discover(
                    profile.name,
                    profile.domain,
                    include_international=options.include_international,
                    timeout=options.strategy_timeout,
                )
                if record.ticker:
                    contributors.add(TICKER_DISCOVERY_SOURCE)

            tasks.append(("ticker_discovery", discover_ticker))

        if options.include_sec and self.identifier is not None:
            async def identify_and_fetch_filings():
                match = await self.identifier.identify(profile.name, profile.domain)
                record.sec_data = SecData(match=match)
                if not match.is_public:
                    return
                contributors.add(self.sec_client.name)
                if not match.regulatory_id:
                    return

                filings = await self.sec_client.list_filings(match.regulatory_id, max_count=options.max_filings)
                record.sec_data.filings = filings
                record.sec_data.documents = await self.sec_client.download_filings(
                    match.regulatory_id, filings, max_documents=options.max_filing_documents
                )

            tasks.append(("sec", identify_and_fetch_filings))

        if options.include_web_intel and self.search_client is not None:
            record.web_intel = WebIntel()

            if options.include_news:
                async def search_news():
                    record.web_intel.news = await self.search_client.search_company_news(profile.name)
                    if record.web_intel.news:
                        contributors.add(self.search_client.name)

                tasks.append(("news", search_news))

            if options.include_tech_stack:
                async def search_tech_stack():
                    record.web_intel.technology_stack = await self.search_client.search_technology_stack(
                        profile.name
                    )
                    if record.web_intel.technology_stack:
                        contributors.add(self.search_client.name)

                tasks.append(("tech_stack", search_tech_stack))

        if options.include_scraping and self.scraper is not None and profile.domain:
            async def scrape_website():
                record.web_profile = await self.scraper.extract_company_information(profile.name, profile.domain)
                if any(page.success for page in record.web_profile.scraped_pages):
                    contributors.add(self.scraper.name)

            tasks.append(("scraping", scrape_website))

        return tasks

    def _ticker_tasks(self, record: EnrichmentRecord, options: EnrichmentOptions, contributors: set[str]):
        profile = record.profile
        ticker = record.ticker_symbol
        documents = record.sec_data.documents if record.sec_data else []
        tasks = []

        if options.include_sec_signals and self.signal_extractor is not None and documents and ticker:
            async def extract_filing_signals():
                record.signals = await self.signal_extractor.extract(profile.name, ticker, documents)
                contributors.add(self.signal_extractor.name)

            tasks.append(("sec_signals", extract_filing_signals))

        if (
            options.include_web_intel
            and options.include_financial_docs
            and self.search_client is not None
            and ticker
        ):
            if record.web_intel is None:
                record.web_intel = WebIntel()

            async def search_financial_documents():
                record.web_intel.financial_documents = await self.search_client.search_financial_documents(
                    profile.name, ticker
                )
                if record.web_intel.financial_documents:
                    contributors.add(self.search_client.name)

            tasks.append(("financial_docs", search_financial_documents))

        return tasks

    async def enrich_many(
        self,
        identifiers: list[str],
        is_domain: bool = True,
        options: Optional[EnrichmentOptions] = None,
    ) -> list[EnrichmentRecord]:
        """Enrich identifiers in batches of ``max_concurrency``, pausing between batches."""
        options = options or EnrichmentOptions()
        batch_size = options.max_concurrency
        results: list[EnrichmentRecord] = []

        for start in range(0, len(identifiers), batch_size):
            if start:
                await self._batch_pause(options.batch_delay)

            batch = identifiers[start:start + batch_size]
            logger.info(
                f"Processing batch {start // batch_size + 1} "
                f"({start + 1}-{start + len(batch)} of {len(identifiers)})"
            )
            results.extend(
                await asyncio.gather(*(self.enrich(item, is_domain, options) for item in batch))
            )

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch enrichment complete: {succeeded}/{len(results)} succeeded")
        return results

    async def _batch_pause(self, delay: float):
        if delay > 0:
            await asyncio.sleep(delay)

    async def discover_tickers(
        self,
        companies: list[dict[str, Any]],
        include_international: bool = True,
        max_concurrency: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Run ticker discovery only. Results keep input order."""
        if self.discovery is None:
            raise ValueError("Ticker discovery requires a search client")

        semaphore = asyncio.Semaphore(max_concurrency or settings.max_concurrency)

        async def discover_one(company: dict[str, Any]) -> dict[str, Any]:
            name = company["name"]
            async with semaphore:
                try:
                    candidate = await self.discovery.discover(
                        name, company.get("website"), include_international=include_international
                    )
                except Exception as e:
                    logger.warning(f"Ticker discovery failed for {name}: {e}")
                    candidate = None

            return {
                "company_name": name,
                "ticker": candidate.ticker if candidate else None,
                "confidence": candidate.confidence if candidate else 0.0,
                "method": candidate.method.value if candidate else None,
            }

        return await asyncio.gather(*(discover_one(c) for c in companies))

    async def enrich_by_industry(
        self,
        industry: str,
        limit: int = 10,
        options: Optional[EnrichmentOptions] = None,
    ) -> list[EnrichmentRecord]:
        try:
            profiles = await self.provider.get_companies_by_industry(industry, limit=limit)
        except Exception as e:
            logger.warning(f"Industry search failed for {industry}: {e}")
            return []
        return await self._enrich_profiles(profiles, options)

    async def enrich_by_technology(
        self,
        technologies: list[str],
        limit: int = 10,
        options: Optional[EnrichmentOptions] = None,
    ) -> list[EnrichmentRecord]:
        try:
            profiles = await self.provider.get_companies_by_technology(technologies, limit=limit)
        except Exception as e:
            logger.warning(f"Technology search failed for {', '.join(technologies)}: {e}")
            return []
        return await self._enrich_profiles(profiles, options)

    async def _enrich_profiles(
        self,
        profiles: list[OrganizationProfile],
        options: Optional[EnrichmentOptions],
    ) -> list[EnrichmentRecord]:
        records = []
        for profile in profiles:
            if profile.domain:
                records.append(await self.enrich(profile.domain, True, options))
            else:
                records.append(await self.enrich(profile.name, False, options))
        return records

    async def extract_signals(self, company_name: str, ticker: str, documents) -> StructuredSignals:
        if self.signal_extractor is None:
            raise ValueError("Signal extraction requires a configured extractor")
        return await self.signal_extractor.extract(company_name, ticker, documents)

    async def scrape_company_website(self, company_name: str, website: Optional[str] = None) -> list[ScrapeResult]:
        if self.scraper is None:
            raise ValueError("Website scraping requires a configured scraper")
        return await self.scraper.scrape_company_website(company_name, website)

    async def extract_company_information(
        self, company_name: str, website: Optional[str] = None
    ) -> CompanyWebProfile:
        if self.scraper is None:
            raise ValueError("Website scraping requires a configured scraper")
        return await self.scraper.extract_company_information(company_name, website)
