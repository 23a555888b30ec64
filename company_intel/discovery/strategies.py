"""Ticker discovery strategies, tried in a fixed order by the engine."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional

from pydantic import ValidationError

from company_intel.connectors.base import WebSearchClient
from company_intel.enrich.identifier import normalize_domain
from company_intel.models import SearchOptions, SearchResult, TickerCandidate, TickerMethod
from .mappings import MANUAL_MAPPINGS, ManualMapping, lookup_manual_mapping
from .patterns import (
    exchange_from_url,
    ticker_from_content,
    ticker_from_google_finance_url,
    ticker_from_yahoo_finance_url,
)

logger = logging.getLogger(__name__)

NORTH_AMERICAN_EXCHANGES = ["NYSE", "NASDAQ", "TSX", "TSXV", "CSE"]
EUROPEAN_EXCHANGES = ["LSE", "Euronext", "XETRA", "SIX", "BME"]
ASIAN_EXCHANGES = ["TSE", "HKEX", "BSE", "NSE", "KOSPI", "SGX"]


@dataclass(frozen=True)
class DiscoveryQuery:
    """Company being looked up."""

    company_name: str
    website: Optional[str] = None


class DiscoveryStrategy(ABC):
    """One way of finding a ticker; returns at most one candidate."""

    method: TickerMethod
    confidence: float = 0.0
    requires_international: bool = False

    @abstractmethod
    async def attempt(self, query: DiscoveryQuery) -> Optional[TickerCandidate]:
        pass

    def _candidate(
        self,
        ticker: str,
        query: DiscoveryQuery,
        confidence: Optional[float] = None,
        exchange: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Optional[TickerCandidate]:
        try:
            return TickerCandidate(
                ticker=ticker,
                confidence=self.confidence if confidence is None else confidence,
                method=self.method,
                exchange=exchange,
                company_name=query.company_name,
                source=source,
            )
        except ValidationError as e:
            logger.debug(f"{self.method.value}: rejected ticker {ticker!r}: {e}")
            return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.method.value}, {self.confidence})"


class SearchStrategy(DiscoveryStrategy):
    """Run one or more web searches and parse a ticker from the results.

    Single-query strategies let search errors propagate to the engine.
    Strategies with several queries skip a failed query and keep going.
    """

    num_results: int = 3
    live_crawl: str = "fallback"

    def __init__(self, search_client: WebSearchClient):
        self.search_client = search_client

    @abstractmethod
    def queries(self, query: DiscoveryQuery) -> list[str]:
        pass

    def plan(self, query: DiscoveryQuery) -> list[tuple[str, Optional[str]]]:
        """(search text, exchange hint) pairs in the order they are tried."""
        return [(text, None) for text in self.queries(query)]

    def parse(self, result: SearchResult) -> tuple[Optional[str], Optional[str]]:
        """Return (ticker, exchange) found in a result."""
        return ticker_from_content(result.text or ""), None

    async def attempt(self, query: DiscoveryQuery) -> Optional[TickerCandidate]:
        steps = self.plan(query)
        options = SearchOptions(mode="keyword", num_results=self.num_results, live_crawl=self.live_crawl)

        for text, exchange_hint in steps:
            try:
                results = await self.search_client.search(text, options)
            except Exception as e:
                if len(steps) == 1:
                    raise
                logger.warning(f"{self.method.value} search failed for query {text!r}: {e}")
                continue

            for result in results:
                ticker, exchange = self.parse(result)
                if not ticker:
                    continue
                candidate = self._candidate(
                    ticker, query, exchange=exchange or exchange_hint, source=result.url
                )
                if candidate:
                    return candidate

        return None


class GoogleFinanceStrategy(SearchStrategy):
    method = TickerMethod.GOOGLE_FINANCE
    confidence = 0.95
    num_results = 5
    live_crawl = "always"

    def queries(self, query: DiscoveryQuery) -> list[str]:
        return [f'site:google.com/finance/quote "{query.company_name}"']

    def parse(self, result: SearchResult) -> tuple[Optional[str], Optional[str]]:
        return ticker_from_google_finance_url(result.url), exchange_from_url(result.url)


class YahooFinanceStrategy(SearchStrategy):
    method = TickerMethod.YAHOO_FINANCE
    confidence = 0.90
    num_results = 5
    live_crawl = "always"

    def queries(self, query: DiscoveryQuery) -> list[str]:
        return [f'site:finance.yahoo.com/quote "{query.company_name}"']

    def parse(self, result: SearchResult) -> tuple[Optional[str], Optional[str]]:
        return ticker_from_yahoo_finance_url(result.url), exchange_from_url(result.url)


class FinancialModelingPrepStrategy(SearchStrategy):
    method = TickerMethod.FINANCIAL_MODELING_PREP
    confidence = 0.85

    def queries(self, query: DiscoveryQuery) -> list[str]:
        return [f'"{query.company_name}" financial modeling prep ticker']


class TickerKeywordStrategy(SearchStrategy):
    method = TickerMethod.TICKER_KEYWORD_SEARCH
    confidence = 0.80

    def queries(self, query: DiscoveryQuery) -> list[str]:
        return [f'"{query.company_name}" ticker symbol stock market']


class MultiQueryStrategy(SearchStrategy):
    method = TickerMethod.MULTI_QUERY_SEARCH
    confidence = 0.75

    def queries(self, query: DiscoveryQuery) -> list[str]:
        name = query.company_name
        domain = normalize_domain(query.website)
        queries = [
            f'"{name}" ticker symbol stock exchange',
            f'"{name}" NYSE NASDAQ stock symbol',
            f'"{name}" investor relations ticker',
        ]
        if domain:
            queries.append(f'"{name}" site:{domain} ticker symbol')
        queries.append(f'"{name}" public company stock ticker')
        return queries


class ExchangeSweepStrategy(SearchStrategy):
    """One query per exchange of a region; the exchange is attached to the hit."""

    num_results = 2
    requires_international = True

    def __init__(
        self,
        search_client: WebSearchClient,
        method: TickerMethod,
        exchanges: list[str],
        template: str = '"{name}" {exchange} stock ticker symbol',
        confidence: float = 0.70,
    ):
        super().__init__(search_client)
        self.method = method
        self.exchanges = list(exchanges)
        self.template = template
        self.confidence = confidence

    def queries(self, query: DiscoveryQuery) -> list[str]:
        return [text for text, _ in self.plan(query)]

    def plan(self, query: DiscoveryQuery) -> list[tuple[str, Optional[str]]]:
        return [
            (self.template.format(name=query.company_name, exchange=exchange), exchange)
            for exchange in self.exchanges
        ]


class InvestorRelationsStrategy(SearchStrategy):
    method = TickerMethod.INVESTOR_RELATIONS
    confidence = 0.80
    live_crawl = "always"

    def queries(self, query: DiscoveryQuery) -> list[str]:
        domain = normalize_domain(query.website)
        if not domain:
            return []
        return [f'"{query.company_name}" investor relations ticker symbol site:{domain}']


class ManualMappingStrategy(DiscoveryStrategy):
    method = TickerMethod.MANUAL_MAPPING
    confidence = 0.99

    def __init__(self, mappings: Mapping[str, ManualMapping] = MANUAL_MAPPINGS):
        self.mappings = mappings

    async def attempt(self, query: DiscoveryQuery) -> Optional[TickerCandidate]:
        mapping = lookup_manual_mapping(query.company_name, self.mappings)
        if not mapping:
            return None
        return self._candidate(
            mapping.ticker, query, confidence=mapping.confidence, exchange=mapping.exchange
        )


def build_default_strategies(
    search_client: WebSearchClient,
    mappings: Mapping[str, ManualMapping] = MANUAL_MAPPINGS,
) -> list[DiscoveryStrategy]:
    """The standard cascade, highest-confidence sources first, manual table last."""
    return [
        GoogleFinanceStrategy(search_client),
        YahooFinanceStrategy(search_client),
        FinancialModelingPrepStrategy(search_client),
        TickerKeywordStrategy(search_client),
        MultiQueryStrategy(search_client),
        ExchangeSweepStrategy(
            search_client,
            TickerMethod.NORTH_AMERICAN_EXCHANGE,
            NORTH_AMERICAN_EXCHANGES,
            template='"{name}" {exchange} stock exchange ticker',
        ),
        ExchangeSweepStrategy(search_client, TickerMethod.EUROPEAN_EXCHANGE, EUROPEAN_EXCHANGES),
        ExchangeSweepStrategy(search_client, TickerMethod.ASIAN_EXCHANGE, ASIAN_EXCHANGES),
        InvestorRelationsStrategy(search_client),
        ManualMappingStrategy(mappings),
    ]
