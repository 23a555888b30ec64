"""Multi-strategy ticker discovery."""

import asyncio
import logging
from typing import Mapping, Optional

from company_intel.config import settings
from company_intel.connectors.base import WebSearchClient
from company_intel.models import TickerCandidate
from .mappings import MANUAL_MAPPINGS, ManualMapping
from .strategies import DiscoveryQuery, DiscoveryStrategy, build_default_strategies

logger = logging.getLogger(__name__)


class TickerDiscoveryEngine:
    """Try strategies in order and return the first confident candidate.

    Each strategy is time-boxed. A timeout or error counts as "no result" and
    the cascade moves on. Candidates are never merged across strategies.
    """

    def __init__(
        self,
        search_client: Optional[WebSearchClient] = None,
        strategies: Optional[list[DiscoveryStrategy]] = None,
        threshold: Optional[float] = None,
        timeout: Optional[float] = None,
        mappings: Mapping[str, ManualMapping] = MANUAL_MAPPINGS,
    ):
        if strategies is None:
            if search_client is None:
                raise ValueError("Either search_client or strategies is required")
            strategies = build_default_strategies(search_client, mappings)

        self.strategies = list(strategies)
        self.threshold = settings.ticker_confidence_threshold if threshold is None else threshold
        self.timeout = settings.strategy_timeout if timeout is None else timeout

    def strategies_for(self, include_international: bool = True) -> list[DiscoveryStrategy]:
        if include_international:
            return list(self.strategies)
        return [s for s in self.strategies if not s.requires_international]

    async def discover(
        self,
        company_name: str,
        website: Optional[str] = None,
        include_international: bool = True,
        timeout: Optional[float] = None,
    ) -> Optional[TickerCandidate]:
        """Return the first candidate whose confidence is above the threshold."""
        query = DiscoveryQuery(company_name=company_name, website=website)
        timeout = self.timeout if timeout is None else timeout

        for strategy in self.strategies_for(include_international):
            try:
                candidate = await asyncio.wait_for(strategy.attempt(query), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Ticker discovery strategy {strategy.method.value} timed out for {company_name}")
                continue
            except Exception as e:
                logger.warning(f"Ticker discovery strategy {strategy.method.value} failed: {e}")
                continue

            if candidate is None:
                continue

            if candidate.confidence > self.threshold:
                logger.info(
                    f"Found ticker {candidate.ticker} for {company_name} "
                    f"via {candidate.method.value} ({candidate.confidence:.2f})"
                )
                return candidate

            logger.debug(
                f"Ignoring {candidate.ticker} from {candidate.method.value}: "
                f"confidence {candidate.confidence:.2f} not above {self.threshold:.2f}"
            )

        logger.info(f"No ticker found for {company_name}")
        return None
