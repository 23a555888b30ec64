"""Public-company identification against overrides and the SEC ticker directory."""

import logging
import re
from functools import lru_cache
from typing import Optional, Protocol, Sequence
from urllib.parse import urlparse

from company_intel.config import settings
from company_intel.models import DirectoryEntry, MatchProvenance, PublicCompanyMatch
from .overrides import TickerOverrides

logger = logging.getLogger(__name__)

REGULATORY_ID_WIDTH = 10

PUNCTUATION = re.compile(r"[&.,'\"()\-]")

CORPORATE_SUFFIXES = re.compile(
    r"\b(incorporated|inc|corporation|corp|limited|ltd|plc|group|holdings|co|company"
    r"|llc|lp|sa|ag|nv|se|ab|gmbh|spa|bv)\b"
)

GENERIC_INDUSTRY_WORDS = re.compile(
    r"\b(operations|international|aerospace|defense|systems|technologies|solutions"
    r"|services|manufacturing|aviation|space|military)\b"
)


class DirectorySource(Protocol):
    """Anything that can supply the regulator's ticker directory."""

    async def load_ticker_directory(self, force_refresh: bool = False) -> list[DirectoryEntry]:
        ...


def normalize_domain(website: Optional[str]) -> str:
    """Reduce a URL or domain to a lowercase bare host without ``www.``."""
    if not website:
        return ""

    value = website.strip().lower()
    if "://" in value:
        value = urlparse(value).netloc or ""
    value = value.split("/")[0].split(":")[0]

    if value.startswith("www."):
        value = value[4:]

    return value


@lru_cache(maxsize=50_000)
def normalize_company_name(name: str) -> str:
    """Normalize a company name for override lookup and similarity matching."""
    cleaned = (name or "").lower().strip()
    cleaned = PUNCTUATION.sub(" ", cleaned)
    cleaned = CORPORATE_SUFFIXES.sub("", cleaned)
    cleaned = GENERIC_INDUSTRY_WORDS.sub("", cleaned)
    return " ".join(cleaned.split())


def name_tokens(name: str) -> frozenset[str]:
    return frozenset(normalize_company_name(name).split())


def jaccard_similarity(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    """Size of the intersection over size of the union; two empty sets score 0."""
    union = len(a | b)
    if not union:
        return 0.0
    return len(a & b) / union


def normalize_regulatory_id(value: int | str) -> str:
    """Zero-pad a CIK to the fixed 10-digit width used for lookups."""
    digits = str(value).strip()
    if digits.upper().startswith("CIK"):
        digits = digits[3:]
    if not digits.isdigit():
        raise ValueError(f"Invalid regulatory identifier: {value!r}")

    digits = digits.lstrip("0") or "0"
    if len(digits) > REGULATORY_ID_WIDTH:
        raise ValueError(f"Regulatory identifier too long: {value!r}")

    return digits.zfill(REGULATORY_ID_WIDTH)


def strip_regulatory_id(value: int | str) -> str:
    """CIK without leading zeros, as used in archive paths."""
    return normalize_regulatory_id(value).lstrip("0") or "0"


def find_directory_match(
    company_name: str,
    directory: Sequence[DirectoryEntry],
    threshold: float = 0.8,
) -> Optional[tuple[DirectoryEntry, float]]:
    """Return the best-scoring directory entry at or above ``threshold``.

    Ties keep the first entry seen.
    """
    target = name_tokens(company_name)
    if not target:
        return None

    best: Optional[tuple[DirectoryEntry, float]] = None
    for entry in directory:
        score = jaccard_similarity(target, name_tokens(entry.title))
        if score >= threshold and (best is None or score > best[1]):
            best = (entry, score)

    return best


class PublicCompanyIdentifier:
    """Decide whether a company is publicly traded and find its CIK."""

    def __init__(
        self,
        directory_source: DirectorySource,
        overrides: Optional[TickerOverrides] = None,
        match_threshold: Optional[float] = None,
    ):
        self.directory_source = directory_source
        self.overrides = overrides or TickerOverrides.empty()
        # Lookup keys go through the same normalization as queries
        self._domain_overrides = {
            normalize_domain(k): v for k, v in self.overrides.by_domain.items() if normalize_domain(k)
        }
        self._name_overrides = {
            normalize_company_name(k): v
            for k, v in self.overrides.by_name.items()
            if normalize_company_name(k)
        }
        self.match_threshold = (
            settings.directory_match_threshold if match_threshold is None else match_threshold
        )

    async def identify(self, company_name: str, website: Optional[str] = None) -> PublicCompanyMatch:
        """Identify a company; any internal failure yields a negative match."""
        try:
            return await self._identify(company_name, website)
        except Exception as e:
            logger.warning(f"Public company identification failed for {company_name}: {e}")
            return PublicCompanyMatch.not_public()

    async def _identify(self, company_name: str, website: Optional[str]) -> PublicCompanyMatch:
        # 1) Overrides
        domain = normalize_domain(website)
        ticker = self._domain_overrides.get(domain) if domain else None
        if not ticker:
            normalized = normalize_company_name(company_name)
            ticker = self._name_overrides.get(normalized) if normalized else None

        if ticker:
            logger.debug(f"Override hit for {company_name}: {ticker}")
            return PublicCompanyMatch(
                is_public=True,
                confidence=1.0,
                matched_title=company_name,
                ticker=ticker,
                regulatory_id=await self._regulatory_id_for_ticker(ticker),
                provenance=MatchProvenance.OVERRIDE,
            )

        # 2) Directory matching
        directory = await self.directory_source.load_ticker_directory()
        match = find_directory_match(company_name, directory, self.match_threshold)
        if match:
            entry, score = match
            logger.debug(f"Directory match for {company_name}: {entry.title} ({score:.2f})")
            return PublicCompanyMatch(
                is_public=True,
                confidence=round(score, 2),
                matched_title=entry.title,
                ticker=entry.ticker,
                regulatory_id=normalize_regulatory_id(entry.regulatory_id),
                provenance=MatchProvenance.DIRECTORY_MATCH,
            )

        return PublicCompanyMatch.not_public()

    async def _regulatory_id_for_ticker(self, ticker: str) -> Optional[str]:
        """Best-effort CIK lookup for an override ticker."""
        try:
            directory = await self.directory_source.load_ticker_directory()
        except Exception as e:
            logger.debug(f"Directory unavailable for override ticker {ticker}: {e}")
            return None

        for entry in directory:
            if entry.ticker.upper() == ticker.upper():
                return normalize_regulatory_id(entry.regulatory_id)
        return None
