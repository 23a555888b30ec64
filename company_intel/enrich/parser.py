"""Rule-based extraction from scraped company web pages."""

import logging
import re
from typing import Any, Iterable, Optional

from company_intel.models import CompanyWebProfile, ScrapeResult

logger = logging.getLogger(__name__)


class PageInfoParser:
    """Extract company facts from page text using regex and keyword patterns."""

    # URL fragments that route a page to an extractor
    BASIC_PAGE_HINTS = ("about", "company")
    FINANCIAL_PAGE_HINTS = ("investor", "financial")
    TECHNOLOGY_PAGE_HINTS = ("product", "service", "technology")
    NEWS_PAGE_HINTS = ("news", "press", "blog")

    EMPLOYEE_PATTERN = re.compile(r"(\d+(?:,\d+)*)\s*(?:employees?|staff|people)", re.I)
    FOUNDED_PATTERN = re.compile(r"founded[:\s]*(\d{4})", re.I)
    HEADQUARTERS_PATTERN = re.compile(r"headquarters?[:\s]*([^.\n]+)", re.I)
    INDUSTRY_PATTERN = re.compile(r"industry[:\s]*([^.\n]+)", re.I)

    # Amounts in billions or millions
    REVENUE_PATTERN = re.compile(r"revenue[:\s]*\$?(\d+(?:\.\d+)?)\s*(billion|million|b|m)\b", re.I)
    MARKET_CAP_PATTERN = re.compile(r"market\s*cap[:\s]*\$?(\d+(?:\.\d+)?)\s*(billion|million|b|m)\b", re.I)

    TECH_KEYWORDS = [
        "artificial intelligence", "machine learning", "ai", "ml",
        "cloud computing", "aws", "azure", "gcp",
        "blockchain", "cryptocurrency", "crypto",
        "iot", "internet of things",
        "cybersecurity", "security",
        "automation", "robotics",
        "data analytics", "big data",
        "mobile", "web", "software",
        "api", "platform", "saas",
    ]

    NEWS_ITEM_PATTERN = re.compile(r"(\d{4}-\d{2}-\d{2})[^.]*\.")
    FUNDING_PATTERN = re.compile(r"funding|investment|raised|venture|series\s+[a-z]\b", re.I)

    MAX_NEWS_ITEMS = 5

    def parse_pages(self, pages: Iterable[ScrapeResult]) -> CompanyWebProfile:
        """Route each successfully scraped page to the matching extractors."""
        profile = CompanyWebProfile()

        for page in pages:
            profile.scraped_pages.append(page)
            if not page.success or not page.content:
                continue

            url = page.url.lower()
            text = page.content

            if self._url_has(url, self.BASIC_PAGE_HINTS):
                self._merge(profile.basic_info, self.extract_basic_info(text))
            if self._url_has(url, self.FINANCIAL_PAGE_HINTS):
                self._merge(profile.financial_info, self.extract_financial_info(text))
            if self._url_has(url, self.TECHNOLOGY_PAGE_HINTS):
                self._merge(profile.technology_info, self.extract_technology_info(text))
            if self._url_has(url, self.NEWS_PAGE_HINTS):
                self._merge(profile.news_info, self.extract_news_info(text))

        return profile

    def extract_basic_info(self, text: str) -> dict[str, Any]:
        info: dict[str, Any] = {}

        match = self.EMPLOYEE_PATTERN.search(text)
        if match:
            info["employee_count"] = int(match.group(1).replace(",", ""))

        match = self.FOUNDED_PATTERN.search(text)
        if match:
            info["founded_year"] = int(match.group(1))

        match = self.HEADQUARTERS_PATTERN.search(text)
        if match and match.group(1).strip():
            info["headquarters"] = match.group(1).strip()

        match = self.INDUSTRY_PATTERN.search(text)
        if match and match.group(1).strip():
            info["industry"] = match.group(1).strip()

        return info

    def extract_financial_info(self, text: str) -> dict[str, Any]:
        info: dict[str, Any] = {}

        revenue = self._parse_amount(self.REVENUE_PATTERN.search(text))
        if revenue is not None:
            info["revenue"] = revenue

        market_cap = self._parse_amount(self.MARKET_CAP_PATTERN.search(text))
        if market_cap is not None:
            info["market_cap"] = market_cap

        return info

    def extract_technology_info(self, text: str) -> dict[str, Any]:
        text_lower = text.lower()
        found = [
            keyword for keyword in self.TECH_KEYWORDS
            if re.search(r"\b" + re.escape(keyword) + r"\b", text_lower)
        ]
        return {"technologies": found} if found else {}

    def extract_news_info(self, text: str) -> dict[str, Any]:
        info: dict[str, Any] = {}

        items = [m.group(0).strip() for m in self.NEWS_ITEM_PATTERN.finditer(text)]
        if items:
            info["recent_news"] = items[: self.MAX_NEWS_ITEMS]

        if self.FUNDING_PATTERN.search(text):
            info["has_funding_news"] = True

        return info

    @staticmethod
    def _parse_amount(match: Optional[re.Match]) -> Optional[float]:
        """Convert a (value, unit) match to dollars."""
        if not match:
            return None
        try:
            value = float(match.group(1))
        except ValueError:
            return None
        unit = match.group(2).lower()
        multiplier = 1_000_000_000 if unit in ("billion", "b") else 1_000_000
        return value * multiplier

    @staticmethod
    def _url_has(url: str, hints: tuple[str, ...]) -> bool:
        return any(hint in url for hint in hints)

    @staticmethod
    def _merge(target: dict[str, Any], found: dict[str, Any]):
        """Keep the first value seen for each key across pages."""
        for key, value in found.items():
            target.setdefault(key, value)
