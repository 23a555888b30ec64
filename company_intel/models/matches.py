"""Confidence-scored match types shared by discovery and identification."""

import re
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TICKER_FORMAT = re.compile(r"^[A-Z0-9]{1,6}(?:[.\-][A-Z0-9]{1,3})?$")


class TickerMethod(str, Enum):
    """Discovery strategy that produced a ticker candidate."""

    GOOGLE_FINANCE = "google_finance"
    YAHOO_FINANCE = "yahoo_finance"
    FINANCIAL_MODELING_PREP = "financial_modeling_prep"
    TICKER_KEYWORD_SEARCH = "ticker_keyword_search"
    MULTI_QUERY_SEARCH = "multi_query_search"
    NORTH_AMERICAN_EXCHANGE = "north_american_exchange"
    EUROPEAN_EXCHANGE = "european_exchange"
    ASIAN_EXCHANGE = "asian_exchange"
    INVESTOR_RELATIONS = "investor_relations"
    MANUAL_MAPPING = "manual_mapping"


class MatchProvenance(str, Enum):
    """Where a public-company match came from."""

    OVERRIDE = "override"
    DIRECTORY_MATCH = "directory-match"


def is_valid_ticker(value: str) -> bool:
    return bool(TICKER_FORMAT.match(value or ""))


class TickerCandidate(BaseModel):
    """A ticker proposed by exactly one discovery strategy."""

    model_config = ConfigDict(frozen=True)

    ticker: str = Field(description="Exchange ticker, e.g. AAPL or MOG.A")
    confidence: float = Field(ge=0.0, le=1.0, description="Strategy-intrinsic confidence")
    method: TickerMethod
    exchange: Optional[str] = None
    company_name: str = ""
    source: Optional[str] = Field(default=None, description="Evidence URL")

    @field_validator("ticker")
    @classmethod
    def _check_ticker(cls, value: str) -> str:
        value = value.strip().upper()
        if not is_valid_ticker(value):
            raise ValueError(f"Invalid ticker format: {value!r}")
        return value


class DirectoryEntry(BaseModel):
    """One row of the regulator's bulk {regulatory id, ticker, title} table."""

    model_config = ConfigDict(frozen=True)

    regulatory_id: str
    ticker: str
    title: str


class PublicCompanyMatch(BaseModel):
    """Result of public-company identification.

    A negative result always has zero confidence and carries neither a
    ticker nor a regulatory identifier.
    """

    model_config = ConfigDict(frozen=True)

    is_public: bool
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    matched_title: Optional[str] = None
    ticker: Optional[str] = None
    regulatory_id: Optional[str] = Field(default=None, description="10-digit zero-padded identifier")
    provenance: Optional[MatchProvenance] = None

    @model_validator(mode="after")
    def _check_negative(self):
        if not self.is_public and (self.ticker or self.regulatory_id or self.confidence):
            raise ValueError("A non-public match cannot carry a ticker, identifier or confidence")
        return self

    @classmethod
    def not_public(cls) -> "PublicCompanyMatch":
        return cls(is_public=False, confidence=0.0)
