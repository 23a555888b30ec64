"""Firmographic company profile models."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Headquarters(BaseModel):
    """Headquarters location as reported by the firmographic provider."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None

    def display(self) -> str:
        return ", ".join(filter(None, [self.city, self.state, self.country])) or (self.address or "")


class SocialMedia(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None


class FundingHistory(BaseModel):
    """Funding rounds summary."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total_funding: Optional[float] = None
    last_funding_date: Optional[str] = None
    last_funding_round: Optional[str] = None
    investors: list[str] = Field(default_factory=list)


class WebMetrics(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    alexa_rank: Optional[int] = None
    monthly_visitors: Optional[int] = None
    bounce_rate: Optional[float] = None
    page_views_per_visit: Optional[float] = None
    time_on_site: Optional[float] = None


class ContactInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class OrganizationProfile(BaseModel):
    """Base company profile fetched from the firmographic provider.

    Profiles are immutable once fetched; the orchestrator owns one for the
    duration of a single enrichment request.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    identifier: str = Field(default="", description="Domain or name the profile was looked up by")
    id: Optional[str] = None
    name: str = Field(description="Company name")
    domain: Optional[str] = Field(default=None, description="Primary domain (normalized)")
    description: Optional[str] = None
    industry: Optional[str] = None
    sector: Optional[str] = None
    employee_count: Optional[int] = None
    revenue: Optional[float] = None
    founded_year: Optional[int] = None
    headquarters: Optional[Headquarters] = None
    social_media: Optional[SocialMedia] = None
    technologies: list[str] = Field(default_factory=list)
    funding: Optional[FundingHistory] = None
    metrics: Optional[WebMetrics] = None
    contact_info: Optional[ContactInfo] = None
    last_updated: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if value is not None else None

    @field_validator("headquarters", mode="before")
    @classmethod
    def _coerce_headquarters(cls, value):
        # Some provider records carry a bare address string instead of an object
        if isinstance(value, str):
            return {"address": value}
        return value

    @field_validator("technologies", mode="before")
    @classmethod
    def _coerce_technologies(cls, value):
        return value or []
