"""CrustData firmographic API connector."""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from company_intel.config import settings
from company_intel.enrich.identifier import normalize_domain
from company_intel.errors import ConfigurationError, ProfileNotFoundError, ProviderError
from company_intel.models import OrganizationProfile
from .base import ProfileProvider

logger = logging.getLogger(__name__)


class CrustDataClient(ProfileProvider):
    """Fetch base company profiles from the CrustData screener API."""

    name = "crustdata"

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or settings.crustdata_api_key
        if not self.api_key:
            raise ConfigurationError("CRUSTDATA_API_KEY not configured")
        self.base_url = (base_url or settings.crustdata_base_url).rstrip("/")

    async def get_company(self, domain: str) -> OrganizationProfile:
        """Look up a company by its web domain."""
        clean = normalize_domain(domain)
        if not clean:
            raise ValueError("Domain is required")

        data = await self._request("/screener/company", {"company_domain": clean})
        return self._parse_company(data, identifier=clean)

    async def get_company_by_name(self, name: str) -> OrganizationProfile:
        """Look up a company by its legal or common name."""
        if not name or not name.strip():
            raise ValueError("Company name is required")

        data = await self._request("/screener/company", {"company_name": name.strip()})
        return self._parse_company(data, identifier=name.strip())

    async def fetch_profile(self, identifier: str, is_domain: bool = True) -> OrganizationProfile:
        """Fetch by domain, retrying once by name if the domain lookup fails."""
        if not is_domain:
            return await self.get_company_by_name(identifier)

        try:
            return await self.get_company(identifier)
        except Exception as domain_error:
            logger.warning(f"Domain search failed for {identifier}, trying name search as fallback")
            try:
                return await self.get_company_by_name(identifier)
            except Exception as name_error:
                raise ProfileNotFoundError(
                    f"Both domain and name search failed for {identifier}. "
                    f"Domain error: {domain_error}. Name error: {name_error}"
                ) from name_error

    async def search_companies(self, filters: dict[str, Any], limit: int = 50) -> list[OrganizationProfile]:
        """Search the screener with filters such as industry or technologies."""
        params = {**filters, "limit": limit}
        data = await self._request("/screener/companies", params)

        rows = (data.get("data") if isinstance(data, dict) else None) or []
        profiles = []
        for row in rows:
            try:
                profiles.append(self._profile_from_row(row, identifier=row.get("domain") or ""))
            except (ValidationError, AttributeError) as e:
                logger.debug(f"Skipping malformed CrustData row: {e}")
        return profiles

    async def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        """GET an endpoint; list values become repeated query parameters."""
        query: list[tuple[str, str]] = []
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                query.extend((key, str(item)) for item in value)
            else:
                query.append((key, str(value)))

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(settings.read_timeout, connect=settings.connect_timeout)
            ) as client:
                response = await client.get(
                    f"{self.base_url}{endpoint}",
                    params=query,
                    headers={
                        "Authorization": f"Token {self.api_key}",
                        "Accept": "application/json",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException:
            raise ProviderError(self.name, f"request to {endpoint} timed out")
        except httpx.RequestError as e:
            raise ProviderError(self.name, f"request to {endpoint} failed: {e}")

        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                f"API request failed: {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON response: {e}")

    def _parse_company(self, data: Any, identifier: str) -> OrganizationProfile:
        row = data.get("data") if isinstance(data, dict) else None
        if not row:
            raise ProfileNotFoundError(f"No CrustData profile for {identifier}")

        try:
            return self._profile_from_row(row, identifier=identifier)
        except ValidationError as e:
            raise ProviderError(self.name, f"unexpected profile shape for {identifier}: {e}")

    @staticmethod
    def _profile_from_row(row: dict, identifier: str) -> OrganizationProfile:
        fields = dict(row)
        fields.pop("identifier", None)
        if fields.get("domain"):
            fields["domain"] = normalize_domain(fields["domain"])
        return OrganizationProfile(identifier=identifier, **fields)


def extract_enrichment_fields(profile: OrganizationProfile) -> dict[str, Any]:
    """Flatten a firmographic profile into enrichment fields."""
    fields: dict[str, Any] = {}

    # Basic company information
    for key, value in (
        ("company_name", profile.name),
        ("domain", profile.domain),
        ("description", profile.description),
        ("industry", profile.industry),
        ("sector", profile.sector),
        ("employee_count", profile.employee_count),
        ("revenue", profile.revenue),
        ("founded_year", profile.founded_year),
    ):
        if value:
            fields[key] = value

    # Location information
    if profile.headquarters:
        hq = profile.headquarters
        for key, value in (
            ("headquarters_city", hq.city),
            ("headquarters_state", hq.state),
            ("headquarters_country", hq.country),
            ("headquarters_address", hq.address),
        ):
            if value:
                fields[key] = value

    if profile.social_media:
        for platform in ("linkedin", "twitter", "facebook", "instagram"):
            url = getattr(profile.social_media, platform)
            if url:
                fields[f"{platform}_url"] = url

    if profile.technologies:
        fields["technologies"] = list(profile.technologies)

    if profile.funding:
        funding = profile.funding
        if funding.total_funding:
            fields["total_funding"] = funding.total_funding
        if funding.last_funding_date:
            fields["last_funding_date"] = funding.last_funding_date
        if funding.last_funding_round:
            fields["last_funding_round"] = funding.last_funding_round
        if funding.investors:
            fields["investors"] = list(funding.investors)

    # Website metrics
    if profile.metrics:
        for key in ("alexa_rank", "monthly_visitors", "bounce_rate", "page_views_per_visit", "time_on_site"):
            value = getattr(profile.metrics, key)
            if value:
                fields[key] = value

    if profile.contact_info:
        for key in ("email", "phone", "address"):
            value = getattr(profile.contact_info, key)
            if value:
                fields[f"contact_{key}"] = value

    fields["crustdata_last_updated"] = profile.last_updated
    fields["enrichment_source"] = "crustdata"

    return fields
