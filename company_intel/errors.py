"""Exception types raised by collaborators and pipeline stages."""

from typing import Optional


class CompanyIntelError(Exception):
    """Base class for all enrichment errors."""


class ConfigurationError(CompanyIntelError):
    """A required setting (usually an API key) is missing."""


class ProviderError(CompanyIntelError):
    """An external provider call failed (transport error or non-2xx status)."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class ProfileNotFoundError(CompanyIntelError):
    """The firmographic provider has no profile for the identifier."""


class SignalExtractionError(CompanyIntelError):
    """The text-analysis response could not be turned into structured signals."""
