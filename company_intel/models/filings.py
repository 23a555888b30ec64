"""Regulatory filing models."""

from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class FilingRecord(BaseModel):
    """A single filing from an entity's submissions feed.

    ``is_excluded`` is decided once by the classifier; the model is frozen so
    downstream stages can only honor it.
    """

    model_config = ConfigDict(frozen=True)

    form_type: str = Field(description="Form type, e.g. 10-K, 8-K, 4")
    accession_id: str = Field(description="Accession number, e.g. 0000320193-24-000093")
    primary_document_ref: str = Field(description="Primary document file name")
    report_date: Optional[date] = None
    filing_date: Optional[date] = None
    description: Optional[str] = None
    is_excluded: bool = False

    @property
    def effective_date(self) -> Optional[date]:
        return self.report_date or self.filing_date


class FilingDocument(BaseModel):
    """Downloaded text of a non-excluded filing, with provenance."""

    filing: FilingRecord
    url: str
    title: str
    date: Optional[str] = None
    content: str = ""
