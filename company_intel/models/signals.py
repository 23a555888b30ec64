"""Structured business signals extracted from filing text."""

from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field

SIGNAL_CATEGORIES = (
    "projects_programs",
    "technology_signals",
    "business_challenges",
    "strategic_priorities",
    "organizational_changes",
    "timing_urgency",
)


class SignalSummary(BaseModel):
    """Roll-up scores and findings for one extraction run."""

    total_signals: int = 0
    financial_health_score: float = 0.0
    technology_readiness_score: float = 0.0
    urgency_score: float = 0.0
    opportunity_score: float = 0.0
    key_findings: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    recommended_approach: str = "Standard approach recommended"


class StructuredSignals(BaseModel):
    """Categorized signals, each list item carrying a quote and section citation."""

    company_name: str
    ticker: str
    analysis_date: datetime = Field(default_factory=datetime.utcnow)
    documents_analyzed: list[str] = Field(default_factory=list)

    financial_metrics: dict[str, Any] = Field(default_factory=dict)
    projects_programs: list[dict[str, Any]] = Field(default_factory=list)
    technology_signals: list[dict[str, Any]] = Field(default_factory=list)
    business_challenges: list[dict[str, Any]] = Field(default_factory=list)
    strategic_priorities: list[dict[str, Any]] = Field(default_factory=list)
    organizational_changes: list[dict[str, Any]] = Field(default_factory=list)
    timing_urgency: list[dict[str, Any]] = Field(default_factory=list)

    summary: SignalSummary = Field(default_factory=SignalSummary)
