"""Tests for filing signal extraction."""

import asyncio
import json

import pytest

from company_intel.connectors.mock import MockSignalExtractor, default_signal_response
from company_intel.enrich.signals import (
    SECTION_PROMPTS,
    SignalExtractor,
    build_document_text,
    extract_json_object,
    normalize_signals,
)
from company_intel.errors import ConfigurationError, SignalExtractionError
from company_intel.models import FilingDocument, FilingRecord


def make_document(content: str = "Revenue grew.", form: str = "10-K") -> FilingDocument:
    filing = FilingRecord(form_type=form, accession_id="0000320193-24-000123", primary_document_ref="doc.htm")
    return FilingDocument(
        filing=filing,
        url="https://www.sec.gov/Archives/edgar/data/320193/000032019324000123/doc.htm",
        title=f"{form} - 2024-09-28",
        date="2024-09-28",
        content=content,
    )


class TestExtractJsonObject:
    """Tests for pulling the JSON object out of a model reply."""

    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_surrounding_prose(self):
        text = 'Here is the analysis:\n{"summary": {"urgency_score": 40}}\nLet me know.'
        assert extract_json_object(text) == {"summary": {"urgency_score": 40}}

    def test_braces_inside_strings(self):
        text = '{"quote": "guidance of {approx} $5B", "nested": {"x": "}"}} trailing }'
        parsed = extract_json_object(text)
        assert parsed["quote"] == "guidance of {approx} $5B"
        assert parsed["nested"] == {"x": "}"}

    def test_escaped_quotes(self):
        text = r'{"quote": "the \"Company\" said {no}"}'
        assert extract_json_object(text)["quote"] == 'the "Company" said {no}'

    def test_no_json(self):
        with pytest.raises(SignalExtractionError, match="No JSON"):
            extract_json_object("I could not analyze these documents.")

    def test_invalid_json(self):
        with pytest.raises(SignalExtractionError, match="Invalid JSON"):
            extract_json_object("{summary: missing quotes}")

    def test_unbalanced(self):
        with pytest.raises(SignalExtractionError):
            extract_json_object('{"a": {"b": 1}')


class TestNormalizeSignals:
    """Tests for defaulting parsed responses."""

    def test_defaults_for_missing_fields(self):
        signals = normalize_signals({}, "Apple Inc", "AAPL", [])

        assert signals.projects_programs == []
        assert signals.timing_urgency == []
        assert signals.financial_metrics == {}
        assert signals.summary.total_signals == 0
        assert signals.summary.opportunity_score == 0.0
        assert signals.summary.recommended_approach == "Standard approach recommended"

    def test_counts_signals_across_categories(self):
        signals = normalize_signals(default_signal_response(), "Apple Inc", "AAPL", ["u1"])

        assert signals.summary.total_signals == 3
        assert signals.summary.financial_health_score == 90
        assert signals.projects_programs[0]["citation"]["section"] == "Item 1"
        assert signals.documents_analyzed == ["u1"]

    def test_accepts_camel_case_keys(self):
        parsed = {
            "technologySignals": [{"category": "cloud", "description": "Migration"}],
            "summary": {"opportunityScore": "75", "keyFindings": ["Cloud migration"]},
        }
        signals = normalize_signals(parsed, "Acme", "ACME", [])

        assert len(signals.technology_signals) == 1
        assert signals.summary.opportunity_score == 75.0
        assert signals.summary.key_findings == ["Cloud migration"]

    def test_bad_values_are_defaulted(self):
        parsed = {
            "projects_programs": "not a list",
            "business_challenges": [{"category": "cost"}, "stray string"],
            "summary": {"urgency_score": "high"},
        }
        signals = normalize_signals(parsed, "Acme", "ACME", [])

        assert signals.projects_programs == []
        assert signals.business_challenges == [{"category": "cost"}]
        assert signals.summary.urgency_score == 0.0


class TestDocumentText:
    """Tests for prompt document assembly."""

    def test_includes_provenance_headers(self):
        text = build_document_text([make_document("Body text")], limit=10_000)
        assert text.startswith("DOCUMENT: 10-K - 2024-09-28\nURL: https://www.sec.gov/")
        assert "DATE: 2024-09-28" in text
        assert text.endswith("Body text")

    def test_truncates_to_limit(self):
        text = build_document_text([make_document("x" * 500)], limit=100)
        assert len(text) == 103
        assert text.endswith("...")

    def test_multiple_documents_are_separated(self):
        text = build_document_text([make_document("first"), make_document("second", "8-K")], limit=10_000)
        assert text.index("first") < text.index("DOCUMENT: 8-K")


class TestSignalExtractor:
    """Tests for the extraction adapter with a canned model reply."""

    def test_extract(self):
        extractor = MockSignalExtractor()
        signals = asyncio.run(extractor.extract("Apple Inc", "AAPL", [make_document()]))

        assert signals.company_name == "Apple Inc"
        assert signals.ticker == "AAPL"
        assert signals.summary.total_signals == 3
        assert len(extractor.prompts) == 1
        assert "DOCUMENTS TO ANALYZE" in extractor.prompts[0]
        assert "AAPL" in extractor.prompts[0]

    def test_reply_wrapped_in_prose(self):
        reply = "Sure.\n" + json.dumps({"summary": {"urgency_score": 55}}) + "\nDone."
        signals = asyncio.run(MockSignalExtractor(reply).extract("Acme", "ACME", [make_document()]))
        assert signals.summary.urgency_score == 55

    def test_api_error_is_wrapped(self):
        extractor = MockSignalExtractor(error=RuntimeError("overloaded"))
        with pytest.raises(SignalExtractionError, match="overloaded"):
            asyncio.run(extractor.extract("Acme", "ACME", [make_document()]))

    def test_unparseable_reply_raises(self):
        extractor = MockSignalExtractor("no structured output today")
        with pytest.raises(SignalExtractionError):
            asyncio.run(extractor.extract("Acme", "ACME", [make_document()]))

    def test_empty_reply_raises(self):
        extractor = MockSignalExtractor("")
        with pytest.raises(SignalExtractionError):
            asyncio.run(extractor.extract("Acme", "ACME", [make_document()]))

    def test_prompt_sections_can_be_limited(self):
        extractor = SignalExtractor(api_key="test")
        full = extractor.build_prompt("Acme", "ACME")
        partial = extractor.build_prompt("Acme", "ACME", include={"timing_urgency"})

        assert len(partial) < len(full)
        assert SECTION_PROMPTS["timing_urgency"] in partial

    def test_missing_key_is_configuration_error(self, monkeypatch):
        from company_intel.config import settings

        monkeypatch.setattr(settings, "anthropic_api_key", "")
        extractor = SignalExtractor()
        with pytest.raises(ConfigurationError):
            extractor.client
