"""Business-signal extraction from filing text using Claude API."""

import asyncio
import json
import logging
from typing import Any, Optional, Sequence

from company_intel.config import settings
from company_intel.errors import ConfigurationError, SignalExtractionError
from company_intel.models import FilingDocument, SIGNAL_CATEGORIES, SignalSummary, StructuredSignals

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert financial and business intelligence analyst extracting comprehensive "
    "signals from SEC filing documents. Extract ONLY factual information with exact citations."
)

DOCUMENT_SEPARATOR = "\n\n---\n\n"

SECTION_PROMPTS = {
    "financial_metrics": """
FINANCIAL METRICS - Extract exact numbers from financial statements and tables:
- Revenue (total and by segment) and growth rates (YoY, QoQ)
- Operating income, net income, EBITDA
- Cash flow from operations, free cash flow, cash and cash equivalents
- Total debt, long-term debt, debt ratios
- Capital expenditures by category
- R&D expenses (total and % of revenue)
- Interest expense, working capital and current ratio
""",
    "projects_programs": """
PROJECTS & PROGRAMS - Look for:
- Government contracts (DoD, NASA, DARPA, etc.) and defense programs
- Commercial partnerships and joint ventures
- Product development and manufacturing programs
- Certification and compliance programs
- Research collaborations and technology licensing deals
""",
    "technology_signals": """
TECHNOLOGY SIGNALS - Identify:
- Digital transformation, AI/ML and cloud computing initiatives
- Automation, robotics, IoT and sensor networks
- Cybersecurity investments and software platform development
- Additive manufacturing, computational design, simulation and modeling
- Data analytics platforms
""",
    "business_challenges": """
BUSINESS CHALLENGES - Extract:
- Supply chain disruptions and cost inflation pressures
- Regulatory compliance issues and geopolitical risks
- Cybersecurity threats and talent acquisition challenges
- Competitive pressures and market volatility impacts
- Operational inefficiencies and quality control issues
""",
    "strategic_priorities": """
STRATEGIC PRIORITIES - Look for:
- Growth strategies, market expansion and product innovation roadmaps
- Operational excellence and cost reduction programs
- Digital transformation plans, sustainability and ESG goals
- Talent development, M&A strategies and capital allocation priorities
""",
    "organizational_changes": """
ORGANIZATIONAL CHANGES - Identify:
- Leadership appointments and departures, board changes
- Restructuring, headcount changes and layoffs
- Facility openings, closures or consolidations
- Strategic hires and executive compensation changes
""",
    "timing_urgency": """
TIMING & URGENCY - Extract:
- "Immediate", "critical", "urgent" priorities
- Quarterly and annual targets, multi-year plans, milestone dates
- Accelerated, delayed or cancelled programs and implementation schedules
""",
}

EXTRACTION_PROMPT = """Analyze the following SEC filing documents for {company_name} ({ticker}) and extract comprehensive business intelligence signals.

CRITICAL INSTRUCTIONS:
1. Extract ALL numerical data from financial tables with exact values and units
2. Identify EVERY project, program, contract, and initiative mentioned
3. Extract ALL technology investments, digital initiatives, and modernization efforts
4. Capture ALL business challenges, risks, and operational issues
5. Identify ALL strategic priorities and timing indicators
6. Extract organizational changes and leadership updates
{sections}
For EVERY signal provide:
1. Exact quote from the document
2. Numerical value if mentioned (with units)
3. Context or section where found
4. Timeline or urgency indicators

Return a single JSON object with this shape:
{{
    "financial_metrics": {{}},
    "projects_programs": [{{"name": "", "type": "", "description": "", "status": "", "citation": {{"quote": "", "section": "", "document": ""}}}}],
    "technology_signals": [{{"category": "", "description": "", "status": "", "citation": {{"quote": "", "section": "", "document": ""}}}}],
    "business_challenges": [{{"category": "", "description": "", "impact": "high|medium|low", "citation": {{"quote": "", "section": "", "document": ""}}}}],
    "strategic_priorities": [{{"category": "", "description": "", "citation": {{"quote": "", "section": "", "document": ""}}}}],
    "organizational_changes": [{{"type": "", "description": "", "impact": "high|medium|low", "citation": {{"quote": "", "section": "", "document": ""}}}}],
    "timing_urgency": [{{"priority": "", "description": "", "citation": {{"quote": "", "section": "", "document": ""}}}}],
    "summary": {{
        "financial_health_score": 0-100,
        "technology_readiness_score": 0-100,
        "urgency_score": 0-100,
        "opportunity_score": 0-100,
        "key_findings": [],
        "red_flags": [],
        "opportunities": [],
        "recommended_approach": ""
    }}
}}

Focus on signals that indicate technology investment readiness, operational challenges requiring solutions, budget availability for new initiatives and urgent business needs.

Return the JSON object exactly as specified. Do not wrap in markdown."""


def build_document_text(documents: Sequence[FilingDocument], limit: int) -> str:
    """Join documents with provenance headers, truncating to ``limit`` characters."""
    combined = DOCUMENT_SEPARATOR.join(
        f"DOCUMENT: {doc.title}\nURL: {doc.url}\nDATE: {doc.date or 'Unknown'}\n\n{doc.content}"
        for doc in documents
    )
    if len(combined) > limit:
        return combined[:limit] + "..."
    return combined


def extract_json_object(text: str) -> dict:
    """Parse the first balanced ``{...}`` block in ``text``.

    Braces inside JSON strings are ignored. Raises SignalExtractionError if no
    block is found or it does not parse to an object.
    """
    start = (text or "").find("{")
    if start == -1:
        raise SignalExtractionError("No JSON found in response")

    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(text[start:i + 1])
                except json.JSONDecodeError as e:
                    raise SignalExtractionError(f"Invalid JSON in response: {e}")

    raise SignalExtractionError("Unbalanced JSON object in response")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _get(data: dict, key: str) -> Any:
    """Look a key up in snake_case, falling back to camelCase."""
    if key in data:
        return data[key]
    return data.get(_camel(key))


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, list) else []


def _as_score(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def normalize_signals(
    parsed: dict,
    company_name: str,
    ticker: str,
    document_urls: list[str],
) -> StructuredSignals:
    """Apply defaults to a parsed response: lists to [], scores to 0."""
    categories = {
        name: [item for item in _as_list(_get(parsed, name)) if isinstance(item, dict)]
        for name in SIGNAL_CATEGORIES
    }

    summary = _get(parsed, "summary")
    summary = summary if isinstance(summary, dict) else {}

    metrics = _get(parsed, "financial_metrics")

    return StructuredSignals(
        company_name=company_name,
        ticker=ticker,
        documents_analyzed=document_urls,
        financial_metrics=metrics if isinstance(metrics, dict) else {},
        **categories,
        summary=SignalSummary(
            total_signals=sum(len(items) for items in categories.values()),
            financial_health_score=_as_score(_get(summary, "financial_health_score")),
            technology_readiness_score=_as_score(_get(summary, "technology_readiness_score")),
            urgency_score=_as_score(_get(summary, "urgency_score")),
            opportunity_score=_as_score(_get(summary, "opportunity_score")),
            key_findings=[str(x) for x in _as_list(_get(summary, "key_findings"))],
            red_flags=[str(x) for x in _as_list(_get(summary, "red_flags"))],
            opportunities=[str(x) for x in _as_list(_get(summary, "opportunities"))],
            recommended_approach=str(_get(summary, "recommended_approach") or "Standard approach recommended"),
        ),
    )


class SignalExtractor:
    """Extract categorized business signals from downloaded filings."""

    name = "sec_signals"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        content_limit: Optional[int] = None,
    ):
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.llm_model
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.content_limit = content_limit or settings.signal_content_limit
        self._client = None

    @property
    def client(self):
        """Lazy-load Anthropic client."""
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("ANTHROPIC_API_KEY not configured")
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def build_prompt(self, company_name: str, ticker: str, include: Optional[set[str]] = None) -> str:
        """Instruction template; ``include`` limits which sections are requested."""
        sections = "".join(
            text for section, text in SECTION_PROMPTS.items()
            if include is None or section in include
        )
        return EXTRACTION_PROMPT.format(company_name=company_name, ticker=ticker, sections=sections)

    async def extract(
        self,
        company_name: str,
        ticker: str,
        documents: Sequence[FilingDocument],
        include: Optional[set[str]] = None,
    ) -> StructuredSignals:
        """Extract signals; raises SignalExtractionError on any failure."""
        content = build_document_text(documents, self.content_limit)
        prompt = self.build_prompt(company_name, ticker, include)
        user_message = f"{prompt}\n\nDOCUMENTS TO ANALYZE:\n{content}"

        logger.info(f"Extracting signals for {company_name} ({ticker}) from {len(documents)} documents")

        try:
            text = await asyncio.to_thread(self._call_api, SYSTEM_PROMPT, user_message)
        except SignalExtractionError:
            raise
        except Exception as e:
            raise SignalExtractionError(f"SEC signals extraction failed: {e}") from e

        if not text:
            raise SignalExtractionError("No content returned from the analysis model")

        parsed = extract_json_object(text)
        return normalize_signals(parsed, company_name, ticker, [doc.url for doc in documents])

    def _call_api(self, system: str, prompt: str) -> str:
        """Call Claude API synchronously and return the response text."""
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system,
            messages=[
                {"role": "user", "content": prompt}
            ],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
