"""Tests for page and filing text extraction."""

import pytest

from company_intel.crawler.extractor import ContentExtractor
from company_intel.enrich.parser import PageInfoParser
from company_intel.models import ScrapeResult


def make_page(path: str, text: str, success: bool = True) -> ScrapeResult:
    return ScrapeResult(url=f"https://example.com/{path}", text=text, success=success)


class TestPageInfoParser:
    """Tests for rule-based extraction from scraped pages."""

    def test_extract_employee_count(self):
        parser = PageInfoParser()
        result = parser.extract_basic_info("Join our team of 1,250 employees worldwide.")
        assert result["employee_count"] == 1250

    def test_extract_founded_year(self):
        parser = PageInfoParser()
        assert parser.extract_basic_info("Founded in 1998 by two engineers.") == {}
        assert parser.extract_basic_info("Founded: 1998")["founded_year"] == 1998

    def test_extract_headquarters(self):
        parser = PageInfoParser()
        result = parser.extract_basic_info("Headquarters: Arlington, Virginia. Offices worldwide.")
        assert result["headquarters"] == "Arlington, Virginia"

    def test_extract_revenue_billions(self):
        parser = PageInfoParser()
        result = parser.extract_financial_info("Annual revenue: $77.8 billion in 2024.")
        assert result["revenue"] == pytest.approx(77.8e9)

    def test_extract_market_cap_millions(self):
        parser = PageInfoParser()
        result = parser.extract_financial_info("Market cap $450M as of close.")
        assert result["market_cap"] == pytest.approx(450e6)

    def test_financial_info_without_amounts(self):
        parser = PageInfoParser()
        assert parser.extract_financial_info("Revenue grew strongly.") == {}

    def test_extract_technologies_whole_words(self):
        parser = PageInfoParser()
        result = parser.extract_technology_info("We build software on AWS with machine learning. Email us.")
        assert "software" in result["technologies"]
        assert "aws" in result["technologies"]
        assert "machine learning" in result["technologies"]
        # "ai" must not match inside "email"
        assert "ai" not in result["technologies"]

    def test_no_technologies(self):
        parser = PageInfoParser()
        assert parser.extract_technology_info("We make furniture.") == {}

    def test_extract_news(self):
        parser = PageInfoParser()
        text = "2024-05-07 Company opens new plant. 2024-06-01 Raised Series B funding."
        result = parser.extract_news_info(text)
        assert result["recent_news"] == [
            "2024-05-07 Company opens new plant.",
            "2024-06-01 Raised Series B funding.",
        ]
        assert result["has_funding_news"] is True

    def test_parse_pages_routes_by_url(self):
        parser = PageInfoParser()
        profile = parser.parse_pages([
            make_page("about", "Founded: 2001. 300 employees."),
            make_page("investor-relations", "Revenue: $2.5 billion"),
            make_page("products", "An API platform for robotics."),
            make_page("careers", "Founded: 1900", success=False),
        ])

        assert profile.basic_info == {"employee_count": 300, "founded_year": 2001}
        assert profile.financial_info["revenue"] == pytest.approx(2.5e9)
        assert profile.technology_info["technologies"] == ["robotics", "api", "platform"]
        assert len(profile.scraped_pages) == 4

    def test_first_page_value_wins(self):
        parser = PageInfoParser()
        profile = parser.parse_pages([
            make_page("about", "Founded: 2001"),
            make_page("company", "Founded: 1999"),
        ])
        assert profile.basic_info["founded_year"] == 2001


class TestContentExtractor:
    """Tests for HTML and filing content extraction."""

    def test_extract_basic_html(self):
        extractor = ContentExtractor()
        html = "<html><body><p>Hello World</p></body></html>"
        result = extractor.extract(html)
        assert "Hello World" in result

    def test_extract_removes_scripts(self):
        extractor = ContentExtractor()
        html = """
        <html>
        <body>
            <p>Visible content</p>
            <script>console.log('hidden');</script>
        </body>
        </html>
        """
        result = extractor.extract(html)
        assert "Visible content" in result
        assert "console.log" not in result

    def test_extract_removes_styles(self):
        extractor = ContentExtractor()
        html = """
        <html>
        <head><style>.hidden { display: none; }</style></head>
        <body><p>Content here</p></body>
        </html>
        """
        result = extractor.extract(html)
        assert "Content here" in result
        assert ".hidden" not in result

    def test_block_tags_break_lines(self):
        extractor = ContentExtractor()
        html = "<html><body><p>Item 1. Business</p><p>Item 1A. Risk Factors</p></body></html>"
        result = extractor.extract(html)
        assert "Item 1. Business\n" in result
        assert "Item 1A. Risk Factors" in result

    def test_to_text_plain_document(self):
        extractor = ContentExtractor()
        text = "ANNUAL REPORT\xa0\xa0PURSUANT   TO SECTION 13\n\n\n\nPART I"
        assert extractor.to_text(text, "filing.txt") == "ANNUAL REPORT PURSUANT TO SECTION 13\n\nPART I"

    def test_to_text_htm_document(self):
        extractor = ContentExtractor()
        html = "<html><body><div>Net sales increased</div></body></html>"
        assert extractor.to_text(html, "aapl-20240928.htm") == "Net sales increased"

    def test_to_text_empty(self):
        extractor = ContentExtractor()
        assert extractor.to_text("", "doc.htm") == ""
