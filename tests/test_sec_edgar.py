"""Tests for the SEC EDGAR connector."""

import asyncio

import pytest

from company_intel.config import settings
from company_intel.connectors.mock import MockSECClient
from company_intel.connectors.sec_edgar import SECEdgarClient
from company_intel.errors import ProviderError


class FakeFetcher:
    """Serves canned JSON and text bodies by URL."""

    def __init__(self, json_bodies=None, text_bodies=None):
        self.json_bodies = json_bodies or {}
        self.text_bodies = text_bodies or {}
        self.requested: list[str] = []

    async def fetch_json(self, url, **kwargs):
        self.requested.append(url)
        if url not in self.json_bodies:
            raise ProviderError("sec", f"request failed for {url}: 404", status_code=404)
        return self.json_bodies[url]

    async def fetch_text(self, url, **kwargs):
        self.requested.append(url)
        if url not in self.text_bodies:
            raise ProviderError("sec", f"request failed for {url}: 404", status_code=404)
        return self.text_bodies[url]


def make_submissions() -> dict:
    return {
        "cik": "320193",
        "filings": {
            "recent": {
                "form": ["4", "10-K", "8-K"],
                "accessionNumber": ["0000320193-24-000120", "0000320193-24-000123", "0000320193-24-000069"],
                "primaryDocument": ["wk-form4.xml", "aapl-20240928.htm", "aapl-20240502.htm"],
                "reportDate": ["", "2024-09-28", "2024-05-02"],
                "filingDate": ["2024-11-15", "2024-11-01", "2024-05-02"],
                "primaryDocDescription": ["FORM 4", "10-K", "8-K"],
            }
        },
    }


class TestDirectory:
    """Tests for the bulk ticker table."""

    def test_parse_index_keyed_object(self):
        data = {
            "0": {"cik_str": 320193, "ticker": "aapl", "title": "Apple Inc."},
            "1": {"cik_str": 12927, "ticker": "BA", "title": "BOEING CO"},
        }
        entries = SECEdgarClient.parse_directory(data)

        assert [e.ticker for e in entries] == ["AAPL", "BA"]
        assert entries[0].regulatory_id == "0000320193"

    def test_parse_skips_malformed_rows(self):
        data = [
            {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."},
            {"ticker": "NOCIK", "title": "Missing"},
            {"cik_str": "abc", "ticker": "BAD", "title": "Bad CIK"},
        ]
        assert [e.ticker for e in SECEdgarClient.parse_directory(data)] == ["AAPL"]

    def test_directory_is_memoized(self):
        client = SECEdgarClient(fetcher=FakeFetcher(json_bodies={
            f"{settings.sec_base_url}/files/company_tickers.json": {
                "0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."},
            },
        }))

        async def load_twice():
            await client.load_ticker_directory()
            return await client.load_ticker_directory()

        entries = asyncio.run(load_twice())
        assert len(entries) == 1
        assert len(client.fetcher.requested) == 1


class TestFilings:
    """Tests for the submissions feed and filing archive."""

    def test_recent_filing_rows_pivot(self):
        rows = SECEdgarClient.recent_filing_rows(make_submissions())

        assert len(rows) == 3
        assert rows[1]["form"] == "10-K"
        assert rows[1]["primaryDocument"] == "aapl-20240928.htm"

    def test_recent_filing_rows_empty_feed(self):
        assert SECEdgarClient.recent_filing_rows({}) == []
        assert SECEdgarClient.recent_filing_rows(None) == []

    def test_build_filing_url(self):
        client = SECEdgarClient(fetcher=FakeFetcher())
        url = client.build_filing_url("0000320193", "0000320193-24-000123", "aapl-20240928.htm")
        assert url == (
            f"{settings.sec_base_url}/Archives/edgar/data/320193/000032019324000123/aapl-20240928.htm"
        )

    def test_list_filings_pads_identifier(self):
        fetcher = FakeFetcher(json_bodies={
            f"{settings.sec_data_url}/submissions/CIK0000320193.json": make_submissions(),
        })
        client = SECEdgarClient(fetcher=fetcher)

        filings = asyncio.run(client.list_filings("320193", max_count=2))

        assert [f.form_type for f in filings] == ["4", "10-K"]
        assert filings[0].is_excluded
        assert not filings[1].is_excluded

    def test_list_annual_reports(self):
        filings = asyncio.run(MockSECClient().list_annual_reports("0000320193"))
        assert [f.form_type for f in filings] == ["10-K"]

    def test_download_filings_skips_excluded_and_failures(self):
        base = f"{settings.sec_base_url}/Archives/edgar/data/320193"
        fetcher = FakeFetcher(
            json_bodies={f"{settings.sec_data_url}/submissions/CIK0000320193.json": make_submissions()},
            text_bodies={
                f"{base}/000032019324000123/aapl-20240928.htm": "<html><body><p>Net sales</p></body></html>",
            },
        )
        client = SECEdgarClient(fetcher=fetcher, download_delay=0.0)

        async def run():
            filings = await client.list_filings("320193")
            return await client.download_filings("320193", filings)

        documents = asyncio.run(run())

        assert [d.filing.form_type for d in documents] == ["10-K"]
        assert documents[0].content == "Net sales"
        assert documents[0].title == "10-K - 2024-09-28"
        assert not any("000032019324000120" in url for url in fetcher.requested)

    def test_download_filings_respects_limit(self):
        client = MockSECClient()

        async def run():
            filings = await client.list_filings("0000320193")
            return await client.download_filings("0000320193", filings, max_documents=1)

        documents = asyncio.run(run())
        assert len(documents) == 1
        assert documents[0].filing.form_type == "10-K"

    def test_download_excluded_filing_is_refused(self):
        client = MockSECClient()

        async def run():
            filings = await client.list_filings("0000320193")
            return await client.download_filing("0000320193", filings[0])

        with pytest.raises(ValueError):
            asyncio.run(run())
