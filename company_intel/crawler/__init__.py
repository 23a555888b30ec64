"""HTTP fetching and document text extraction."""

from .fetcher import Fetcher, FetchResult
from .extractor import ContentExtractor

__all__ = ["Fetcher", "FetchResult", "ContentExtractor"]
