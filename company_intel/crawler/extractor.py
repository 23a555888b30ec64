"""Filing and page content extraction."""

import logging
import re
from pathlib import PurePosixPath
from typing import Optional

from bs4 import BeautifulSoup, Comment

logger = logging.getLogger(__name__)


class ContentExtractor:
    """Extract clean text content from filing documents and HTML pages."""

    # Tags to remove entirely
    REMOVE_TAGS = [
        "script", "style", "noscript", "iframe", "svg",
        "head", "ix:header",
    ]

    # Block-level tags that should break lines
    BLOCK_TAGS = [
        "br", "p", "div", "tr", "table", "li",
        "h1", "h2", "h3", "h4", "h5", "h6",
    ]

    HTML_EXTENSIONS = {".htm", ".html", ".xhtml", ""}

    def to_text(self, content: str, document_ref: Optional[str] = None) -> str:
        """Convert a downloaded document to plain text based on its file type."""
        if not content:
            return ""

        ext = PurePosixPath(document_ref or "").suffix.lower()
        if ext in self.HTML_EXTENSIONS or self._looks_like_html(content):
            return self.extract(content, document_ref)
        return self._clean_text(content)

    def extract(self, html: str, url: Optional[str] = None) -> str:
        """Extract clean text from HTML."""
        if not html:
            return ""

        try:
            soup = BeautifulSoup(html, "lxml")

            # Remove unwanted tags
            for tag in self.REMOVE_TAGS:
                for element in soup.find_all(tag):
                    element.decompose()

            # Remove comments
            for comment in soup.find_all(string=lambda t: isinstance(t, Comment)):
                comment.extract()

            body = soup.find("body") or soup
            return self._clean_text(self._extract_text(body))

        except Exception as e:
            logger.warning(f"Failed to extract content from {url}: {e}")
            return ""

    @staticmethod
    def _looks_like_html(content: str) -> bool:
        head = content[:500].lower()
        return "<html" in head or "<!doctype html" in head

    def _extract_text(self, element) -> str:
        """Extract text from an element."""
        texts = []

        for descendant in element.descendants:
            if isinstance(descendant, str):
                text = descendant.strip()
                if text:
                    texts.append(text)
            elif descendant.name in self.BLOCK_TAGS:
                texts.append("\n")

        return " ".join(texts)

    def _clean_text(self, text: str) -> str:
        """Clean up extracted text."""
        # Normalize whitespace but keep line breaks
        text = text.replace("\xa0", " ")
        text = re.sub(r"[ \t\r\f\v]+", " ", text)

        # Fix newlines
        text = re.sub(r" *\n *", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)

        return text.strip()
