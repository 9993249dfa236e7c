import re
from html import unescape

from bs4 import BeautifulSoup

from app.config import settings

ELLIPSIS = "..."


class TextProcessor:
    """Turns extracted HTML into the plain-text fields of a page result:
    text content, word count and excerpt.
    """

    WHITESPACE_PATTERN = re.compile(r"\s+")

    def html_to_text(self, html: str) -> str:
        """Strip HTML tags, scripts, styles and return clean text."""
        if not html:
            return ""
        soup = BeautifulSoup(html, "lxml")

        for tag in soup(["script", "style", "noscript", "template"]):
            tag.decompose()

        text = soup.get_text(separator=" ", strip=True)
        return self.clean_whitespace(unescape(text))

    def clean_whitespace(self, text: str) -> str:
        if not text:
            return ""
        return self.WHITESPACE_PATTERN.sub(" ", text).strip()

    def count_words(self, text: str) -> int:
        """Number of non-empty whitespace-separated tokens."""
        if not text:
            return 0
        return len([w for w in self.WHITESPACE_PATTERN.split(text) if w])

    def make_excerpt(self, text: str, length: int = None) -> str:
        """First `length` characters, with an ellipsis marker if cut."""
        if length is None:
            length = settings.excerpt_length
        if not text:
            return ""
        if len(text) <= length:
            return text
        return text[:length] + ELLIPSIS


text_processor = TextProcessor()
