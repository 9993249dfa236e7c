import logging

from bs4 import BeautifulSoup

from app.services.extraction.base import BaseExtractor, ExtractedContent
from app.services.extraction.text_processor import text_processor

logger = logging.getLogger("ragcrawler.extraction.heuristic")

# Elements that never hold main content
NOISE_SELECTORS = [
    "script",
    "style",
    "noscript",
    "iframe",
    "nav",
    "footer",
    "aside",
    "header",
    ".ad",
    ".ads",
    ".advert",
    ".advertisement",
    '[class*="ad-container"]',
    '[id*="ad-container"]',
]

# Tried in order; first match wins
CONTENT_SELECTORS = [
    "article",
    "main",
    '[role="main"]',
    ".main-content",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".article-body",
    ".content",
    "#content",
    "#main",
]


def document_title(soup: BeautifulSoup) -> str:
    """<title> text, then the first <h1>, else empty."""
    if soup.title:
        title = soup.title.get_text(strip=True)
        if title:
            return title
    h1 = soup.find("h1")
    if h1:
        return text_processor.clean_whitespace(h1.get_text(" ", strip=True))
    return ""


class HeuristicExtractor(BaseExtractor):
    """Selector-based fallback extractor.

    Strips boilerplate elements, then takes the first element that looks
    like a content container. Falls back to the whole <body> when nothing
    matches, so it only returns None for an empty document.
    """

    name = "heuristic"

    def extract(self, html: str, base_url: str) -> ExtractedContent | None:
        if not html:
            return None
        soup = BeautifulSoup(html, "lxml")
        title = document_title(soup)

        for tag in soup.select(", ".join(NOISE_SELECTORS)):
            # A removed ancestor leaves descendants detached but still listed
            if tag.decomposed:
                continue
            tag.decompose()

        container = self._find_container(soup)
        if container is None:
            return None

        content_html = container.decode_contents().strip()
        text = text_processor.clean_whitespace(container.get_text(separator=" ", strip=True))
        logger.debug("Heuristic extraction for %s: %d chars", base_url, len(text))
        return ExtractedContent(
            title=title,
            content_html=content_html,
            text_content=text,
            excerpt=text_processor.make_excerpt(text),
        )

    def _find_container(self, soup: BeautifulSoup):
        for selector in CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                return element
        return soup.body or soup
