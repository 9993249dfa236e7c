import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup

from app.config import settings
from app.services.crawler.urls import hostname_of, normalize_url, resolve_link
from app.services.extraction.base import BaseExtractor, ExtractedContent
from app.services.extraction.heuristic import HeuristicExtractor, document_title
from app.services.extraction.readability import ReadabilityExtractor
from app.services.extraction.text_processor import text_processor

logger = logging.getLogger("ragcrawler.extraction.pipeline")

NO_TITLE = "No title"
NO_DESCRIPTION = "No description"

# Registry of available primary extractors
EXTRACTORS: dict[str, type[BaseExtractor]] = {
    "readability": ReadabilityExtractor,
    "heuristic": HeuristicExtractor,
}


def get_extractor(name: str) -> BaseExtractor:
    """Get an extractor instance for the given name."""
    extractor_cls = EXTRACTORS.get(name)
    if not extractor_cls:
        raise ValueError(f"Unknown extractor: {name}. Available: {list(EXTRACTORS.keys())}")
    return extractor_cls()


@dataclass
class ProcessedPage:
    title: str
    description: str
    content: str
    text_content: str
    excerpt: str
    word_count: int
    links: list[str]


def meta_description(soup: BeautifulSoup) -> str:
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content", "").strip():
            return tag["content"].strip()
    return ""


def harvest_links(
    soup: BeautifulSoup,
    page_url: str,
    base_url: str,
    follow_external: bool,
) -> list[str]:
    """Normalized http(s) links of a page, first occurrence wins.

    With follow_external off, links whose host differs from base_url's
    host are dropped. Malformed hrefs are skipped.
    """
    base_host = hostname_of(base_url)
    seen: set[str] = set()
    links: list[str] = []
    for a_tag in soup.find_all("a", href=True):
        href = a_tag.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        absolute = resolve_link(href, page_url)
        if absolute is None:
            continue
        if not follow_external and hostname_of(absolute) != base_host:
            continue
        normalized = normalize_url(absolute)
        if normalized not in seen:
            seen.add(normalized)
            links.append(normalized)
    return links


class ContentPipeline:
    """Two-stage extraction: a primary (readability-style) extractor with the
    heuristic extractor as fallback, plus metadata and link harvesting.

    Link harvesting and metadata always read the unmodified document, so
    they see navigation links the extractors strip out.
    """

    def __init__(
        self,
        primary: BaseExtractor | None = None,
        fallback: BaseExtractor | None = None,
    ):
        self.primary = primary
        self.fallback = fallback or HeuristicExtractor()

    def process(
        self,
        html: str,
        page_url: str,
        base_url: str,
        follow_external: bool = False,
    ) -> ProcessedPage:
        soup = BeautifulSoup(html or "", "lxml")

        extracted = self._run_primary(html, page_url)
        if extracted is not None:
            title = extracted.title or (soup.title.get_text(strip=True) if soup.title else "")
        else:
            extracted = self.fallback.extract(html, page_url) or ExtractedContent(
                title="", content_html="", text_content="", excerpt=""
            )
            title = extracted.title or document_title(soup)

        description = meta_description(soup) or extracted.excerpt or NO_DESCRIPTION

        return ProcessedPage(
            title=title or NO_TITLE,
            description=description,
            content=extracted.content_html,
            text_content=extracted.text_content,
            excerpt=extracted.excerpt,
            word_count=text_processor.count_words(extracted.text_content),
            links=harvest_links(soup, page_url, base_url, follow_external),
        )

    def _run_primary(self, html: str, page_url: str) -> ExtractedContent | None:
        if self.primary is None:
            return None
        try:
            return self.primary.extract(html, page_url)
        except Exception as e:
            logger.warning(
                "Primary extractor %s failed for %s, using fallback: %s",
                self.primary.name,
                page_url,
                e,
            )
            return None


def build_pipeline(name: str = None) -> ContentPipeline:
    """Pipeline for the configured primary extractor.

    Choosing "heuristic" as primary runs the fallback stage only.
    """
    extractor = get_extractor(name or settings.primary_extractor)
    if isinstance(extractor, HeuristicExtractor):
        return ContentPipeline(primary=None, fallback=extractor)
    return ContentPipeline(primary=extractor)
