from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ExtractedContent:
    """Main content isolated from a full HTML document."""

    title: str
    content_html: str
    text_content: str
    excerpt: str


class BaseExtractor(ABC):
    """Abstract base for content extractors.

    An extractor receives the raw HTML of a page and the URL it was fetched
    from, and returns the page's main content, or None when it cannot find
    any. Extractors are stateless and may be shared across crawls, so the
    crawl scheduler never needs to know which one is in use.
    """

    name: str  # must be set by subclass

    @abstractmethod
    def extract(self, html: str, base_url: str) -> ExtractedContent | None:
        ...
