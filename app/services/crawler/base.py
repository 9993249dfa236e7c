from dataclasses import dataclass, field

from app.config import settings

# Wire token -> max depth. Anything else falls back to DEFAULT_DEPTH.
DEPTH_TOKENS: dict[str, int] = {
    "single": 0,
    "1": 1,
    "2": 2,
    "full": 3,
}
DEFAULT_DEPTH = 1


def resolve_depth(token) -> int:
    """Map a request depth token (single | 1 | 2 | full) to a max depth."""
    if token is None:
        return DEFAULT_DEPTH
    return DEPTH_TOKENS.get(str(token), DEFAULT_DEPTH)


@dataclass(frozen=True)
class CrawlPolicy:
    """Caller-supplied settings for one crawl run. Immutable for the run."""

    seed_url: str
    max_depth: int = DEFAULT_DEPTH
    follow_external: bool = False
    max_pages: int = field(default_factory=lambda: settings.crawl_max_pages)
    max_concurrency: int = field(default_factory=lambda: settings.crawl_max_concurrency)

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")


@dataclass(frozen=True)
class QueueItem:
    url: str  # normalized
    depth: int


@dataclass(frozen=True)
class PageResult:
    """A single crawled page, successful or degraded."""

    url: str
    title: str
    description: str
    content: str  # cleaned HTML
    text_content: str
    depth: int
    word_count: int
    excerpt: str | None = None

    def to_dict(self) -> dict:
        """Wire representation (camelCase keys)."""
        data = {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "textContent": self.text_content,
            "depth": self.depth,
            "wordCount": self.word_count,
        }
        if self.excerpt is not None:
            data["excerpt"] = self.excerpt
        return data


@dataclass
class FetchOutcome:
    """What the fetcher hands back to the scheduler for one URL.

    `page` carries depth 0; the scheduler stamps the real depth on settle.
    """

    page: PageResult
    links: list[str] = field(default_factory=list)
    error: str | None = None
