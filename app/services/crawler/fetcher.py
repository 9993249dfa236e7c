import asyncio
import logging

import httpx

from app.config import settings
from app.services.crawler.base import FetchOutcome, PageResult
from app.services.crawler.urls import normalize_url
from app.services.extraction.pipeline import ContentPipeline, build_pipeline

logger = logging.getLogger("ragcrawler.crawler.fetcher")

ERROR_TITLE = "Error loading page"


def error_page(url: str, message: str) -> PageResult:
    """Degraded result for a page that could not be fetched or parsed."""
    return PageResult(
        url=normalize_url(url),
        title=ERROR_TITLE,
        description=message,
        content="",
        text_content="",
        depth=0,
        word_count=0,
    )


class PageFetcher:
    """Fetch one page and run it through the extraction pipeline.

    Owns a single httpx.AsyncClient for the lifetime of a crawl; use as an
    async context manager. Extraction runs in a worker thread so other
    fetches and requests keep going while a page is parsed. `fetch()`
    never raises for per-page problems:
    network errors, timeouts, too many redirects, non-2xx statuses and
    extraction failures all come back as a degraded PageResult.
    """

    def __init__(
        self,
        base_url: str,
        follow_external: bool = False,
        pipeline: ContentPipeline | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.follow_external = follow_external
        self.pipeline = pipeline or build_pipeline()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "PageFetcher":
        self._client = httpx.AsyncClient(
            timeout=settings.crawl_timeout_seconds,
            follow_redirects=True,
            max_redirects=settings.crawl_max_redirects,
            headers={"User-Agent": settings.user_agent},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchOutcome:
        if self._client is None:
            raise RuntimeError("PageFetcher used outside of 'async with'")

        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
            # Parsing is CPU-bound; keep it off the event loop
            processed = await asyncio.to_thread(
                self.pipeline.process,
                resp.text,
                page_url=str(resp.url),
                base_url=self.base_url,
                follow_external=self.follow_external,
            )
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.warning("Error crawling %s: %s", url, message)
            return FetchOutcome(page=error_page(url, message), error=message)

        page = PageResult(
            url=normalize_url(url),
            title=processed.title,
            description=processed.description,
            content=processed.content,
            text_content=processed.text_content,
            depth=0,
            word_count=processed.word_count,
            excerpt=processed.excerpt,
        )
        return FetchOutcome(page=page, links=processed.links)
