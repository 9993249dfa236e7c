import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from app.config import settings
from app.services.crawler.base import CrawlPolicy, PageResult
from app.services.crawler.website import WebsiteCrawler
from app.services.extraction.pipeline import ContentPipeline

logger = logging.getLogger("ragcrawler.crawler.manager")

# Producer tasks of open streams; keeps them referenced until they finish
_stream_tasks: set[asyncio.Task] = set()


@dataclass
class CrawlSummary:
    """Outcome of one crawl run, logged when the run ends."""

    start_url: str
    max_depth: int
    pages_found: int = 0
    execution_time_ms: float = 0.0
    stopped_early: bool = False
    error_message: str | None = None

    def to_dict(self) -> dict:
        return {
            "startUrl": self.start_url,
            "depth": self.max_depth,
            "pagesFound": self.pages_found,
            "executionTimeMs": round(self.execution_time_ms, 1),
            "executionTimeSec": f"{self.execution_time_ms / 1000:.2f}",
            "stoppedManually": self.stopped_early,
            "errorMessage": self.error_message,
        }


def log_summary(summary: CrawlSummary) -> None:
    if summary.error_message:
        logger.error(
            "Crawl failed: start_url=%s depth=%d pages_found=%d duration_ms=%.1f error=%s",
            summary.start_url,
            summary.max_depth,
            summary.pages_found,
            summary.execution_time_ms,
            summary.error_message,
        )
        return
    logger.info(
        "Crawl finished: start_url=%s depth=%d pages_found=%d duration_ms=%.1f stopped_early=%s",
        summary.start_url,
        summary.max_depth,
        summary.pages_found,
        summary.execution_time_ms,
        summary.stopped_early,
    )


def page_frame(page: PageResult) -> dict:
    return {"type": "page", "data": page.to_dict()}


def encode_frame(message: dict) -> str:
    """One NDJSON line."""
    return json.dumps(message, ensure_ascii=False) + "\n"


async def run_crawl(
    policy: CrawlPolicy,
    transport: httpx.AsyncBaseTransport | None = None,
    pipeline: ContentPipeline | None = None,
) -> tuple[list[PageResult], CrawlSummary]:
    """Buffered delivery: crawl to completion and return every page.

    Run-level failures are logged in the summary and re-raised.
    """
    crawler = WebsiteCrawler(pipeline=pipeline, transport=transport)
    summary = CrawlSummary(start_url=policy.seed_url, max_depth=policy.max_depth)
    start_time = time.time()
    try:
        pages = await crawler.crawl(policy)
        summary.pages_found = len(pages)
        return pages, summary
    except Exception as e:
        summary.error_message = str(e) or e.__class__.__name__
        raise
    finally:
        summary.execution_time_ms = (time.time() - start_time) * 1000
        log_summary(summary)


async def stream_crawl(
    policy: CrawlPolicy,
    transport: httpx.AsyncBaseTransport | None = None,
    pipeline: ContentPipeline | None = None,
) -> AsyncIterator[str]:
    """Streaming delivery: yield one NDJSON frame per page as it completes,
    then a single terminal `done` or `error` frame.

    The crawl runs in its own task and hands frames over a bounded queue.
    If the consumer stops iterating (client disconnect), the crawl is
    cancelled: it finishes its current batch and stops producing.
    """
    crawler = WebsiteCrawler(pipeline=pipeline, transport=transport)
    channel: asyncio.Queue[dict] = asyncio.Queue(maxsize=settings.crawl_stream_buffer)
    cancel = asyncio.Event()
    summary = CrawlSummary(start_url=policy.seed_url, max_depth=policy.max_depth)

    async def deliver(page: PageResult) -> None:
        if not cancel.is_set():
            summary.pages_found += 1
            await channel.put(page_frame(page))

    async def produce() -> None:
        start_time = time.time()
        try:
            await crawler.crawl(policy, on_page=deliver, cancel=cancel)
            terminal = {"type": "done"}
        except Exception as e:
            summary.error_message = str(e) or e.__class__.__name__
            terminal = {"type": "error", "error": summary.error_message}
        finally:
            summary.stopped_early = cancel.is_set()
            summary.execution_time_ms = (time.time() - start_time) * 1000
            log_summary(summary)
        if not cancel.is_set():
            await channel.put(terminal)

    producer = asyncio.create_task(produce())
    _stream_tasks.add(producer)
    producer.add_done_callback(_stream_tasks.discard)

    try:
        while True:
            message = await channel.get()
            yield encode_frame(message)
            if message["type"] in ("done", "error"):
                break
    finally:
        if not producer.done():
            cancel.set()
            # Unblock a producer waiting on a full channel
            while not channel.empty():
                channel.get_nowait()
