import asyncio
import inspect
import logging
from collections import deque
from dataclasses import replace
from typing import Awaitable, Callable

import httpx

from app.config import settings
from app.services.crawler.base import CrawlPolicy, FetchOutcome, PageResult, QueueItem
from app.services.crawler.fetcher import PageFetcher
from app.services.crawler.urls import normalize_url
from app.services.extraction.pipeline import ContentPipeline

logger = logging.getLogger("ragcrawler.crawler.website")

OnPage = Callable[[PageResult], Awaitable[None] | None]


class WebsiteCrawler:
    """Breadth-first-ish website crawler with bounded concurrency.

    Starts from the policy's seed URL and follows links up to max_depth,
    fetching at most max_concurrency pages at a time. Each batch is a
    barrier: the next batch is only selected once every page of the
    current one has settled.

    All crawl state (queue, visited, in-progress, results) lives in the
    `crawl()` call and is only touched by the driver loop. Fetch tasks
    return their outcome and the driver does the bookkeeping as each one
    completes, so pages are reported in completion order.

    The page budget is a hard cap: a batch never holds more items than
    `max_pages - len(results)`, so `len(results) <= max_pages`.
    """

    def __init__(
        self,
        pipeline: ContentPipeline | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.pipeline = pipeline
        self.transport = transport

    async def crawl(
        self,
        policy: CrawlPolicy,
        on_page: OnPage | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[PageResult]:
        """Run one crawl and return its pages in completion order.

        `on_page` is called with each PageResult as soon as it settles; an
        awaitable return value is awaited before the crawl continues.
        Setting `cancel` stops the run once the current batch has settled.
        """
        visited: set[str] = set()
        in_progress: set[str] = set()
        queue: deque[QueueItem] = deque([QueueItem(normalize_url(policy.seed_url), 0)])
        results: list[PageResult] = []

        logger.info(
            "Starting crawl: %s (max_depth=%d, follow_external=%s, max_pages=%d)",
            policy.seed_url,
            policy.max_depth,
            policy.follow_external,
            policy.max_pages,
        )

        async with PageFetcher(
            base_url=policy.seed_url,
            follow_external=policy.follow_external,
            pipeline=self.pipeline,
            transport=self.transport,
        ) as fetcher:
            while (queue or in_progress) and len(results) < policy.max_pages:
                if cancel is not None and cancel.is_set():
                    logger.info("Crawl of %s cancelled", policy.seed_url)
                    break

                batch = self._select_batch(queue, visited, in_progress, len(results), policy)
                if not batch:
                    if in_progress:
                        # Pages still in flight may enqueue fresh links
                        await asyncio.sleep(settings.crawl_idle_wait_seconds)
                        continue
                    break

                for item in batch:
                    visited.add(item.url)
                    in_progress.add(item.url)

                await self._run_batch(
                    fetcher, batch, policy, queue, visited, in_progress, results, on_page
                )
                await asyncio.sleep(settings.crawl_batch_delay_seconds)

        logger.info(
            "Crawl of %s complete. Visited %d pages, produced %d results",
            policy.seed_url,
            len(visited),
            len(results),
        )
        return results

    def _select_batch(
        self,
        queue: deque[QueueItem],
        visited: set[str],
        in_progress: set[str],
        result_count: int,
        policy: CrawlPolicy,
    ) -> list[QueueItem]:
        """Pull up to max_concurrency dispatchable items off the front of the queue.

        Already seen URLs and items past max_depth are dropped. Selection
        stops once the remaining page budget is reserved.
        """
        batch: list[QueueItem] = []
        batch_urls: set[str] = set()
        while queue and len(batch) < policy.max_concurrency:
            if result_count + len(in_progress) + len(batch) >= policy.max_pages:
                break
            item = queue.popleft()
            if item.depth > policy.max_depth:
                continue
            if item.url in visited or item.url in in_progress or item.url in batch_urls:
                continue
            batch.append(item)
            batch_urls.add(item.url)
        return batch

    async def _run_batch(
        self,
        fetcher: PageFetcher,
        batch: list[QueueItem],
        policy: CrawlPolicy,
        queue: deque[QueueItem],
        visited: set[str],
        in_progress: set[str],
        results: list[PageResult],
        on_page: OnPage | None,
    ) -> None:
        async def fetch_item(item: QueueItem) -> tuple[QueueItem, FetchOutcome]:
            logger.debug("Crawling (depth %d): %s", item.depth, item.url)
            return item, await fetcher.fetch(item.url)

        tasks = [asyncio.create_task(fetch_item(item)) for item in batch]
        try:
            for next_done in asyncio.as_completed(tasks):
                item, outcome = await next_done
                try:
                    page = replace(outcome.page, depth=item.depth)
                    results.append(page)
                    if on_page is not None:
                        delivered = on_page(page)
                        if inspect.isawaitable(delivered):
                            await delivered

                    if item.depth < policy.max_depth:
                        for link in outcome.links:
                            if link not in visited and link not in in_progress:
                                queue.append(QueueItem(link, item.depth + 1))
                finally:
                    in_progress.discard(item.url)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

