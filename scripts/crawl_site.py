"""Crawl a website from the command line.

Usage:
    python -m scripts.crawl_site https://example.com [--depth 2] [--follow-external] [--max-pages 50]

Prints one NDJSON frame per page as it is crawled, then the terminal
frame, exactly as the streaming API would. A short summary goes to stderr.
"""

import argparse
import asyncio
import json
import sys
import time

sys.path.insert(0, ".")

from app.config import settings
from app.services.crawler.base import DEPTH_TOKENS, CrawlPolicy, resolve_depth
from app.services.crawler.manager import stream_crawl
from app.services.crawler.urls import is_absolute_http_url


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crawl a website and print pages as NDJSON")
    parser.add_argument("url", help="absolute http(s) seed URL")
    parser.add_argument("--depth", default="1", choices=list(DEPTH_TOKENS.keys()))
    parser.add_argument("--follow-external", action="store_true")
    parser.add_argument("--max-pages", type=int, default=settings.crawl_max_pages)
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)
    if not is_absolute_http_url(args.url):
        print(f"Invalid URL: {args.url}", file=sys.stderr)
        return 2

    policy = CrawlPolicy(
        seed_url=args.url,
        max_depth=resolve_depth(args.depth),
        follow_external=args.follow_external,
        max_pages=args.max_pages,
    )

    start = time.time()
    pages = 0
    status = 0
    async for frame in stream_crawl(policy):
        sys.stdout.write(frame)
        sys.stdout.flush()
        message = json.loads(frame)
        if message["type"] == "page":
            pages += 1
        elif message["type"] == "error":
            status = 1

    print(f"\n{pages} pages in {time.time() - start:.1f}s", file=sys.stderr)
    return status


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
