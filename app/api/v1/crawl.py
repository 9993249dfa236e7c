import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from app.api.deps import crawl_rate_limit, get_http_transport
from app.services.crawler.base import CrawlPolicy, resolve_depth
from app.services.crawler.manager import run_crawl, stream_crawl
from app.services.crawler.urls import is_absolute_http_url

logger = logging.getLogger("ragcrawler.api.crawl")

router = APIRouter()


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@router.post("/crawl-website", dependencies=[Depends(crawl_rate_limit)])
async def crawl_website(
    request: dict,
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
):
    """Crawl a website starting from a seed URL.

    Body:
      - url: absolute http(s) URL to start from (required)
      - depth: single | 1 | 2 | full (max depth 0 | 1 | 2 | 3, default 1)
      - followExternal: follow links to other hosts (default false)
      - stream: stream pages as NDJSON as they are crawled (default false)

    Streaming responses are newline-delimited JSON objects:
    {"type": "page", "data": {...}} per page, then {"type": "done"}
    or {"type": "error", "error": "..."}.
    """
    url = request.get("url")
    if not url or not isinstance(url, str):
        raise HTTPException(status_code=400, detail="URL is required")
    url = url.strip()
    if not is_absolute_http_url(url):
        raise HTTPException(status_code=400, detail="Invalid URL format")

    policy = CrawlPolicy(
        seed_url=url,
        max_depth=resolve_depth(request.get("depth")),
        follow_external=_as_bool(request.get("followExternal", False)),
    )
    stream = _as_bool(request.get("stream", False))

    logger.info(
        "Crawl requested: url=%s max_depth=%d follow_external=%s stream=%s",
        policy.seed_url,
        policy.max_depth,
        policy.follow_external,
        stream,
    )

    if stream:
        return StreamingResponse(
            stream_crawl(policy, transport=transport),
            media_type="application/x-ndjson",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    try:
        pages, _ = await run_crawl(policy, transport=transport)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error")

    return {
        "success": True,
        "pages": [page.to_dict() for page in pages],
        "totalPages": len(pages),
    }
