import httpx
from fastapi import Request

from app.config import settings
from app.middleware.rate_limiter import check_rate_limit


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def crawl_rate_limit(request: Request) -> None:
    """Per-client limit on crawl requests (each one fans out to many fetches)."""
    await check_rate_limit(
        request,
        key=f"crawl:{client_ip(request)}",
        limit=settings.crawl_rate_limit,
    )


def get_http_transport() -> httpx.AsyncBaseTransport | None:
    """Transport used for outbound page fetches. None means the real network."""
    return None
