import httpx
import pytest

from app.config import settings
from app.services.extraction.pipeline import ContentPipeline


def html_page(title: str, body: str = "", links=()) -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><nav>{anchors}</nav><main><h1>{title}</h1><p>{body}</p></main></body></html>"
    )


class FakeSite:
    """In-memory website served through httpx.MockTransport.

    `pages` maps URL -> HTML string, an int status code, or an exception
    instance to raise. Unknown URLs answer 404. Every request URL is
    recorded in `requested`.
    """

    def __init__(self, pages: dict):
        self.pages = pages
        self.requested: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        entry = self.pages.get(url)
        if entry is None:
            entry = self.pages.get(url.rstrip("/"))
        if entry is None:
            return httpx.Response(404, text="Not found")
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, int):
            return httpx.Response(entry, text="")
        return httpx.Response(200, text=entry, headers={"Content-Type": "text/html; charset=utf-8"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def heuristic_pipeline():
    return ContentPipeline(primary=None)


@pytest.fixture(autouse=True)
def fast_crawl(monkeypatch):
    """No pacing delays in tests."""
    monkeypatch.setattr(settings, "crawl_batch_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "crawl_idle_wait_seconds", 0.0)
