"""Tests for the page fetcher: transport failures never escape."""

import httpx
import pytest

from app.config import settings
from app.services.crawler.fetcher import ERROR_TITLE, PageFetcher
from tests.conftest import html_page


def redirect_chain(hops: int):
    """Handler that redirects /r0 -> /r1 -> ... -> /r{hops}, which serves a page."""

    def handler(request):
        step = int(request.url.path.lstrip("/r") or 0)
        if step < hops:
            return httpx.Response(302, headers={"Location": f"/r{step + 1}"})
        return httpx.Response(200, text=html_page("Landed", "made it", links=["next"]))

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_fetch_success(heuristic_pipeline):
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text=html_page("Hello", "some body text", links=["/x"]))
    )
    async with PageFetcher("https://a.com", pipeline=heuristic_pipeline, transport=transport) as fetcher:
        outcome = await fetcher.fetch("https://a.com/page")

    assert outcome.error is None
    assert outcome.page.url == "https://a.com/page"
    assert outcome.page.title == "Hello"
    assert outcome.page.word_count == 4
    assert outcome.links == ["https://a.com/x"]


@pytest.mark.asyncio
async def test_fetch_sends_user_agent(heuristic_pipeline):
    seen = {}

    def handler(request):
        seen["ua"] = request.headers.get("User-Agent")
        return httpx.Response(200, text=html_page("x"))

    async with PageFetcher(
        "https://a.com", pipeline=heuristic_pipeline, transport=httpx.MockTransport(handler)
    ) as fetcher:
        await fetcher.fetch("https://a.com")
    assert seen["ua"] == settings.user_agent


@pytest.mark.asyncio
async def test_redirects_within_cap_are_followed(heuristic_pipeline):
    async with PageFetcher(
        "https://a.com", pipeline=heuristic_pipeline, transport=redirect_chain(5)
    ) as fetcher:
        outcome = await fetcher.fetch("https://a.com/r0")
    assert outcome.error is None
    assert outcome.page.title == "Landed"
    # Relative links resolve against the final URL
    assert outcome.links == ["https://a.com/next"]
    assert outcome.page.url == "https://a.com/r0"


@pytest.mark.asyncio
async def test_redirect_cap_exceeded_is_a_failure(heuristic_pipeline):
    async with PageFetcher(
        "https://a.com", pipeline=heuristic_pipeline, transport=redirect_chain(6)
    ) as fetcher:
        outcome = await fetcher.fetch("https://a.com/r0")
    assert outcome.error
    assert outcome.links == []
    assert outcome.page.title == ERROR_TITLE
    assert outcome.page.word_count == 0


@pytest.mark.asyncio
async def test_timeout_is_a_failure(heuristic_pipeline):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with PageFetcher(
        "https://a.com", pipeline=heuristic_pipeline, transport=httpx.MockTransport(handler)
    ) as fetcher:
        outcome = await fetcher.fetch("https://a.com/#section")
    assert outcome.page.description == "timed out"
    assert outcome.page.url == "https://a.com"
    assert outcome.page.content == ""


@pytest.mark.asyncio
async def test_extraction_error_is_a_failure():
    class BrokenPipeline:
        def process(self, *args, **kwargs):
            raise ValueError("cannot parse")

    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html></html>"))
    async with PageFetcher("https://a.com", pipeline=BrokenPipeline(), transport=transport) as fetcher:
        outcome = await fetcher.fetch("https://a.com")
    assert outcome.page.title == ERROR_TITLE
    assert outcome.page.description == "cannot parse"


@pytest.mark.asyncio
async def test_fetch_requires_context(heuristic_pipeline):
    fetcher = PageFetcher("https://a.com", pipeline=heuristic_pipeline)
    with pytest.raises(RuntimeError):
        await fetcher.fetch("https://a.com")
