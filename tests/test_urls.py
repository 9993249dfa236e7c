"""Tests for URL normalization and same-domain checks."""

import pytest

from app.services.crawler.urls import (
    is_absolute_http_url,
    is_same_domain,
    normalize_url,
    resolve_link,
)


def test_normalize_strips_fragment_and_trailing_slash():
    assert normalize_url("https://a.com/x/") == "https://a.com/x"
    assert normalize_url("https://a.com/x#frag") == "https://a.com/x"
    assert normalize_url("https://a.com/x/#frag") == "https://a.com/x"
    assert normalize_url("https://a.com/") == "https://a.com"


def test_normalize_keeps_query_and_host_case():
    assert normalize_url("https://A.com/x?b=2&a=1") == "https://A.com/x?b=2&a=1"
    assert normalize_url("https://a.com/x/?q=1") == "https://a.com/x/?q=1"


@pytest.mark.parametrize(
    "url",
    [
        "https://a.com/x/",
        "https://a.com/x//",
        "https://a.com/x#frag",
        "https://a.com/path/to/page?x=1#top",
        "http://a.com",
    ],
)
def test_normalize_idempotent(url):
    once = normalize_url(url)
    assert normalize_url(once) == once


def test_normalize_malformed_returns_input():
    assert normalize_url("http://a.com:notaport/x") == "http://a.com:notaport/x"
    assert normalize_url("http://[::1/x") == "http://[::1/x"


def test_same_domain():
    assert is_same_domain("https://a.com/p1", "http://a.com/other")
    assert not is_same_domain("https://a.com/p1", "https://b.com/p2")
    assert not is_same_domain("https://www.a.com", "https://a.com")


def test_same_domain_fails_closed():
    assert not is_same_domain("http://[::1/x", "http://[::1/x")
    assert not is_same_domain("not a url", "not a url")


def test_resolve_link():
    assert resolve_link("/p1", "https://a.com/docs/") == "https://a.com/p1"
    assert resolve_link("p2", "https://a.com/docs/") == "https://a.com/docs/p2"
    assert resolve_link("mailto:x@a.com", "https://a.com") is None
    assert resolve_link("javascript:void(0)", "https://a.com") is None
    assert resolve_link("http://[broken", "https://a.com") is None


def test_is_absolute_http_url():
    assert is_absolute_http_url("https://example.com")
    assert is_absolute_http_url("http://example.com/path?q=1")
    assert not is_absolute_http_url("example.com")
    assert not is_absolute_http_url("/relative/path")
    assert not is_absolute_http_url("ftp://example.com")
    assert not is_absolute_http_url("")
    assert not is_absolute_http_url(None)
    assert not is_absolute_http_url(42)
