from urllib.parse import urldefrag, urljoin, urlparse

ALLOWED_SCHEMES = ("http", "https")


def normalize_url(url: str) -> str:
    """Canonical form used as the visitation key.

    Drops the fragment and the trailing slash. Host case, query string and
    path segments are left alone. Unparseable input is returned unchanged.
    """
    try:
        parsed = urlparse(url)
        # Touch .port so malformed netlocs ("http://a:x") fail here
        parsed.port
        normalized, _ = urldefrag(url)
    except (ValueError, TypeError, AttributeError):
        return url
    # All trailing slashes, so normalize(normalize(x)) == normalize(x)
    return normalized.rstrip("/")


def hostname_of(url: str) -> str | None:
    try:
        parsed = urlparse(url)
        parsed.port
    except (ValueError, TypeError):
        return None
    return parsed.hostname


def is_same_domain(url1: str, url2: str) -> bool:
    """True iff both URLs parse and their hostnames are identical."""
    host1 = hostname_of(url1)
    host2 = hostname_of(url2)
    if not host1 or not host2:
        return False
    return host1 == host2


def is_absolute_http_url(url) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ALLOWED_SCHEMES and bool(parsed.netloc) and bool(parsed.hostname)


def resolve_link(href: str, page_url: str) -> str | None:
    """Resolve an anchor href against the page URL. None if not http(s)."""
    try:
        absolute = urljoin(page_url, href.strip())
        parsed = urlparse(absolute)
        parsed.port
    except ValueError:
        return None
    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.hostname:
        return None
    return absolute
