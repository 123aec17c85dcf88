"""
Same-origin decisions by URL structure alone.

Two URLs share an origin when scheme, host and effective port match. The
comparison never touches the network, so it cannot fail or slow the crawl
down; redirects are the fetcher's business.
"""

from typing import NamedTuple, Optional
from urllib.parse import urlsplit, urlunsplit


DEFAULT_PORTS = {"http": 80, "https": 443}


class Origin(NamedTuple):
    """Scheme, lowercase host and effective port of a URL."""
    scheme: str
    host: str
    port: int

    def __str__(self) -> str:
        if DEFAULT_PORTS.get(self.scheme) == self.port:
            return f"{self.scheme}://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"


def origin_of(url: str) -> Optional[Origin]:
    """
    Extract the origin of an http(s) URL.

    Args:
        url: Absolute URL

    Returns:
        Origin, or None for relative, non-http(s) or malformed URLs
    """
    if not url:
        return None

    try:
        parts = urlsplit(url.strip())
        scheme = parts.scheme.lower()
        host = parts.hostname
        port = parts.port
    except ValueError:
        # Out-of-range or non-numeric port
        return None

    if scheme not in DEFAULT_PORTS or not host:
        return None

    return Origin(scheme=scheme, host=host.lower(), port=port or DEFAULT_PORTS[scheme])


def canonicalize_url(url: str) -> str:
    """
    Spell an http(s) URL one way so the visited set sees a page once.

    Lowercases scheme and host, drops the default port, turns an empty path
    into "/" and removes the fragment. Path and query are kept as written.
    Non-http(s) or malformed URLs come back stripped but otherwise unchanged.

    Examples:
        HTTPS://Site.Test:443 -> https://site.test/
        http://site.test:8080/a?b=1#top -> http://site.test:8080/a?b=1
    """
    url = url.strip()
    origin = origin_of(url)
    if origin is None:
        return url

    parts = urlsplit(url)
    host = f"[{origin.host}]" if ":" in origin.host else origin.host
    netloc = host if DEFAULT_PORTS[origin.scheme] == origin.port else f"{host}:{origin.port}"
    if parts.username is not None:
        userinfo = parts.username if parts.password is None else f"{parts.username}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((origin.scheme, netloc, parts.path or "/", parts.query, ""))


def is_same_origin(url: str, other: str) -> bool:
    """True when both URLs are http(s) and share scheme, host and port."""
    first = origin_of(url)
    return first is not None and first == origin_of(other)


class SameOriginFilter:
    """Accepts only links on the seed URL's origin."""

    def __init__(self, seed_url: str):
        self.seed_url = seed_url
        self.origin = origin_of(seed_url)

    def is_same_origin(self, link: str) -> bool:
        if self.origin is None:
            return False
        return origin_of(link) == self.origin

    __call__ = is_same_origin

    def __repr__(self) -> str:
        return f"SameOriginFilter(origin={self.origin})"
