"""
Pytest configuration and fixtures for site n-gram ranker tests.
"""

import threading
import time
from typing import Dict, Iterable, List, Optional, Union

import pytest
from hypothesis import settings, Verbosity

from site_ngram_ranker.fetchers.base import BaseFetcher, Page
from site_ngram_ranker.utils.errors import FetchError

# Configure Hypothesis for faster test runs
settings.register_profile("fast", max_examples=5, deadline=5000, verbosity=Verbosity.quiet)
settings.register_profile("thorough", max_examples=100, deadline=30000, verbosity=Verbosity.normal)

# Use fast profile by default
settings.load_profile("fast")


class FakeFetcher(BaseFetcher):
    """
    In-memory fetcher serving a fixed site.

    Pages map URL -> Page; an Exception value is raised when that URL is
    fetched; unknown URLs fail like a 404.
    """

    def __init__(self, pages: Dict[str, Union[Page, Exception]], delay: float = 0.0,
                 slow_urls: Optional[Dict[str, float]] = None):
        self.pages = pages
        self.delay = delay
        self.slow_urls = slow_urls or {}
        self.fetched: List[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def fetch(self, url: str, timeout: float) -> Page:
        with self._lock:
            self.fetched.append(url)

        pause = self.slow_urls.get(url, self.delay)
        if pause:
            time.sleep(pause)

        page = self.pages.get(url)
        if page is None:
            raise FetchError(f"HTTP 404 for {url}", {"url": url, "status_code": 404})
        if isinstance(page, Exception):
            raise page
        return page

    def close(self) -> None:
        self.closed = True


def make_page(url: str, text: str = "", links: Iterable[str] = ()) -> Page:
    return Page(url=url, text=text, links=list(links))


def clique_site(size: int, base: str = "https://site.test") -> Dict[str, Page]:
    """Pages 0..size-1 that all link to every page (including themselves)."""
    urls = [f"{base}/page{i}" for i in range(size)]
    return {
        url: make_page(url, f"Conteudo pagina numero {i} palavra", urls)
        for i, url in enumerate(urls)
    }


@pytest.fixture
def fake_fetcher_factory():
    """Build a FakeFetcher for a dict of pages."""
    def factory(pages, **kwargs) -> FakeFetcher:
        return FakeFetcher(pages, **kwargs)
    return factory


@pytest.fixture
def brasil_site() -> Dict[str, Page]:
    """Single page site with a known word distribution."""
    url = "https://brasil.test/"
    return {url: make_page(url, "O Brasil é um país. O Brasil tem praias.")}


@pytest.fixture
def clique_pages() -> Dict[str, Page]:
    return clique_site(10)


def pytest_configure(config):
    """Configure pytest with custom settings."""
    import logging
    logging.getLogger("site_ngram_ranker").setLevel(logging.WARNING)
    logging.getLogger("hypothesis").setLevel(logging.WARNING)
