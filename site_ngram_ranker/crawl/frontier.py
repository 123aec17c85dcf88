"""
URL frontier for a single crawl run.

Worker tasks push discovered links; the scheduling loop is the only consumer.
A URL is dispatched at most once: ``try_dispatch`` claims it in the visited
set and charges the page budget in one call. URLs are canonicalized on the
way in, so two spellings of one page share a single visited entry.
"""

from queue import Empty
from typing import Callable, Iterable, Optional

from site_ngram_ranker.utils.logging import get_logger
from .same_origin import canonicalize_url
from .thread_safe import ThreadSafeCounter, ThreadSafeQueue, ThreadSafeSet


logger = get_logger(__name__)


class Frontier:
    """Queue of URLs awaiting fetch, plus the visited set and dispatch budget."""

    def __init__(self, max_pages: int):
        """
        Args:
            max_pages: Maximum number of URLs that may ever be dispatched
        """
        self.max_pages = max_pages
        self._queue = ThreadSafeQueue()
        self._visited = ThreadSafeSet()
        self._dispatched = ThreadSafeCounter()

    def push(self, url: str) -> None:
        """Add a URL to the frontier unconditionally."""
        self._queue.put(canonicalize_url(url))

    def next_url(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Dequeue the next URL.

        Args:
            timeout: Seconds to wait for an entry

        Returns:
            URL, or None if nothing arrived in time
        """
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def try_dispatch(self, url: str) -> bool:
        """
        Claim a URL for fetching.

        Returns:
            True if the URL was not visited before and the budget allowed it
        """
        if not self.has_budget():
            return False
        if not self._visited.add(canonicalize_url(url)):
            logger.debug(f"Discarding already visited URL: {url}")
            return False
        self._dispatched.increment()
        return True

    def has_budget(self) -> bool:
        return self._dispatched.get_value() < self.max_pages

    def offer_links(
        self,
        links: Iterable[str],
        accept: Callable[[str], bool],
        max_links: int
    ) -> int:
        """
        Enqueue up to ``max_links`` new links accepted by ``accept``.

        The budget is re-checked before every enqueue, so a page discovered
        late in the run adds nothing once the budget is spent.

        Args:
            links: Absolute outbound links of one page
            accept: Link filter (same-origin check)
            max_links: Cap on links enqueued for this page

        Returns:
            Number of links enqueued
        """
        enqueued = 0
        seen_on_page = set()

        for link in links:
            if enqueued >= max_links or not self.has_budget():
                break
            link = canonicalize_url(link)
            if link in seen_on_page or link in self._visited:
                continue
            seen_on_page.add(link)
            if not accept(link):
                continue
            self._queue.put(link)
            enqueued += 1

        return enqueued

    def is_empty(self) -> bool:
        return self._queue.empty()

    @property
    def dispatched_count(self) -> int:
        return self._dispatched.get_value()
