"""
Page fetcher contract used by the crawl scheduler.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List


@dataclass
class Page:
    """Text and outbound links of one fetched page."""
    url: str
    text: str
    links: List[str] = field(default_factory=list)


class BaseFetcher(ABC):
    """Abstract base class for page fetchers."""

    @abstractmethod
    def fetch(self, url: str, timeout: float) -> Page:
        """
        Fetch a page and extract its text and links.

        Args:
            url: Absolute URL to fetch
            timeout: Seconds allowed for the request

        Returns:
            Page whose links are absolute, fragment-free http(s) URLs

        Raises:
            FetchError: On timeout, connection failure, non-success status,
                malformed URL or unusable content
        """
        pass

    def close(self) -> None:
        """Release network resources, if any."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
