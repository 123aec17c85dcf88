"""
HTML page fetcher: downloads a page and extracts its visible text and links.
"""

import codecs
from typing import List, Optional, Union
from urllib.parse import urldefrag, urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from site_ngram_ranker.utils.logging import get_logger
from site_ngram_ranker.utils.errors import FetchError
from .base import BaseFetcher, Page
from .http_client import HTTPClient


logger = get_logger(__name__)

_INVISIBLE_TAGS = ["script", "style", "noscript", "template"]
_SKIPPED_LINK_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")


class PageFetcher(BaseFetcher):
    """Fetches pages over HTTP and parses them with BeautifulSoup."""

    def __init__(self, http_client: Optional[HTTPClient] = None, parser: str = "lxml"):
        """
        Args:
            http_client: Client to download with (a default one is created if omitted)
            parser: BeautifulSoup tree builder
        """
        self.http_client = http_client or HTTPClient()
        self.parser = parser

    def fetch(self, url: str, timeout: float) -> Page:
        document = self.http_client.get(url, timeout=timeout)
        try:
            return self.parse(document.url, document.content, document.encoding)
        except ParserRejectedMarkup as e:
            raise FetchError(f"Could not parse {url}: {e}", {"url": url}) from e

    def parse(self, url: str, markup: Union[str, bytes], encoding: Optional[str] = None) -> Page:
        """
        Extract text and links from HTML.

        Args:
            url: Final URL of the document, used to resolve relative links
            markup: HTML as text or bytes
            encoding: Declared charset when markup is bytes

        Returns:
            Page with visible text and absolute, de-duplicated links
        """
        if isinstance(markup, bytes) and encoding:
            markup = self._decode(markup, encoding)
        soup = BeautifulSoup(markup, self.parser)

        for element in soup(_INVISIBLE_TAGS):
            element.decompose()

        text = soup.get_text(separator=" ")
        links = self._extract_links(soup, url)

        logger.debug(f"Parsed {url}: {len(text)} chars, {len(links)} links")
        return Page(url=url, text=text, links=links)

    @staticmethod
    def _decode(markup: bytes, encoding: str) -> Union[str, bytes]:
        """
        Decode bytes with the charset from the response header.

        Aliases such as "latin-1" go through codecs so the tree builder never
        sees a name it misreads. An unknown charset leaves the bytes to
        BeautifulSoup's own detection.
        """
        try:
            codec = codecs.lookup(encoding).name
        except LookupError:
            logger.debug(f"Unknown charset {encoding!r}, detecting encoding from markup")
            return markup
        return markup.decode(codec, errors="replace")

    def _extract_links(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        base_url = page_url
        base_tag = soup.find("base", href=True)
        if base_tag and base_tag["href"].strip():
            base_url = urljoin(page_url, base_tag["href"].strip())

        links = []
        seen = set()
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href or href.lower().startswith(_SKIPPED_LINK_PREFIXES):
                continue

            absolute = self._resolve(base_url, href)
            if absolute and absolute not in seen:
                seen.add(absolute)
                links.append(absolute)

        return links

    @staticmethod
    def _resolve(base_url: str, href: str) -> Optional[str]:
        try:
            absolute = urldefrag(urljoin(base_url, href)).url
            scheme = urlsplit(absolute).scheme.lower()
        except ValueError:
            return None
        if scheme not in ("http", "https"):
            return None
        return absolute

    def close(self) -> None:
        self.http_client.close()
