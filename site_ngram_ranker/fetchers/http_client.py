"""
HTTP client for page fetching: browser-like headers, bounded reads, no retries.
"""

import random
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from site_ngram_ranker.utils.logging import get_logger
from site_ngram_ranker.utils.errors import FetchError


logger = get_logger(__name__)


DEFAULT_USER_AGENTS = [
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0',
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
]

HTML_CONTENT_TYPES = ('text/html', 'application/xhtml+xml', 'text/plain')
MAX_REDIRECTS = 10


@dataclass
class FetchedDocument:
    """Raw response body of a successful request."""
    url: str
    status_code: int
    content: bytes
    content_type: str
    encoding: Optional[str] = None


class UserAgentRotator:
    """Picks a user agent per request."""

    def __init__(self, user_agents: Optional[List[str]] = None):
        self.user_agents = list(user_agents or DEFAULT_USER_AGENTS)

    def get_random_user_agent(self) -> str:
        return random.choice(self.user_agents)


class HTTPClient:
    """Thin wrapper over a requests session shared by all worker threads."""

    def __init__(self,
                 user_agents: Optional[List[str]] = None,
                 timeout: float = 5.0,
                 max_content_bytes: int = 10 * 1024 * 1024,
                 pool_size: int = 10,
                 verify_ssl: bool = True):
        """
        Initialize HTTP client.

        Args:
            user_agents: User agents to rotate through
            timeout: Default request timeout in seconds
            max_content_bytes: Bodies larger than this are rejected
            pool_size: Connection pool size per host
            verify_ssl: Verify TLS certificates
        """
        self.timeout = timeout
        self.max_content_bytes = max_content_bytes
        self.pool_size = pool_size
        self.verify_ssl = verify_ssl
        self.user_agent_rotator = UserAgentRotator(user_agents)
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session; failed requests are never retried."""
        session = requests.Session()

        adapter = HTTPAdapter(
            max_retries=Retry(total=0),
            pool_connections=self.pool_size,
            pool_maxsize=self.pool_size
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.max_redirects = MAX_REDIRECTS

        return session

    def get(self, url: str, timeout: Optional[float] = None,
            headers: Optional[Dict[str, str]] = None) -> FetchedDocument:
        """
        Perform a GET request and read the body.

        Args:
            url: URL to request
            timeout: Request timeout in seconds (defaults to client timeout)
            headers: Additional headers

        Returns:
            FetchedDocument for a 2xx HTML/text response

        Raises:
            FetchError: If the request fails or the response is unusable
        """
        timeout = timeout or self.timeout
        logger.debug(f"GET {url} (timeout={timeout}s)")

        try:
            with self.session.get(
                url,
                headers=self._prepare_headers(headers),
                timeout=timeout,
                stream=True,
                verify=self.verify_ssl
            ) as response:
                response.raise_for_status()

                content_type = response.headers.get('Content-Type', '').lower()
                if content_type and not any(kind in content_type for kind in HTML_CONTENT_TYPES):
                    raise FetchError(
                        f"Unsupported content type for {url}: {content_type}",
                        {"url": url, "content_type": content_type}
                    )

                content = self._read_limited(response, url)
                encoding = response.encoding if 'charset=' in content_type else None

                logger.debug(f"Fetched {response.url}: status={response.status_code}, size={len(content)}")
                return FetchedDocument(
                    url=response.url,
                    status_code=response.status_code,
                    content=content,
                    content_type=content_type,
                    encoding=encoding
                )

        except requests.exceptions.Timeout as e:
            raise FetchError(f"Request timeout for {url}", {"url": url, "timeout": timeout}) from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(f"HTTP {status} for {url}", {"url": url, "status_code": status}) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request failed for {url}: {e}", {"url": url}) from e

    def _read_limited(self, response: requests.Response, url: str) -> bytes:
        """Read the body, refusing anything above max_content_bytes."""
        declared = response.headers.get('Content-Length')
        if declared and declared.isdigit() and int(declared) > self.max_content_bytes:
            raise FetchError(f"Content too large for {url}: {declared} bytes", {"url": url})

        chunks = []
        size = 0
        for chunk in response.iter_content(chunk_size=8192):
            size += len(chunk)
            if size > self.max_content_bytes:
                raise FetchError(f"Content exceeded size limit for {url}", {"url": url})
            chunks.append(chunk)

        return b"".join(chunks)

    def _prepare_headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        default_headers = {
            'User-Agent': self.user_agent_rotator.get_random_user_agent(),
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'pt-BR,pt;q=0.9,en;q=0.8',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
        }

        if headers:
            return {**default_headers, **headers}
        return default_headers

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
