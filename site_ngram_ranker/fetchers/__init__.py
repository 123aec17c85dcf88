"""
Page fetchers: the contract the crawler depends on and its HTTP implementation.
"""

from .base import BaseFetcher, Page
from .http_client import HTTPClient, FetchedDocument, UserAgentRotator
from .page_fetcher import PageFetcher

__all__ = [
    'BaseFetcher',
    'Page',
    'HTTPClient',
    'FetchedDocument',
    'UserAgentRotator',
    'PageFetcher'
]
