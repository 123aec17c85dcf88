"""
Concurrent same-origin crawl engine.

This module provides the frontier, the shared frequency map and the
scheduler that drives a bounded crawl on a thread pool.
"""

from .models import (
    CrawlState,
    CrawlBudget,
    PageResult,
    CrawlStats,
    RankedEntry,
    RankingResult,
    PageResultCollector
)
from .thread_safe import ThreadSafeCounter, ThreadSafeQueue, ThreadSafeSet
from .same_origin import Origin, SameOriginFilter, canonicalize_url, origin_of, is_same_origin
from .aggregator import FrequencyAggregator
from .frontier import Frontier
from .scheduler import CrawlScheduler, CrawlReport

__all__ = [
    'CrawlState',
    'CrawlBudget',
    'PageResult',
    'CrawlStats',
    'RankedEntry',
    'RankingResult',
    'PageResultCollector',
    'ThreadSafeCounter',
    'ThreadSafeQueue',
    'ThreadSafeSet',
    'Origin',
    'SameOriginFilter',
    'canonicalize_url',
    'origin_of',
    'is_same_origin',
    'FrequencyAggregator',
    'Frontier',
    'CrawlScheduler',
    'CrawlReport'
]
