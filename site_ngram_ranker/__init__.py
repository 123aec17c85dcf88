"""
Site N-gram Ranker - crawls a website within one origin and ranks its most
frequent words, word pairs and word triples.
"""

__version__ = "1.0.0"

from .crawl import CrawlBudget, RankedEntry, RankingResult
from .services import NGramRanker, rank_top_ngrams

__all__ = [
    'CrawlBudget',
    'RankedEntry',
    'RankingResult',
    'NGramRanker',
    'rank_top_ngrams'
]
