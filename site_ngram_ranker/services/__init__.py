"""
Services exposing the crawl engine: the ranker and its HTTP API.
"""

from .ranker import NGramRanker, rank_top_ngrams, validate_seed_url
from .api import create_app, serve

__all__ = [
    'NGramRanker',
    'rank_top_ngrams',
    'validate_seed_url',
    'create_app',
    'serve'
]
