"""
Text analysis: normalization, stopwords and n-gram windowing.
"""

from .normalizer import NormalizedText, normalize_text, fold_token, clean_text
from .stopwords import STOPWORDS, build_stopwords, with_extra_stopwords
from .ngrams import (
    SUPPORTED_ORDERS,
    iter_ngrams,
    extract_ngrams,
    validate_order,
    is_admissible_window,
    is_valid_ngram
)

__all__ = [
    'NormalizedText',
    'normalize_text',
    'fold_token',
    'clean_text',
    'STOPWORDS',
    'build_stopwords',
    'with_extra_stopwords',
    'SUPPORTED_ORDERS',
    'iter_ngrams',
    'extract_ngrams',
    'validate_order',
    'is_admissible_window',
    'is_valid_ngram'
]
