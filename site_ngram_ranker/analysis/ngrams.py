"""
N-gram windowing with a single admissibility policy for every order.
"""

import re
from typing import AbstractSet, Iterator, Sequence

from site_ngram_ranker.utils.errors import ValidationError
from .normalizer import NormalizedText, normalize_text
from .stopwords import STOPWORDS


SUPPORTED_ORDERS = (1, 2, 3)
MIN_TOKEN_LENGTH = 3

_DIGIT = re.compile(r"\d")
_DOUBLE_SPACE = re.compile(r"\s\s")


def validate_order(n: int) -> int:
    """
    Check an n-gram order.

    Raises:
        ValidationError: If n is not 1, 2 or 3
    """
    if isinstance(n, bool) or n not in SUPPORTED_ORDERS:
        raise ValidationError(
            f"Unsupported n-gram order: {n!r}",
            {"supported_orders": list(SUPPORTED_ORDERS)}
        )
    return n


def is_admissible_window(tokens: Sequence[str], stopwords: AbstractSet[str] = STOPWORDS) -> bool:
    """A window is counted only if every token is long enough and none is a stopword."""
    return not any(len(token) < MIN_TOKEN_LENGTH or token in stopwords for token in tokens)


def is_valid_ngram(ngram: str) -> bool:
    """Reject rebuilt n-grams with digits, no content, or doubled spacing."""
    return bool(ngram.strip()) and not _DIGIT.search(ngram) and not _DOUBLE_SPACE.search(ngram)


def iter_ngrams(
    normalized: NormalizedText,
    n: int,
    stopwords: AbstractSet[str] = STOPWORDS
) -> Iterator[str]:
    """
    Yield the admissible n-grams of one page in their original surface form.

    Args:
        normalized: Output of normalize_text for the page
        n: Window width (1, 2 or 3)
        stopwords: Folded stopword set

    Yields:
        Space-joined original-form n-grams, in document order
    """
    validate_order(n)
    tokens = normalized.tokens

    for start in range(len(tokens) - n + 1):
        window = tokens[start:start + n]
        if not is_admissible_window(window, stopwords):
            continue

        ngram = " ".join(normalized.original_form(token) for token in window)
        if is_valid_ngram(ngram):
            yield ngram


def extract_ngrams(
    text: str,
    n: int,
    stopwords: AbstractSet[str] = STOPWORDS
) -> Iterator[str]:
    """Normalize raw page text and window it in one step."""
    validate_order(n)
    return iter_ngrams(normalize_text(text), n, stopwords)
