"""
Fixed stopword list (Portuguese plus a few common English words).

Entries are stored folded so they compare directly against normalized tokens:
"é" is kept as "e", "não" as "nao".
"""

from typing import FrozenSet, Iterable, Optional

from .normalizer import fold_token


_RAW_STOPWORDS = (
    "a", "o", "e", "de", "em", "para", "com", "sem", "do", "da", "das", "dos",
    "no", "na", "nos", "nas", "se", "ao", "aos", "à", "às", "pelo", "pela",
    "pelos", "pelas", "um", "uma", "uns", "umas", "que", "os", "as", "nós",
    "esta", "está", "mais", "como", "ou", "sobre", "entre", "eles", "ela",
    "ele", "todas", "todos", "sua", "seu", "suas", "seus", "por", "é", "ser",
    "estamos", "foi", "são", "também", "não", "isso", "até", "pode", "podem",
    "essa", "esse", "essas", "esses",
    "the", "to", "and",
)


def build_stopwords(words: Iterable[str]) -> FrozenSet[str]:
    """Fold a list of words into a stopword set."""
    return frozenset(fold_token(word.strip()) for word in words if word and word.strip())


STOPWORDS: FrozenSet[str] = build_stopwords(_RAW_STOPWORDS)


def with_extra_stopwords(extra: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Default stopwords plus configured additions."""
    if not extra:
        return STOPWORDS
    return STOPWORDS | build_stopwords(extra)
