"""
Shared frequency map for one crawl run.
"""

import heapq
import threading
from collections import Counter
from typing import Dict, Iterable, List, Tuple


class FrequencyAggregator:
    """
    Thread-safe n-gram counter shared by all page tasks of a run.

    Each key remembers when it was first seen, which is the tie-break for
    equal counts in top_k.
    """

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._first_seen: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._closed = False

    def merge(self, ngrams: Iterable[str]) -> int:
        """
        Add one occurrence per item to the shared counts.

        The iterable is consumed outside the lock; all increments for the
        batch are then applied together.

        Args:
            ngrams: N-grams of one page (may be a one-shot generator)

        Returns:
            Number of occurrences merged (0 once the aggregator is closed)
        """
        local_counts = Counter(ngrams)
        if not local_counts:
            return 0

        with self._lock:
            if self._closed:
                return 0
            for ngram, count in local_counts.items():
                if ngram not in self._counts:
                    self._first_seen[ngram] = len(self._first_seen)
                    self._counts[ngram] = count
                else:
                    self._counts[ngram] += count

        return sum(local_counts.values())

    def close(self) -> None:
        """Reject all further merges; counts are frozen from here on."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def count(self, ngram: str) -> int:
        with self._lock:
            return self._counts.get(ngram, 0)

    def top_k(self, k: int) -> List[Tuple[str, int]]:
        """
        Highest-count entries, count descending, first-seen order on ties.

        Args:
            k: Maximum number of entries

        Returns:
            List of (ngram, count) pairs
        """
        if k <= 0:
            return []

        with self._lock:
            items = [(ngram, count, self._first_seen[ngram]) for ngram, count in self._counts.items()]

        best = heapq.nsmallest(k, items, key=lambda item: (-item[1], item[2]))
        return [(ngram, count) for ngram, count, _ in best]

    def snapshot(self) -> Dict[str, int]:
        """Copy of the counts in first-seen order."""
        with self._lock:
            return dict(self._counts)

    def total(self) -> int:
        """Total number of counted occurrences."""
        with self._lock:
            return sum(self._counts.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def __repr__(self) -> str:
        return f"FrequencyAggregator(distinct={len(self)})"
