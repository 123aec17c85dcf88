"""
Data models for the crawl-and-aggregate engine.
"""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from site_ngram_ranker.utils.errors import ValidationError


class CrawlState(Enum):
    """Lifecycle of one crawl run."""
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class CrawlBudget:
    """Immutable per-run limits."""
    max_pages: int = 5
    max_links_per_page: int = 5
    fetch_timeout: float = 5.0
    ngram_order: int = 1
    result_limit: int = 20
    max_workers: int = 5
    wait_timeout: float = 300.0

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate budget parameters.

        Raises:
            ValidationError: If any limit is out of range
        """
        errors = []

        if self.max_pages < 1:
            errors.append("max_pages must be at least 1")

        if self.max_links_per_page < 0:
            errors.append("max_links_per_page must not be negative")

        if self.fetch_timeout <= 0:
            errors.append("fetch_timeout must be positive")

        if self.ngram_order not in (1, 2, 3):
            errors.append("ngram_order must be 1, 2 or 3")

        if self.result_limit < 1:
            errors.append("result_limit must be at least 1")

        if not (1 <= self.max_workers <= 50):
            errors.append("max_workers must be between 1 and 50")

        if self.wait_timeout <= 0:
            errors.append("wait_timeout must be positive")

        if errors:
            raise ValidationError(
                "Crawl budget validation failed",
                {"errors": errors}
            )

    def with_order(self, order: int) -> 'CrawlBudget':
        """Copy of this budget for another n-gram order."""
        if order == self.ngram_order:
            return self
        return replace(self, ngram_order=order)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_pages": self.max_pages,
            "max_links_per_page": self.max_links_per_page,
            "fetch_timeout": self.fetch_timeout,
            "ngram_order": self.ngram_order,
            "result_limit": self.result_limit,
            "max_workers": self.max_workers,
            "wait_timeout": self.wait_timeout
        }


@dataclass
class PageResult:
    """Outcome of processing one page."""
    url: str
    success: bool
    ngrams_counted: int = 0
    links_enqueued: int = 0
    execution_time: float = 0.0
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class CrawlStats:
    """Diagnostics of a finished (or aborted) run."""
    seed_url: str
    state: CrawlState = CrawlState.IDLE
    pages_dispatched: int = 0
    pages_fetched: int = 0
    pages_failed: int = 0
    distinct_ngrams: int = 0
    elapsed_seconds: float = 0.0
    timed_out: bool = False
    failures: List[Dict[str, str]] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed_url": self.seed_url,
            "state": self.state.value,
            "pages_dispatched": self.pages_dispatched,
            "pages_fetched": self.pages_fetched,
            "pages_failed": self.pages_failed,
            "distinct_ngrams": self.distinct_ngrams,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "timed_out": self.timed_out,
            "failures": list(self.failures),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None
        }


@dataclass(frozen=True)
class RankedEntry:
    """One n-gram of the ranked result."""
    ngram: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"ngram": self.ngram, "count": self.count}


@dataclass
class RankingResult:
    """
    Outcome of rank_top_ngrams.

    Either success with the ranked entries, or failure with a reason. A failed
    run never carries entries.
    """
    success: bool
    seed_url: str
    order: int
    entries: List[RankedEntry] = field(default_factory=list)
    error_message: Optional[str] = None
    stats: Optional[CrawlStats] = None

    @classmethod
    def ok(cls, seed_url: str, order: int, entries: List[RankedEntry],
           stats: Optional[CrawlStats] = None) -> 'RankingResult':
        return cls(success=True, seed_url=seed_url, order=order, entries=entries, stats=stats)

    @classmethod
    def failure(cls, seed_url: str, order: int, error_message: str,
                stats: Optional[CrawlStats] = None) -> 'RankingResult':
        return cls(success=False, seed_url=seed_url, order=order,
                   error_message=error_message, stats=stats)

    def as_pairs(self) -> List[tuple]:
        """Entries as plain (ngram, count) tuples."""
        return [(entry.ngram, entry.count) for entry in self.entries]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "url": self.seed_url,
            "order": self.order,
        }
        if self.success:
            data["ngrams"] = [entry.to_dict() for entry in self.entries]
        else:
            data["error"] = self.error_message
        data["stats"] = self.stats.to_dict() if self.stats else None
        return data


class PageResultCollector:
    """Thread-safe collector for page results."""

    def __init__(self):
        self._results: List[PageResult] = []
        self._lock = threading.Lock()

    def add_result(self, result: PageResult) -> None:
        with self._lock:
            self._results.append(result)

    def get_all_results(self) -> List[PageResult]:
        with self._lock:
            return self._results.copy()

    def get_failures(self) -> List[PageResult]:
        with self._lock:
            return [result for result in self._results if not result.success]

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary statistics of all page results.

        Returns:
            Dictionary with counts and timing
        """
        with self._lock:
            successful = [r for r in self._results if r.success]
            total_time = sum(r.execution_time for r in self._results)

            return {
                "total_pages": len(self._results),
                "successful_pages": len(successful),
                "failed_pages": len(self._results) - len(successful),
                "ngrams_counted": sum(r.ngrams_counted for r in successful),
                "links_enqueued": sum(r.links_enqueued for r in successful),
                "average_page_time": (total_time / len(self._results)) if self._results else 0.0
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
