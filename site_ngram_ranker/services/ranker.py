"""
Ranking service: crawl a site and return its most frequent n-grams.
"""

from typing import FrozenSet, Optional

from site_ngram_ranker.analysis import STOPWORDS, validate_order
from site_ngram_ranker.crawl import (
    CrawlBudget,
    CrawlScheduler,
    RankedEntry,
    RankingResult,
    origin_of
)
from site_ngram_ranker.fetchers import BaseFetcher, PageFetcher
from site_ngram_ranker.utils.logging import get_logger
from site_ngram_ranker.utils.errors import EngineError, ValidationError, handle_error


logger = get_logger(__name__)


def validate_seed_url(seed_url: str) -> None:
    """
    Check that seed_url is an absolute http(s) URL with a host.

    Raises:
        ValidationError: If the URL cannot seed a crawl
    """
    if not isinstance(seed_url, str) or origin_of(seed_url.strip()) is None:
        raise ValidationError(
            f"Invalid seed URL: {seed_url!r}",
            {"url": seed_url, "reason": "expected an absolute http(s) URL"}
        )


class NGramRanker:
    """
    Ranks the n-grams of a site with a shared fetcher and default budget.

    One instance can serve many rankings, including concurrent ones: every
    call gets its own scheduler, frontier and frequency map.
    """

    def __init__(self,
                 fetcher: Optional[BaseFetcher] = None,
                 budget: Optional[CrawlBudget] = None,
                 stopwords: FrozenSet[str] = STOPWORDS):
        """
        Args:
            fetcher: Page fetcher (an HTTP PageFetcher if omitted)
            budget: Default crawl budget
            stopwords: Folded stopwords excluded from n-grams
        """
        self.fetcher = fetcher or PageFetcher()
        self.budget = budget or CrawlBudget()
        self.stopwords = stopwords

    def rank(self, seed_url: str, order: Optional[int] = None,
             budget: Optional[CrawlBudget] = None) -> RankingResult:
        """
        Crawl from seed_url and rank the n-grams of the fetched pages.

        Args:
            seed_url: Absolute http(s) URL that starts and bounds the crawl
            order: N-gram order 1, 2 or 3 (defaults to the budget's order)
            budget: Budget for this call (defaults to the ranker's budget)

        Returns:
            RankingResult; a failed result when the run itself broke

        Raises:
            ValidationError: If order or seed_url is invalid
        """
        budget = budget or self.budget
        order = budget.ngram_order if order is None else order
        validate_order(order)
        validate_seed_url(seed_url)

        seed_url = seed_url.strip()
        budget = budget.with_order(order)
        scheduler = CrawlScheduler(self.fetcher, budget, self.stopwords)

        try:
            report = scheduler.run(seed_url)
        except EngineError as e:
            handle_error(e, logger, {"seed_url": seed_url, "order": order}, reraise=False)
            return RankingResult.failure(seed_url, order, e.message, stats=scheduler.last_stats)

        entries = [
            RankedEntry(ngram=ngram, count=count)
            for ngram, count in report.aggregator.top_k(budget.result_limit)
        ]
        return RankingResult.ok(seed_url, order, entries, stats=report.stats)

    def close(self) -> None:
        self.fetcher.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def rank_top_ngrams(seed_url: str, order: int,
                    budget: Optional[CrawlBudget] = None,
                    fetcher: Optional[BaseFetcher] = None) -> RankingResult:
    """
    Rank the top n-grams of the site at seed_url.

    Args:
        seed_url: Absolute http(s) URL to start from
        order: N-gram order 1, 2 or 3
        budget: Crawl limits (defaults apply if omitted)
        fetcher: Page fetcher (a fresh HTTP fetcher is used and closed if omitted)

    Returns:
        RankingResult with at most budget.result_limit entries

    Raises:
        ValidationError: If order or seed_url is invalid
    """
    if fetcher is not None:
        return NGramRanker(fetcher, budget).rank(seed_url, order)

    validate_order(order)
    validate_seed_url(seed_url)
    with NGramRanker(budget=budget) as ranker:
        return ranker.rank(seed_url, order)
