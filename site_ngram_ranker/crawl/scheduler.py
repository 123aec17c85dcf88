"""
Crawl scheduler: drives one bounded, same-origin crawl and aggregates n-grams.

The scheduling loop is the only consumer of the frontier. Page tasks run on a
thread pool created for the run; each task fetches a page, merges its n-grams
and enqueues new links before it is counted as finished.
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Optional, Tuple

from site_ngram_ranker.analysis import STOPWORDS, iter_ngrams, normalize_text
from site_ngram_ranker.fetchers.base import BaseFetcher
from site_ngram_ranker.utils.logging import get_logger
from site_ngram_ranker.utils.errors import EngineError, FetchError
from .aggregator import FrequencyAggregator
from .frontier import Frontier
from .models import CrawlBudget, CrawlState, CrawlStats, PageResult, PageResultCollector
from .same_origin import SameOriginFilter
from .thread_safe import ThreadSafeCounter


logger = get_logger(__name__)


@dataclass
class CrawlReport:
    """Aggregated counts and diagnostics of a finished run."""
    aggregator: FrequencyAggregator
    stats: CrawlStats


@dataclass
class _RunContext:
    """State owned by a single run and shared with its page tasks."""
    frontier: Frontier
    aggregator: FrequencyAggregator
    same_origin: SameOriginFilter
    results: PageResultCollector = field(default_factory=PageResultCollector)
    in_flight: ThreadSafeCounter = field(default_factory=ThreadSafeCounter)
    futures: List[Future] = field(default_factory=list)


class CrawlScheduler:
    """
    Runs a crawl from a seed URL within the limits of a CrawlBudget.

    States move IDLE -> RUNNING -> DRAINING -> DONE, or to FAILED when the
    run itself breaks. A failing page never fails the run.
    """

    def __init__(self,
                 fetcher: BaseFetcher,
                 budget: CrawlBudget,
                 stopwords: FrozenSet[str] = STOPWORDS,
                 poll_interval: float = 0.05):
        """
        Initialize crawl scheduler.

        Args:
            fetcher: Page fetcher used by every task
            budget: Page, link, timeout and order limits of the run
            stopwords: Folded stopwords excluded from n-grams
            poll_interval: Seconds the loop waits on an empty frontier
        """
        self.fetcher = fetcher
        self.budget = budget
        self.stopwords = stopwords
        self.poll_interval = poll_interval
        self.state = CrawlState.IDLE
        self.last_stats: Optional[CrawlStats] = None

    def run(self, seed_url: str) -> CrawlReport:
        """
        Crawl from seed_url and count n-grams of every fetched page.

        Args:
            seed_url: Absolute http(s) URL; its origin bounds the crawl

        Returns:
            CrawlReport with the run's aggregator and statistics

        Raises:
            EngineError: If the worker pool cannot be used, the loop breaks
                or the wait is interrupted
        """
        budget = self.budget
        ctx = _RunContext(
            frontier=Frontier(budget.max_pages),
            aggregator=FrequencyAggregator(),
            same_origin=SameOriginFilter(seed_url)
        )
        stats = CrawlStats(seed_url=seed_url, started_at=datetime.now())
        self.last_stats = stats
        started = time.monotonic()
        deadline = started + budget.wait_timeout

        logger.info(
            f"Starting crawl of {seed_url}: max_pages={budget.max_pages}, "
            f"order={budget.ngram_order}, workers={budget.max_workers}"
        )

        ctx.frontier.push(seed_url)
        self._set_state(CrawlState.RUNNING)
        executor = ThreadPoolExecutor(max_workers=budget.max_workers, thread_name_prefix="crawl-worker")

        try:
            loop_timed_out = self._dispatch_loop(ctx, executor, deadline)

            self._set_state(CrawlState.DRAINING)
            drain_timed_out = self._drain(ctx, deadline)
            stats.timed_out = loop_timed_out or drain_timed_out

        except EngineError:
            self._set_state(CrawlState.FAILED)
            raise
        except KeyboardInterrupt as e:
            self._set_state(CrawlState.FAILED)
            raise EngineError(f"Crawl of {seed_url} interrupted", {"seed_url": seed_url}) from e
        except Exception as e:
            self._set_state(CrawlState.FAILED)
            raise EngineError(f"Crawl of {seed_url} failed: {e}", {"seed_url": seed_url}) from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
            ctx.aggregator.close()
            self._fill_stats(stats, ctx, time.monotonic() - started)
            logger.debug(f"Page summary for {seed_url}: {ctx.results.get_summary()}")
            stats.state = self.state

        self._set_state(CrawlState.DONE)
        stats.state = self.state

        logger.info(
            f"Crawl of {seed_url} finished: {stats.pages_fetched} fetched, "
            f"{stats.pages_failed} failed, {stats.distinct_ngrams} distinct n-grams "
            f"in {stats.elapsed_seconds:.2f}s"
        )
        return CrawlReport(aggregator=ctx.aggregator, stats=stats)

    def _dispatch_loop(self, ctx: _RunContext, executor: ThreadPoolExecutor, deadline: float) -> bool:
        """
        Hand frontier URLs to the pool until budget, frontier or time runs out.

        Returns:
            True if the loop stopped because the deadline passed
        """
        frontier = ctx.frontier

        while frontier.has_budget():
            if time.monotonic() >= deadline:
                logger.warning(f"Crawl deadline reached with {ctx.in_flight.get_value()} pages in flight")
                return True

            url = frontier.next_url(timeout=self.poll_interval)
            if url is None:
                if ctx.in_flight.get_value() == 0 and frontier.is_empty():
                    logger.debug("Frontier exhausted")
                    break
                continue

            if not frontier.try_dispatch(url):
                continue

            ctx.in_flight.increment()
            try:
                ctx.futures.append(executor.submit(self._process_page, ctx, url))
            except RuntimeError as e:
                ctx.in_flight.decrement()
                raise EngineError(f"Worker pool rejected page task for {url}", {"url": url}) from e

            logger.debug(f"Dispatched {url} ({frontier.dispatched_count}/{frontier.max_pages})")

        return False

    def _drain(self, ctx: _RunContext, deadline: float) -> bool:
        """
        Wait for in-flight page tasks, bounded by the run deadline.

        Returns:
            True if some tasks were abandoned
        """
        remaining = max(0.0, deadline - time.monotonic())
        _, not_done = wait(ctx.futures, timeout=remaining)

        if not_done:
            logger.warning(f"Abandoning {len(not_done)} unfinished page tasks after timeout")
            return True
        return False

    def _process_page(self, ctx: _RunContext, url: str) -> PageResult:
        """Fetch one page, count its n-grams and enqueue its links."""
        start_time = time.monotonic()

        try:
            try:
                ngrams_counted, links_enqueued = self._crawl_page(ctx, url)
                result = PageResult(
                    url=url,
                    success=True,
                    ngrams_counted=ngrams_counted,
                    links_enqueued=links_enqueued,
                    execution_time=time.monotonic() - start_time
                )
                logger.info(f"Processed {url}: {ngrams_counted} n-grams, {links_enqueued} links enqueued")

            except FetchError as e:
                result = self._failed_result(url, e, start_time)
                logger.warning(f"Fetch failed for {url}: {e}")
            except Exception as e:
                result = self._failed_result(url, e, start_time)
                logger.error(f"Unexpected error processing {url}: {type(e).__name__}: {e}")

            ctx.results.add_result(result)
            return result

        finally:
            ctx.in_flight.decrement()

    def _crawl_page(self, ctx: _RunContext, url: str) -> Tuple[int, int]:
        page = self.fetcher.fetch(url, self.budget.fetch_timeout)

        normalized = normalize_text(page.text)
        ngrams_counted = ctx.aggregator.merge(
            iter_ngrams(normalized, self.budget.ngram_order, self.stopwords)
        )

        links_enqueued = ctx.frontier.offer_links(
            page.links,
            ctx.same_origin,
            self.budget.max_links_per_page
        )
        return ngrams_counted, links_enqueued

    @staticmethod
    def _failed_result(url: str, error: Exception, start_time: float) -> PageResult:
        return PageResult(
            url=url,
            success=False,
            execution_time=time.monotonic() - start_time,
            error_message=str(error) or type(error).__name__
        )

    @staticmethod
    def _fill_stats(stats: CrawlStats, ctx: _RunContext, elapsed: float) -> None:
        results = ctx.results.get_all_results()
        failures = ctx.results.get_failures()

        stats.pages_dispatched = ctx.frontier.dispatched_count
        stats.pages_fetched = len(results) - len(failures)
        stats.pages_failed = len(failures)
        stats.failures = [{"url": result.url, "error": result.error_message} for result in failures]
        stats.distinct_ngrams = len(ctx.aggregator)
        stats.elapsed_seconds = elapsed
        stats.completed_at = datetime.now()

    def _set_state(self, state: CrawlState) -> None:
        logger.debug(f"Crawl state {self.state.value} -> {state.value}")
        self.state = state
