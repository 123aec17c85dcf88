"""
Tests for the crawl scheduler: budgets, same-origin bounds, failure isolation
and timeouts.

**Property: A failing page never fails the run**
"""

import time
from unittest.mock import MagicMock, patch

import pytest

# Add project root to path
import sys
from pathlib import Path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from conftest import FakeFetcher, clique_site, make_page
from site_ngram_ranker.crawl.models import CrawlBudget, CrawlState
from site_ngram_ranker.crawl.scheduler import CrawlScheduler
from site_ngram_ranker.utils.errors import EngineError, FetchError, ValidationError


SEED = "https://site.test/page0"


def run_crawl(pages, seed=SEED, **budget_args):
    fetcher = FakeFetcher(pages, slow_urls=budget_args.pop("slow_urls", None))
    scheduler = CrawlScheduler(fetcher, CrawlBudget(**budget_args), poll_interval=0.01)
    report = scheduler.run(seed)
    return scheduler, fetcher, report


def hub_site(failing=None):
    """Seed page linking to four leaf pages; `failing` maps leaf index to an exception."""
    failing = failing or {}
    leaves = [f"https://site.test/leaf{i}" for i in range(4)]
    pages = {SEED: make_page(SEED, "Pagina inicial sobre praias", leaves)}
    for i, url in enumerate(leaves):
        pages[url] = failing.get(i, make_page(url, f"Folha praias areia {i}"))
    return pages


class TestCrawlBudgetValidation:
    """Test budget validation."""

    def test_defaults(self):
        budget = CrawlBudget()

        assert budget.max_pages == 5
        assert budget.max_links_per_page == 5
        assert budget.ngram_order == 1
        assert budget.result_limit == 20
        assert budget.max_workers == 5

    @pytest.mark.parametrize("field_name,value", [
        ("max_pages", 0),
        ("max_links_per_page", -1),
        ("fetch_timeout", 0),
        ("ngram_order", 4),
        ("result_limit", 0),
        ("max_workers", 0),
        ("max_workers", 51),
        ("wait_timeout", -1),
    ])
    def test_invalid_values(self, field_name, value):
        with pytest.raises(ValidationError) as exc_info:
            CrawlBudget(**{field_name: value})
        assert exc_info.value.details["errors"]

    def test_with_order(self):
        budget = CrawlBudget(max_pages=3)

        assert budget.with_order(1) is budget
        assert budget.with_order(2).ngram_order == 2
        assert budget.with_order(2).max_pages == 3


class TestCrawlBudgets:
    """Test that budgets bound the crawl."""

    def test_single_page_budget_fetches_only_seed(self, clique_pages):
        scheduler, fetcher, report = run_crawl(clique_pages, max_pages=1)

        assert fetcher.fetched == [SEED]
        assert report.stats.pages_dispatched == 1
        assert report.stats.pages_fetched == 1
        assert scheduler.state == CrawlState.DONE
        assert report.stats.state == CrawlState.DONE

    def test_budget_three_over_clique_fetches_three_distinct_pages(self, clique_pages):
        _, fetcher, report = run_crawl(clique_pages, max_pages=3)

        assert len(fetcher.fetched) == 3
        assert len(set(fetcher.fetched)) == 3
        assert report.stats.pages_dispatched == 3

    def test_whole_site_within_budget(self):
        _, fetcher, report = run_crawl(clique_site(4), max_pages=10)

        assert sorted(fetcher.fetched) == sorted(clique_site(4))
        assert report.stats.pages_fetched == 4
        assert report.aggregator.count("Conteudo") == 4

    def test_links_per_page_cap(self):
        links = [f"https://site.test/p{i}" for i in range(10)]
        pages = {SEED: make_page(SEED, "inicio", links)}
        pages.update({url: make_page(url, "folha") for url in links})

        _, fetcher, _ = run_crawl(pages, max_pages=10, max_links_per_page=2)

        assert sorted(fetcher.fetched) == sorted([SEED, links[0], links[1]])

    def test_zero_links_per_page_fetches_seed_only(self, clique_pages):
        _, fetcher, _ = run_crawl(clique_pages, max_pages=10, max_links_per_page=0)

        assert fetcher.fetched == [SEED]

    def test_other_origins_are_never_fetched(self):
        pages = {
            SEED: make_page(SEED, "inicio", [
                "https://other.test/x",
                "http://site.test/insecure",
                "https://site.test/ok"
            ]),
            "https://site.test/ok": make_page("https://site.test/ok", "pagina")
        }

        _, fetcher, _ = run_crawl(pages, max_pages=10)

        assert sorted(fetcher.fetched) == sorted([SEED, "https://site.test/ok"])

    def test_one_page_under_several_spellings_is_fetched_once(self):
        home = "https://site.test/"
        pages = {
            home: make_page(home, "O Brasil tem praias", [
                "https://site.test/",
                "https://SITE.test:443/#topo",
                "https://site.test"
            ])
        }

        _, fetcher, report = run_crawl(pages, seed="https://site.test", max_pages=5)

        assert fetcher.fetched == [home]
        assert report.stats.pages_dispatched == 1
        assert report.aggregator.count("Brasil") == 1

    def test_case_variants_across_pages_stay_separate(self):
        other = "https://site.test/outra"
        pages = {
            SEED: make_page(SEED, "Brasil praias", [other]),
            other: make_page(other, "BRASIL praias")
        }

        _, _, report = run_crawl(pages, max_pages=2)

        assert report.aggregator.count("Brasil") == 1
        assert report.aggregator.count("BRASIL") == 1
        assert report.aggregator.count("praias") == 2

    def test_counts_are_deterministic(self):
        _, _, first = run_crawl(clique_site(5), max_pages=10)
        _, _, second = run_crawl(clique_site(5), max_pages=10)

        assert first.aggregator.snapshot() == second.aggregator.snapshot()


class TestFailureIsolation:
    """Test per-page failure handling."""

    def test_one_timeout_among_five_pages(self):
        pages = hub_site({2: FetchError("Request timeout for https://site.test/leaf2")})

        scheduler, fetcher, report = run_crawl(pages, max_pages=5)

        assert len(fetcher.fetched) == 5
        assert report.stats.pages_failed == 1
        assert report.stats.pages_fetched == 4
        assert report.stats.failures[0]["url"] == "https://site.test/leaf2"
        assert "timeout" in report.stats.failures[0]["error"]
        assert report.aggregator.count("praias") == 4
        assert scheduler.state == CrawlState.DONE

    def test_unexpected_exception_counts_as_failed_page(self):
        pages = hub_site({0: ValueError("broken markup")})

        _, _, report = run_crawl(pages, max_pages=5)

        assert report.stats.pages_failed == 1
        assert report.stats.failures[0]["error"] == "broken markup"

    def test_failed_seed_gives_empty_result(self):
        pages = {SEED: FetchError("HTTP 500 for seed")}

        scheduler, _, report = run_crawl(pages, max_pages=5)

        assert len(report.aggregator) == 0
        assert report.stats.pages_failed == 1
        assert scheduler.state == CrawlState.DONE


class TestTimeoutsAndFailures:
    """Test the global deadline and run-level failures."""

    def test_deadline_abandons_slow_page(self):
        pages = {SEED: make_page(SEED, "pagina lenta")}

        started = time.monotonic()
        scheduler, _, report = run_crawl(pages, max_pages=2, wait_timeout=0.3, slow_urls={SEED: 1.5})
        elapsed = time.monotonic() - started

        assert elapsed < 1.5
        assert report.stats.timed_out
        assert report.stats.pages_fetched == 0
        assert len(report.aggregator) == 0
        assert scheduler.state == CrawlState.DONE

        # The abandoned task finishing later cannot change the result
        time.sleep(1.5)
        assert len(report.aggregator) == 0

    def test_pool_rejection_fails_run(self, clique_pages):
        executor = MagicMock()
        executor.submit.side_effect = RuntimeError("cannot schedule new futures after shutdown")
        scheduler = CrawlScheduler(FakeFetcher(clique_pages), CrawlBudget(), poll_interval=0.01)

        with patch("site_ngram_ranker.crawl.scheduler.ThreadPoolExecutor", return_value=executor):
            with pytest.raises(EngineError):
                scheduler.run(SEED)

        assert scheduler.state == CrawlState.FAILED
        assert scheduler.last_stats.state == CrawlState.FAILED
        executor.shutdown.assert_called_once_with(wait=False, cancel_futures=True)

    def test_interrupted_wait_fails_run(self, clique_pages):
        scheduler = CrawlScheduler(FakeFetcher(clique_pages), CrawlBudget(max_pages=1), poll_interval=0.01)

        with patch("site_ngram_ranker.crawl.scheduler.wait", side_effect=KeyboardInterrupt):
            with pytest.raises(EngineError) as exc_info:
                scheduler.run(SEED)

        assert "interrupted" in exc_info.value.message
        assert scheduler.state == CrawlState.FAILED
        assert scheduler.last_stats.state == CrawlState.FAILED

    def test_stats_serialization(self, clique_pages):
        _, _, report = run_crawl(clique_pages, max_pages=2)

        data = report.stats.to_dict()
        assert data["state"] == "done"
        assert data["pages_dispatched"] == 2
        assert data["seed_url"] == SEED
        assert data["completed_at"] is not None
