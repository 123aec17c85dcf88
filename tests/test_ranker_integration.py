"""
Integration tests for the ranking service.

**Property: Failures surface as failed results, never as fake n-grams**
"""

from unittest.mock import MagicMock, patch

import pytest

# Add project root to path
import sys
from pathlib import Path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from conftest import FakeFetcher, clique_site
from site_ngram_ranker import CrawlBudget, NGramRanker, RankedEntry, rank_top_ngrams
from site_ngram_ranker.analysis import with_extra_stopwords
from site_ngram_ranker.utils.errors import EngineError, ValidationError


BRASIL_URL = "https://brasil.test/"


class TestRankTopNgrams:
    """Test the ranking entry point end to end with an in-memory site."""

    def test_known_page_unigrams(self, brasil_site):
        result = rank_top_ngrams(BRASIL_URL, 1, CrawlBudget(max_pages=1), FakeFetcher(brasil_site))

        assert result.success
        assert result.as_pairs() == [("Brasil", 2), ("país", 1), ("tem", 1), ("praias", 1)]
        assert result.stats.pages_fetched == 1

    def test_top_one(self, brasil_site):
        result = rank_top_ngrams(
            BRASIL_URL, 1, CrawlBudget(max_pages=1, result_limit=1), FakeFetcher(brasil_site)
        )

        assert result.entries == [RankedEntry("Brasil", 2)]

    def test_known_page_bigrams_and_trigrams(self, brasil_site):
        bigrams = rank_top_ngrams(BRASIL_URL, 2, fetcher=FakeFetcher(brasil_site))
        trigrams = rank_top_ngrams(BRASIL_URL, 3, fetcher=FakeFetcher(brasil_site))

        assert bigrams.as_pairs() == [("Brasil tem", 1), ("tem praias", 1)]
        assert trigrams.as_pairs() == [("Brasil tem praias", 1)]

    def test_counts_across_pages(self):
        result = rank_top_ngrams(
            "https://site.test/page0", 1, CrawlBudget(max_pages=10), FakeFetcher(clique_site(4))
        )

        assert result.as_pairs()[:2] == [("Conteudo", 4), ("pagina", 4)]

    def test_result_limit_caps_entries(self):
        result = rank_top_ngrams(
            "https://site.test/page0", 1, CrawlBudget(max_pages=10, result_limit=2),
            FakeFetcher(clique_site(4))
        )

        assert len(result.entries) == 2

    @pytest.mark.parametrize("order", [0, 4, "1"])
    def test_invalid_order(self, order, brasil_site):
        with pytest.raises(ValidationError):
            rank_top_ngrams(BRASIL_URL, order, fetcher=FakeFetcher(brasil_site))

    @pytest.mark.parametrize("url", ["", "brasil.test", "ftp://brasil.test/", "https://"])
    def test_invalid_seed_url(self, url, brasil_site):
        with pytest.raises(ValidationError):
            rank_top_ngrams(url, 1, fetcher=FakeFetcher(brasil_site))

    def test_unreachable_seed_is_empty_success(self):
        result = rank_top_ngrams(BRASIL_URL, 1, fetcher=FakeFetcher({}))

        assert result.success
        assert result.entries == []
        assert result.stats.pages_failed == 1

    def test_default_fetcher_is_created_and_closed(self, brasil_site):
        fake = FakeFetcher(brasil_site)

        with patch("site_ngram_ranker.services.ranker.PageFetcher", return_value=fake):
            result = rank_top_ngrams(BRASIL_URL, 1)

        assert result.success
        assert fake.closed


class TestNGramRanker:
    """Test the ranker class."""

    def test_engine_failure_becomes_failed_result(self, brasil_site):
        scheduler = MagicMock()
        scheduler.run.side_effect = EngineError("Worker pool rejected page task")
        scheduler.last_stats = None
        ranker = NGramRanker(FakeFetcher(brasil_site))

        with patch("site_ngram_ranker.services.ranker.CrawlScheduler", return_value=scheduler):
            result = ranker.rank(BRASIL_URL, 1)

        assert not result.success
        assert result.entries == []
        assert result.error_message == "Worker pool rejected page task"
        assert "ngrams" not in result.to_dict()
        assert result.to_dict()["error"] == "Worker pool rejected page task"

    def test_default_order_comes_from_budget(self, brasil_site):
        ranker = NGramRanker(FakeFetcher(brasil_site), CrawlBudget(ngram_order=2))

        result = ranker.rank(BRASIL_URL)

        assert result.order == 2
        assert result.as_pairs() == [("Brasil tem", 1), ("tem praias", 1)]

    def test_custom_stopwords(self, brasil_site):
        ranker = NGramRanker(FakeFetcher(brasil_site), stopwords=with_extra_stopwords(["brasil"]))

        result = ranker.rank(BRASIL_URL, 1)

        assert "Brasil" not in dict(result.as_pairs())

    def test_result_serialization(self, brasil_site):
        with NGramRanker(FakeFetcher(brasil_site)) as ranker:
            data = ranker.rank(BRASIL_URL, 1).to_dict()

        assert data["success"] is True
        assert data["url"] == BRASIL_URL
        assert data["order"] == 1
        assert data["ngrams"][0] == {"ngram": "Brasil", "count": 2}
        assert data["stats"]["pages_fetched"] == 1
