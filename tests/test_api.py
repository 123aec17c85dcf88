"""
Tests for the Flask HTTP API.
"""

from unittest.mock import MagicMock

import pytest

# Add project root to path
import sys
from pathlib import Path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from conftest import FakeFetcher
from site_ngram_ranker.crawl import CrawlBudget, RankingResult
from site_ngram_ranker.services import NGramRanker, create_app


BRASIL_URL = "https://brasil.test/"


@pytest.fixture
def client(brasil_site):
    ranker = NGramRanker(FakeFetcher(brasil_site), CrawlBudget(max_pages=1))
    app = create_app(ranker, max_pages_limit=10)
    app.config["TESTING"] = True
    return app.test_client()


class TestRankingEndpoints:
    """Test successful rankings."""

    def test_unigrams(self, client):
        response = client.get("/unigrams", query_string={"url": BRASIL_URL})

        assert response.status_code == 200
        data = response.get_json()
        assert data["url"] == BRASIL_URL
        assert data["order"] == 1
        assert data["ngrams"][0] == {"ngram": "Brasil", "count": 2}
        assert data["stats"]["pages_fetched"] == 1

    def test_bigrams(self, client):
        response = client.get("/bigrams", query_string={"url": BRASIL_URL})

        assert response.status_code == 200
        assert [item["ngram"] for item in response.get_json()["ngrams"]] == ["Brasil tem", "tem praias"]

    def test_trigrams(self, client):
        response = client.get("/trigrams", query_string={"url": BRASIL_URL})

        assert response.status_code == 200
        assert response.get_json()["ngrams"] == [{"ngram": "Brasil tem praias", "count": 1}]

    def test_generic_endpoint_with_limit(self, client):
        response = client.get("/ngrams", query_string={"url": BRASIL_URL, "n": 1, "limit": 2})

        assert response.status_code == 200
        data = response.get_json()
        assert data["order"] == 1
        assert len(data["ngrams"]) == 2

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"
        assert response.get_json()["budget"]["max_pages"] == 1


class TestBadRequests:
    """Test parameter validation."""

    def test_missing_url(self, client):
        response = client.get("/unigrams")

        assert response.status_code == 400
        assert "url" in response.get_json()["error"]

    def test_invalid_url(self, client):
        response = client.get("/unigrams", query_string={"url": "not-a-url"})

        assert response.status_code == 400

    @pytest.mark.parametrize("params", [
        {"n": "4"},
        {"n": "abc"},
        {"limit": "0"},
        {"max_pages": "11"},
        {"max_pages": "0"},
    ])
    def test_invalid_numbers(self, client, params):
        response = client.get("/ngrams", query_string={"url": BRASIL_URL, **params})

        assert response.status_code == 400
        assert "error" in response.get_json()


class TestEngineFailure:
    """Test failed runs."""

    def test_failed_run_is_bad_gateway(self):
        ranker = MagicMock()
        ranker.budget = CrawlBudget()
        ranker.rank.return_value = RankingResult.failure(BRASIL_URL, 1, "Worker pool rejected page task")
        client = create_app(ranker).test_client()

        response = client.get("/unigrams", query_string={"url": BRASIL_URL})

        assert response.status_code == 502
        data = response.get_json()
        assert data["error"] == "Worker pool rejected page task"
        assert data["stats"] is None
        assert "ngrams" not in data

    def test_unexpected_error_is_server_error(self):
        ranker = MagicMock()
        ranker.budget = CrawlBudget()
        ranker.rank.side_effect = RuntimeError("boom")
        client = create_app(ranker).test_client()

        response = client.get("/unigrams", query_string={"url": BRASIL_URL})

        assert response.status_code == 500
        assert response.get_json()["error"] == "boom"
