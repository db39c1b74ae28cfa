"""
Student Review Portal
Tests — title search, suggestions and listing.
"""

import pytest

from review_portal.core.exceptions import ValidationError
from review_portal.services import title_search_service

SAMPLE = [
    "Machine Learning for Text Classification",
    "Smart Home Automation System",
    "Blockchain-based Supply Chain Management",
]


@pytest.fixture()
def corpus(add_title):
    return [add_title(t) for t in SAMPLE]


class TestSearchTitles:
    def test_best_match(self, corpus):
        result = title_search_service.search_titles("machine learning text classification")
        assert result["best_match"] == "Machine Learning for Text Classification"
        assert result["highest_similarity"] >= 60
        assert result["total_projects"] == 3
        assert result["search_query"] == "machine learning text classification"
        assert "timestamp" in result

    def test_exact_matches_are_substring_hits(self, corpus):
        result = title_search_service.search_titles("chain")
        assert [m["title"] for m in result["exact_matches"]] == [
            "Blockchain-based Supply Chain Management",
        ]

    def test_result_limit(self, add_title):
        for i in range(25):
            add_title(f"Distributed Systems Case Study {i}")
        result = title_search_service.search_titles("Distributed Systems")
        assert len(result["all_matches"]) == 20
        assert result["total_projects"] == 25

    def test_department_filter(self, corpus, add_title):
        add_title("Power Grid Load Forecasting", department="Electrical Engineering")
        result = title_search_service.search_titles("Power Grid", department="Electrical Engineering")
        assert result["total_projects"] == 1
        assert result["best_match"] == "Power Grid Load Forecasting"

    def test_empty_query(self):
        with pytest.raises(ValidationError):
            title_search_service.search_titles("   ")

    def test_empty_corpus(self):
        result = title_search_service.search_titles("Anything")
        assert result["best_match"] is None
        assert result["highest_similarity"] == 0
        assert result["all_matches"] == []


class TestSuggestTitles:
    def test_substring_case_insensitive(self, corpus):
        assert title_search_service.suggest_titles("HOME") == ["Smart Home Automation System"]

    def test_short_query_returns_nothing(self, corpus):
        assert title_search_service.suggest_titles("s") == []
        assert title_search_service.suggest_titles("") == []

    def test_limit(self, add_title):
        for i in range(12):
            add_title(f"Sensor Network {i}")
        assert len(title_search_service.suggest_titles("sensor")) == 8

    def test_like_wildcards_are_literal(self, corpus, add_title):
        add_title("100% Renewable Campus")
        assert title_search_service.suggest_titles("0%") == ["100% Renewable Campus"]
        assert title_search_service.suggest_titles("_a") == []


class TestListTitles:
    def test_newest_first(self, corpus):
        titles = [t["title"] for t in title_search_service.list_titles()]
        assert titles == list(reversed(SAMPLE))

    def test_department_filter(self, corpus, add_title):
        add_title("Power Grid Load Forecasting", department="Electrical Engineering")
        items = title_search_service.list_titles("electrical engineering")
        assert [t["title"] for t in items] == ["Power Grid Load Forecasting"]
        assert items[0]["similarity"] == {"percentage": 0, "compared_with": []}
