"""
Student Review Portal
Tests — similarity scorers and aggregation.

Covers:
    1. Jaccard / Levenshtein / cosine scorers (bounds, symmetry, empty policy)
    2. Percent rounding
    3. score_title ranking (best match, stable ties, corpus untouched)
"""

import pytest

from review_portal.services.similarity import (
    compare_titles,
    cosine_similarity,
    jaccard_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    score_title,
    to_percent,
)

PAIRS = [
    ("Machine Learning Models", "Machine Learning Systems"),
    ("A Study of Deep Learning for Image Classification",
     "A Survey of Deep Learning for Image Classification"),
    ("Smart Home Automation System", "Quantum Cryptography Protocols for Secure Messaging"),
    ("", "Blockchain-based Supply Chain Management"),
]


# ═══════════════════════════════════════════════════════════════════════════
#  SCORERS
# ═══════════════════════════════════════════════════════════════════════════

class TestJaccard:
    def test_partial_overlap(self):
        # {machine, learning, models} vs {machine, learning, systems}
        assert jaccard_similarity("Machine Learning Models", "Machine Learning Systems") == 0.5

    def test_identical_after_normalisation(self):
        assert jaccard_similarity("Deep-Learning", "deep learning") == 1.0

    def test_stop_words_and_short_tokens_ignored(self):
        assert jaccard_similarity("The Design of Compilers", "Design Compilers") == 1.0

    def test_both_empty_is_zero(self):
        assert jaccard_similarity("", "") == 0.0

    def test_disjoint(self):
        assert jaccard_similarity("Smart Home Automation", "Quantum Cryptography") == 0.0


class TestLevenshtein:
    def test_classic_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_distance_to_empty(self):
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3

    def test_similarity_ratio(self):
        assert levenshtein_similarity("abc", "abd") == pytest.approx(2 / 3)

    def test_both_empty_is_one(self):
        assert levenshtein_similarity("", "") == 1.0

    def test_case_and_punctuation_insensitive(self):
        assert levenshtein_similarity("Smart-Home System", "smart home system") == 1.0


class TestCosine:
    def test_identical(self):
        assert cosine_similarity("Deep Learning", "deep learning") == 1.0

    def test_empty_is_zero(self):
        assert cosine_similarity("", "Deep Learning") == 0.0


@pytest.mark.parametrize("a,b", PAIRS)
def test_scorers_are_bounded_and_symmetric(a, b):
    for scorer in (jaccard_similarity, levenshtein_similarity, cosine_similarity):
        forward, backward = scorer(a, b), scorer(b, a)
        assert 0.0 <= forward <= 1.0
        assert forward == pytest.approx(backward)


def test_compare_titles_combined_is_max_of_jaccard_and_levenshtein():
    result = compare_titles("Machine Learning Models", "Machine Learning Systems")
    assert set(result) == {"jaccard", "levenshtein", "cosine", "combined"}
    assert result["combined"] == max(result["jaccard"], result["levenshtein"])


class TestToPercent:
    def test_half_rounds_up(self):
        assert to_percent(0.125) == 13

    def test_bounds(self):
        assert to_percent(0.0) == 0
        assert to_percent(1.0) == 100

    def test_two_thirds(self):
        assert to_percent(2 / 3) == 67


# ═══════════════════════════════════════════════════════════════════════════
#  AGGREGATION
# ═══════════════════════════════════════════════════════════════════════════

class TestScoreTitle:
    def test_empty_corpus(self):
        result = score_title("Anything At All", [])
        assert result.best_match_title is None
        assert result.best_score_percent == 0
        assert result.ranked_results == ()

    def test_best_match_first(self):
        corpus = [
            {"id": 1, "title": "Smart Home Automation System"},
            {"id": 2, "title": "Machine Learning for Text Classification"},
        ]
        result = score_title("Machine Learning Text Classification", corpus)
        assert result.best_match_title == "Machine Learning for Text Classification"
        assert result.ranked_results[0].compared_against_id == 2
        assert result.best_score_percent == result.ranked_results[0].similarity_percent

    def test_descending_order(self):
        corpus = [{"title": t} for t in (
            "Smart Home Automation System",
            "Blockchain-based Supply Chain Management",
            "Machine Learning for Text Classification",
        )]
        percents = [r.similarity_percent for r in score_title("Machine Learning", corpus).ranked_results]
        assert percents == sorted(percents, reverse=True)

    def test_ties_keep_corpus_order(self):
        corpus = [
            {"id": "a", "title": "Robotic Arm Control"},
            {"id": "b", "title": "Robotic Arm Control"},
        ]
        forward = score_title("Robotic Arm Control", corpus)
        backward = score_title("Robotic Arm Control", list(reversed(corpus)))
        assert [r.compared_against_id for r in forward.ranked_results] == ["a", "b"]
        assert [r.compared_against_id for r in backward.ranked_results] == ["b", "a"]

    def test_corpus_is_not_mutated(self):
        corpus = [{"id": 1, "title": "Smart Home Automation System"}]
        snapshot = [dict(e) for e in corpus]
        score_title("Smart Home", corpus)
        assert corpus == snapshot

    def test_to_dict_limit(self):
        corpus = [{"title": f"Title Number {i}"} for i in range(5)]
        d = score_title("Title Number", corpus).to_dict(limit=2)
        assert len(d["ranked_results"]) == 2
        assert d["candidate_title"] == "Title Number"

    def test_accepts_model_rows(self, add_title):
        record = add_title("Smart Home Automation System")
        result = score_title("Smart Home Automation", [record])
        match = result.ranked_results[0]
        assert match.compared_against_id == record.id
        assert match.submitted_by == "Seed"
        assert match.to_dict()["submitted_at"] is not None
