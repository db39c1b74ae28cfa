"""
Title similarity engine.

Scorers (pure, each returns a float in [0, 1]):
    - jaccard_similarity:      word-set overlap of the significant tokens
    - levenshtein_similarity:  1 - edit_distance / max_len over the cleaned text
    - cosine_similarity:       term-frequency cosine over the shared vocabulary

Aggregation:
    score_title(candidate, corpus) runs the scorers against every corpus
    entry, takes max(jaccard, levenshtein) as the entry score, converts it to
    an integer percent and ranks the entries (stable on ties). Cosine is
    reported alongside but never drives the ranking or the gate.

Nothing here touches the database; callers pass already-fetched records.
Corpus entries may be TitleRecord rows, dicts or any object exposing
``title`` (and optionally ``id``, ``submitted_by``, ``submitted_at``).
"""

import math
from collections import Counter
from dataclasses import dataclass, field

from review_portal.services.text_normalizer import normalize, prepare, remove_stop_words, tokenize

# Tokens shorter than this are ignored for set/vector metrics.
TITLE_MIN_TOKEN_LENGTH = 3


# ── Scorers ──────────────────────────────────────────────────────────────────


def _significant_tokens(text: str, min_length: int = TITLE_MIN_TOKEN_LENGTH) -> list[str]:
    return prepare(text, min_length)


def _cleaned_text(text: str) -> str:
    """Normalized text with stop words removed, as a single string."""
    return " ".join(remove_stop_words(tokenize(normalize(text))))


def _jaccard(tokens_a, tokens_b) -> float:
    set_a, set_b = set(tokens_a), set(tokens_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def jaccard_similarity(a: str, b: str, min_length: int = TITLE_MIN_TOKEN_LENGTH) -> float:
    """|A ∩ B| / |A ∪ B| over significant word sets; 0.0 if both are empty."""
    return _jaccard(_significant_tokens(a, min_length), _significant_tokens(b, min_length))


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit insertion, deletion and substitution costs."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,          # deletion
                current[j - 1] + 1,       # insertion
                previous[j - 1] + cost,   # substitution
            ))
        previous = current
    return previous[-1]


def _levenshtein_ratio(a: str, b: str) -> float:
    max_len = max(len(a), len(b))
    if max_len == 0:
        # Two empty strings need zero edits.
        return 1.0
    return (max_len - levenshtein_distance(a, b)) / max_len


def levenshtein_similarity(a: str, b: str) -> float:
    """(max_len - distance) / max_len over cleaned text; empty vs empty is 1.0."""
    return _levenshtein_ratio(_cleaned_text(a), _cleaned_text(b))


def _cosine(tokens_a, tokens_b) -> float:
    tf_a, tf_b = Counter(tokens_a), Counter(tokens_b)
    vocabulary = set(tf_a) | set(tf_b)
    dot = sum(tf_a[term] * tf_b[term] for term in vocabulary)
    norm_a = math.sqrt(sum(count * count for count in tf_a.values()))
    norm_b = math.sqrt(sum(count * count for count in tf_b.values()))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    # Guard against 1.0000000000000002 from float error.
    return min(dot / (norm_a * norm_b), 1.0)


def cosine_similarity(a: str, b: str, min_length: int = TITLE_MIN_TOKEN_LENGTH) -> float:
    """Cosine of term-frequency vectors; 0.0 if either vector is empty."""
    return _cosine(_significant_tokens(a, min_length), _significant_tokens(b, min_length))


def to_percent(score: float) -> int:
    """Round a [0, 1] score to an integer percent, halves rounding up."""
    return int(math.floor(score * 100 + 0.5))


# ── Aggregation ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RankedMatch:
    title: str
    similarity_percent: int
    cosine_percent: int = 0
    submitted_by: str | None = None
    submitted_at: object = None
    compared_against_id: object = None

    def to_dict(self) -> dict:
        submitted_at = self.submitted_at
        if hasattr(submitted_at, "isoformat"):
            submitted_at = submitted_at.isoformat()
        return {
            "title": self.title,
            "similarity_percent": self.similarity_percent,
            "cosine_percent": self.cosine_percent,
            "submitted_by": self.submitted_by,
            "submitted_at": submitted_at,
            "compared_against_id": self.compared_against_id,
        }


@dataclass(frozen=True)
class AggregateScore:
    candidate_title: str
    best_match_title: str | None = None
    best_score_percent: int = 0
    ranked_results: tuple = field(default_factory=tuple)

    def to_dict(self, limit: int | None = None) -> dict:
        results = self.ranked_results if limit is None else self.ranked_results[:limit]
        return {
            "candidate_title": self.candidate_title,
            "best_match_title": self.best_match_title,
            "best_score_percent": self.best_score_percent,
            "ranked_results": [r.to_dict() for r in results],
        }


def _entry_value(entry, name, default=None):
    if isinstance(entry, dict):
        return entry.get(name, default)
    return getattr(entry, name, default)


def compare_titles(a: str, b: str, min_length: int = TITLE_MIN_TOKEN_LENGTH) -> dict:
    """All three metrics for one pair, plus the combined score used for ranking."""
    jaccard = jaccard_similarity(a, b, min_length)
    levenshtein = levenshtein_similarity(a, b)
    return {
        "jaccard": jaccard,
        "levenshtein": levenshtein,
        "cosine": cosine_similarity(a, b, min_length),
        "combined": max(jaccard, levenshtein),
    }


def score_title(candidate: str, corpus, min_length: int = TITLE_MIN_TOKEN_LENGTH) -> AggregateScore:
    """Score a candidate against every corpus entry and rank the results.

    Each entry's score is ``max(jaccard, levenshtein)`` as an integer percent.
    ``ranked_results`` is sorted by that percent, descending; entries with the
    same percent keep their corpus order. The corpus is only read.
    """
    candidate_tokens = _significant_tokens(candidate, min_length)
    candidate_text = _cleaned_text(candidate)

    matches = []
    for entry in corpus:
        title = _entry_value(entry, "title") or ""
        tokens = _significant_tokens(title, min_length)
        combined = max(
            _jaccard(candidate_tokens, tokens),
            _levenshtein_ratio(candidate_text, _cleaned_text(title)),
        )
        matches.append(RankedMatch(
            title=title,
            similarity_percent=to_percent(combined),
            cosine_percent=to_percent(_cosine(candidate_tokens, tokens)),
            submitted_by=_entry_value(entry, "submitted_by"),
            submitted_at=_entry_value(entry, "submitted_at"),
            compared_against_id=_entry_value(entry, "id"),
        ))

    # sorted() is stable, so equal scores stay in corpus order.
    ranked = tuple(sorted(matches, key=lambda m: m.similarity_percent, reverse=True))
    if not ranked:
        return AggregateScore(candidate_title=candidate)
    return AggregateScore(
        candidate_title=candidate,
        best_match_title=ranked[0].title,
        best_score_percent=ranked[0].similarity_percent,
        ranked_results=ranked,
    )
