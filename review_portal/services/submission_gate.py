"""
Title submission gate.

Decides whether a candidate title may enter the corpus:

    1. Validation    — empty, whitespace-only or punctuation-only titles are
                       refused with ValidationError before any scoring.
    2. Scope filter  — only corpus entries from the same department count.
    3. Exact check   — case-insensitive, trimmed equality with any entry
                       → rejected_exact_duplicate at 100 %. The similarity
                       engine is not consulted.
    4. Fuzzy check   — best aggregated score >= threshold
                       → rejected_high_similarity.
    5. Otherwise     → accepted.

The gate only decides. Writing the accepted title to the corpus is the
caller's job (see project_service.submit_title).
"""

from dataclasses import dataclass, field

from review_portal.core.exceptions import SimilarityRejection, ValidationError
from review_portal.services.similarity import TITLE_MIN_TOKEN_LENGTH, score_title
from review_portal.services.text_normalizer import normalize

ACCEPTED = "accepted"
REJECTED_EXACT_DUPLICATE = "rejected_exact_duplicate"
REJECTED_HIGH_SIMILARITY = "rejected_high_similarity"
OUTCOMES = (ACCEPTED, REJECTED_EXACT_DUPLICATE, REJECTED_HIGH_SIMILARITY)

DEFAULT_THRESHOLD = 60
DEFAULT_REFERENCE_FLOOR = 50


@dataclass(frozen=True)
class Decision:
    outcome: str
    best_match_title: str | None = None
    score_percent: int = 0
    threshold: int = DEFAULT_THRESHOLD
    # Near matches (>= reference floor) kept for the submission history
    compared_with: tuple = field(default_factory=tuple)

    @property
    def accepted(self) -> bool:
        return self.outcome == ACCEPTED

    def raise_for_rejection(self) -> None:
        """Raise SimilarityRejection unless the title was accepted."""
        if not self.accepted:
            raise SimilarityRejection(
                outcome=self.outcome,
                best_match_title=self.best_match_title,
                score_percent=self.score_percent,
                compared_with=list(self.compared_with),
            )

    def similarity_record(self) -> dict:
        """The {percentage, compared_with} block stored on an accepted submission."""
        return {"percentage": self.score_percent, "compared_with": list(self.compared_with)}

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "is_unique": self.accepted,
            "best_match_title": self.best_match_title,
            "score_percent": self.score_percent,
            "threshold": self.threshold,
            "compared_with": list(self.compared_with),
        }


def clean_candidate(candidate: str | None) -> str:
    """Return the trimmed candidate or raise ValidationError."""
    title = (candidate or "").strip()
    if not title:
        raise ValidationError("Project title is required", details={"title": "required"})
    if not normalize(title):
        raise ValidationError(
            "Project title must contain letters or digits", details={"title": "invalid"},
        )
    return title


def _entry_field(entry, name):
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def filter_to_scope(corpus, scope: str | None) -> list:
    """Keep entries whose department matches scope (case-insensitive)."""
    if not scope:
        return list(corpus)
    wanted = scope.strip().lower()
    return [e for e in corpus if (_entry_field(e, "department") or "").strip().lower() == wanted]


def find_exact_duplicate(title: str, corpus):
    """First entry whose title equals ``title`` ignoring case and outer whitespace."""
    key = title.strip().lower()
    for entry in corpus:
        if (_entry_field(entry, "title") or "").strip().lower() == key:
            return entry
    return None


def evaluate(
    candidate: str,
    corpus,
    scope: str | None = None,
    *,
    threshold: int = DEFAULT_THRESHOLD,
    reference_floor: int = DEFAULT_REFERENCE_FLOOR,
    min_length: int = TITLE_MIN_TOKEN_LENGTH,
) -> Decision:
    """Decide accept / reject for ``candidate`` against ``corpus``.

    Args:
        candidate: Raw title as typed by the student.
        corpus: Existing title entries (records or dicts with title/department).
        scope: Department to compare within; None compares against everything.
        threshold: Reject when the best score reaches this percent.
        reference_floor: Near matches at or above this percent are returned in
            ``compared_with``.

    Raises:
        ValidationError: candidate is empty or has no alphanumeric content.
    """
    title = clean_candidate(candidate)
    scoped = filter_to_scope(corpus, scope)

    duplicate = find_exact_duplicate(title, scoped)
    if duplicate is not None:
        dup_title = _entry_field(duplicate, "title")
        return Decision(
            outcome=REJECTED_EXACT_DUPLICATE,
            best_match_title=dup_title,
            score_percent=100,
            threshold=threshold,
            compared_with=({"title": dup_title, "percentage": 100},),
        )

    aggregate = score_title(title, scoped, min_length)
    compared_with = tuple(
        {"title": r.title, "percentage": r.similarity_percent}
        for r in aggregate.ranked_results
        if r.similarity_percent >= reference_floor
    )
    outcome = REJECTED_HIGH_SIMILARITY if aggregate.best_score_percent >= threshold else ACCEPTED
    return Decision(
        outcome=outcome,
        best_match_title=aggregate.best_match_title,
        score_percent=aggregate.best_score_percent,
        threshold=threshold,
        compared_with=compared_with,
    )
