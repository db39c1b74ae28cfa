"""
Title Search Service.

Read-only lookups over the title corpus for the search page:

    - search_titles:  ranked similarity matches plus substring ("exact") hits
    - suggest_titles: type-ahead suggestions by substring
    - list_titles:    the whole corpus, newest first
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from review_portal.core.exceptions import ValidationError
from review_portal.models import db
from review_portal.models.title import TitleRecord
from review_portal.services.project_store import default_store
from review_portal.services.similarity import score_title

logger = logging.getLogger(__name__)


def search_titles(query, department=None, *, limit=20, store=None) -> dict:
    """Rank every corpus title against ``query``.

    Returns:
        {
          "search_query", "total_projects", "best_match", "highest_similarity",
          "all_matches":   top ``limit`` ranked entries,
          "exact_matches": titles containing the query (case-insensitive),
                           sorted by similarity,
          "timestamp"
        }

    Raises:
        ValidationError: empty query.
    """
    store = store or default_store
    term = (query or "").strip()
    if not term:
        raise ValidationError("Search query is required", details={"search_query": "required"})

    corpus = store.find_titles_by_department(department)
    aggregate = score_title(term, corpus)

    needle = term.lower()
    exact = [r for r in aggregate.ranked_results if needle in r.title.lower()]

    logger.debug("Title search", extra={"department": department, "score_percent": aggregate.best_score_percent})
    return {
        "search_query": term,
        "total_projects": len(corpus),
        "best_match": aggregate.best_match_title,
        "highest_similarity": aggregate.best_score_percent,
        "all_matches": [r.to_dict() for r in aggregate.ranked_results[:limit]],
        "exact_matches": [r.to_dict() for r in exact],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def suggest_titles(query, *, limit=8, min_query_length=2) -> list[str]:
    """Titles containing ``query``; short queries return nothing."""
    term = (query or "").strip()
    if len(term) < min_query_length:
        return []
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    stmt = (
        select(TitleRecord.title)
        .where(db.func.lower(TitleRecord.title).like(pattern, escape="\\"))
        .order_by(TitleRecord.submitted_at, TitleRecord.id)
        .limit(limit)
    )
    return list(db.session.execute(stmt).scalars())


def list_titles(department=None) -> list[dict]:
    """All accepted titles, newest first."""
    stmt = select(TitleRecord).order_by(TitleRecord.submitted_at.desc(), TitleRecord.id.desc())
    if department:
        stmt = stmt.where(db.func.lower(TitleRecord.department) == department.strip().lower())
    return [r.to_dict() for r in db.session.execute(stmt).scalars()]
