"""
Title search blueprint.

Endpoints:
    POST /api/v1/titles/search            — ranked similarity search
    GET  /api/v1/titles/suggestions?q=    — type-ahead suggestions
    GET  /api/v1/titles                   — corpus listing, newest first
    POST /api/v1/titles/check-similarity  — gate decision without submitting
"""

import logging

from flask import Blueprint, current_app, g, jsonify, request

from review_portal.middleware.identity import require_user
from review_portal.services import project_service, title_search_service

logger = logging.getLogger(__name__)

title_bp = Blueprint("title_bp", __name__, url_prefix="/api/v1/titles")


@title_bp.route("/search", methods=["POST"])
@require_user
def search():
    """Rank the corpus against a search query."""
    data = request.get_json(silent=True) or {}
    result = title_search_service.search_titles(
        data.get("search_query") or data.get("title"),
        department=data.get("department"),
        limit=current_app.config["SEARCH_RESULT_LIMIT"],
    )
    return jsonify(result)


@title_bp.route("/suggestions", methods=["GET"])
@require_user
def suggestions():
    items = title_search_service.suggest_titles(
        request.args.get("q", ""),
        limit=current_app.config["SUGGESTION_LIMIT"],
        min_query_length=current_app.config["SUGGESTION_MIN_QUERY_LENGTH"],
    )
    return jsonify({"suggestions": items})


@title_bp.route("", methods=["GET"])
@require_user
def list_titles():
    items = title_search_service.list_titles(request.args.get("department"))
    return jsonify({"items": items, "total": len(items)})


@title_bp.route("/check-similarity", methods=["POST"])
@require_user
def check_similarity():
    """
    Evaluate a candidate title without submitting it.

    Body: {"title": str, "department": str (optional)}
    Students are compared against other students' titles in their own
    department. Without a department in the body the caller's own
    department is used; reviewers may pass any department.
    """
    data = request.get_json(silent=True) or {}
    user = g.current_user
    decision = project_service.check_similarity(
        data.get("title"),
        scope=data.get("department") or user.department,
        student_id=user.id if user.is_student else None,
    )
    return jsonify(decision.to_dict())
