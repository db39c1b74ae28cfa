"""
Student project blueprint.

All routes act on the calling student's own project (``me``).

Endpoints:
    GET  /api/v1/projects/me                              — project, created on first access
    POST /api/v1/projects/me/title                        — submit the project title (stage 0)
    GET  /api/v1/projects/me/stages                       — stages, progress, unread notifications
    POST /api/v1/projects/me/stages/<n>/submit            — submit a review stage
    GET  /api/v1/projects/me/notifications                — notification log
    POST /api/v1/projects/me/notifications/<id>/read      — mark one read
    POST /api/v1/projects/me/notifications/read-all       — mark all read
"""

import logging

from flask import Blueprint, g, jsonify, request

from review_portal.middleware.identity import require_student
from review_portal.services import project_service

logger = logging.getLogger(__name__)

project_bp = Blueprint("project_bp", __name__, url_prefix="/api/v1/projects/me")


def _int_arg(name, default, minimum=0, maximum=None):
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        value = default
    value = max(value, minimum)
    return min(value, maximum) if maximum is not None else value


@project_bp.route("", methods=["GET"])
@require_student
def my_project():
    project = project_service.get_or_create_project(g.current_user.id)
    return jsonify(project.to_dict(include_notifications=True))


@project_bp.route("/title", methods=["POST"])
@require_student
def submit_title():
    """Submit the project title through the similarity gate."""
    data = request.get_json(silent=True) or {}
    result = project_service.submit_title(g.current_user.id, data.get("title"), data.get("description"))
    return jsonify(result), 201


@project_bp.route("/stages", methods=["GET"])
@require_student
def my_stages():
    project_service.get_or_create_project(g.current_user.id)
    return jsonify(project_service.get_review_stages(g.current_user.id))


@project_bp.route("/stages/<int:stage_number>/submit", methods=["POST"])
@require_student
def submit_stage(stage_number):
    data = request.get_json(silent=True) or {}
    result = project_service.submit_stage(g.current_user.id, stage_number, data)
    return jsonify(result), 201


# ═══════════════════════════════════════════════════════════════════════════
#  NOTIFICATIONS
# ═══════════════════════════════════════════════════════════════════════════

@project_bp.route("/notifications", methods=["GET"])
@require_student
def list_notifications():
    unread_only = request.args.get("unread_only", "false").lower() in ("1", "true", "yes")
    result = project_service.list_notifications(
        g.current_user.id,
        unread_only=unread_only,
        limit=_int_arg("limit", 50, minimum=1, maximum=200),
        offset=_int_arg("offset", 0),
    )
    return jsonify(result)


@project_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
@require_student
def mark_notification_read(notification_id):
    return jsonify(project_service.mark_notification_read(g.current_user.id, notification_id))


@project_bp.route("/notifications/read-all", methods=["POST"])
@require_student
def mark_all_notifications_read():
    count = project_service.mark_all_notifications_read(g.current_user.id)
    return jsonify({"marked_read": count})
