"""
Reviewer blueprint — Staff and Admin act on a student's stages.

Endpoints:
    POST /api/v1/projects/<student_id>/stages/<n>/approve
    POST /api/v1/projects/<student_id>/stages/<n>/reject

Body (both): {"comment": str, "grade": int 0..100}  (all optional)
"""

import logging

from flask import Blueprint, g, jsonify, request

from review_portal.middleware.identity import require_reviewer
from review_portal.services import project_service

logger = logging.getLogger(__name__)

review_bp = Blueprint("review_bp", __name__, url_prefix="/api/v1/projects")


@review_bp.route("/<int:student_id>/stages/<int:stage_number>/approve", methods=["POST"])
@require_reviewer
def approve_stage(student_id, stage_number):
    feedback = request.get_json(silent=True) or {}
    stage = project_service.approve_stage(
        student_id, stage_number, feedback, reviewer_id=g.current_user.id,
    )
    return jsonify(stage)


@review_bp.route("/<int:student_id>/stages/<int:stage_number>/reject", methods=["POST"])
@require_reviewer
def reject_stage(student_id, stage_number):
    feedback = request.get_json(silent=True) or {}
    stage = project_service.reject_stage(
        student_id, stage_number, feedback, reviewer_id=g.current_user.id,
    )
    return jsonify(stage)
