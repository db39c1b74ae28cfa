"""
Health check blueprint.

Endpoints:
    GET /api/v1/health        — name + status, no dependencies touched
    GET /api/v1/health/ready  — readiness probe for the load balancer
    GET /api/v1/health/live   — database round trip + corpus / project counts
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import func, select

from review_portal.models import db
from review_portal.models.project import Project
from review_portal.models.title import TitleRecord

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")

APP_NAME = "Student Review Portal"


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "ok", "app": APP_NAME})


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Database check plus the numbers an operator looks at first."""
    try:
        started = time.perf_counter()
        titles = db.session.execute(select(func.count(TitleRecord.id))).scalar_one()
        projects = db.session.execute(select(func.count(Project.id))).scalar_one()
        latency_ms = round((time.perf_counter() - started) * 1000, 1)
    except Exception as exc:
        db.session.rollback()
        logger.error("Liveness check: database unavailable: %s", exc)
        return jsonify({
            "status": "degraded",
            "checks": {"database": {"status": "error", "detail": str(exc)}},
        }), 503

    return jsonify({
        "status": "healthy",
        "checks": {
            "database": {"status": "ok", "latency_ms": latency_ms},
            "corpus": {"titles": titles, "projects": projects},
            "gate": {
                "similarity_threshold": current_app.config["SIMILARITY_THRESHOLD"],
                "min_token_length": current_app.config["TITLE_MIN_TOKEN_LENGTH"],
            },
        },
    }), 200
