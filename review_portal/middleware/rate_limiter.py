"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in review_portal/__init__.py with no default limits; this module
applies the limits per route category.

Usage:
    from review_portal.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import request as flask_request

from review_portal.middleware.identity import USER_HEADER

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"


def rate_limit_key():
    """Caller identity header when present, else remote IP."""
    user_id = flask_request.headers.get(USER_HEADER, "").strip()
    if user_id:
        return f"user:{user_id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits:
        - Title search / similarity:  RATELIMIT_SEARCH (default 60/minute)
        - Project and review writes:  60/minute
        - Health check:               exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    search_limit = app.config.get("RATELIMIT_SEARCH", "60/minute")
    bp = app.blueprints.get("title_bp")
    if bp:
        limiter.limit(search_limit, key_func=rate_limit_key)(bp)

    for bp_name in ("project_bp", "review_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT, key_func=rate_limit_key,
                          methods=["POST", "PUT", "PATCH", "DELETE"])(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured — search: %s, write: %s", search_limit, WRITE_LIMIT)
