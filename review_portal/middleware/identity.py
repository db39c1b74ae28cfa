"""
Request identity.

The portal sits behind the campus login proxy, which forwards the signed-in
account as an ``X-User-Id`` header. This module resolves that header to a
User before each API request and offers decorators for endpoints that need
a principal of a particular type.

Usage:
    @project_bp.route("/me", methods=["GET"])
    @require_student
    def my_project():
        student = g.current_user
"""

import functools
import logging

from flask import Flask, g, request

from review_portal.core.exceptions import AuthenticationError, PermissionDenied
from review_portal.models import db
from review_portal.models.user import User

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


def _resolve_user():
    raw = request.headers.get(USER_HEADER, "").strip()
    if not raw:
        return None
    try:
        user_id = int(raw)
    except ValueError:
        logger.warning("Malformed %s header: %r", USER_HEADER, raw[:20])
        return None
    return db.session.get(User, user_id)


def init_identity(app: Flask):
    """Attach g.current_user (or None) to every API request."""

    @app.before_request
    def _load_current_user():
        g.current_user = None
        if request.path.startswith("/api/") and not request.path.startswith("/api/v1/health"):
            g.current_user = _resolve_user()


def current_user() -> User:
    """The authenticated user; raises AuthenticationError when there is none."""
    user = getattr(g, "current_user", None)
    if user is None:
        raise AuthenticationError(f"Authentication required. Provide a valid {USER_HEADER} header.")
    return user


def require_user(f):
    """Decorator: any authenticated user."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        current_user()
        return f(*args, **kwargs)
    return decorated


def require_user_type(*user_types: str):
    """
    Decorator: restrict an endpoint to the given user types.

    Usage:
        @require_user_type("Staff", "Admin")
        def approve(student_id, stage_number): ...
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = current_user()
            if user.user_type not in user_types:
                logger.warning(
                    "Access denied: %s user tried to access %s",
                    user.user_type, request.path,
                    extra={"user_id": user.id},
                )
                raise PermissionDenied(user.id, f"access {request.path}", "/".join(user_types))
            return f(*args, **kwargs)
        return decorated
    return decorator


require_student = require_user_type("Student")
require_reviewer = require_user_type("Staff", "Admin")
