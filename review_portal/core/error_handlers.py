"""
App-wide error handlers.

Maps the exception hierarchy in ``review_portal.core.exceptions`` to HTTP
responses in one place, so blueprints only parse input and call services.
"""

import logging

from flask import request
from werkzeug.exceptions import HTTPException

from review_portal.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDenied,
    SimilarityRejection,
    StateConflictError,
    ValidationError,
)
from review_portal.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Attach handlers for domain exceptions and generic HTTP errors."""

    @app.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        code = E.VALIDATION_REQUIRED if "required" in str(error).lower() else E.VALIDATION_INVALID
        return api_error(code, str(error), details=error.details)

    @app.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        logger.info("Not found: %s", error)
        return api_error(E.NOT_FOUND, str(error))

    @app.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(
            E.CONFLICT_DUPLICATE, str(error), details={"resource": error.resource, "field": error.field},
        )

    @app.errorhandler(StateConflictError)
    def _handle_state_conflict(error: StateConflictError):
        return api_error(
            E.CONFLICT_STATE,
            str(error),
            details={
                "stage_number": error.stage_number,
                "action": error.action,
                "current_status": error.current_status,
                "required_status": error.required_status,
            },
        )

    @app.errorhandler(SimilarityRejection)
    def _handle_similarity(error: SimilarityRejection):
        code = (
            E.SIMILARITY_EXACT_DUPLICATE
            if error.outcome == "rejected_exact_duplicate"
            else E.SIMILARITY_TOO_HIGH
        )
        return api_error(code, str(error), details=error.to_dict())

    @app.errorhandler(AuthenticationError)
    def _handle_unauthenticated(error: AuthenticationError):
        return api_error(E.UNAUTHENTICATED, str(error) or "Authentication required")

    @app.errorhandler(PermissionDenied)
    def _handle_forbidden(error: PermissionDenied):
        return api_error(E.FORBIDDEN, str(error))

    @app.errorhandler(404)
    def _not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(429)
    def _rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception("Unexpected error endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
