"""JSON error envelope shared by every API response that is not a success.

    {"error": "<message for people>", "code": "<E.* constant>", "details": {...}}

``details`` is omitted when empty. Handlers in core/error_handlers.py are
the only callers; views raise domain exceptions instead of building errors.
"""

from flask import jsonify


class E:
    """Machine-readable error codes, grouped by HTTP status."""

    # 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    # 401 / 403
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    FORBIDDEN = "ERR_FORBIDDEN"
    # 404
    NOT_FOUND = "ERR_NOT_FOUND"
    # 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"
    SIMILARITY_EXACT_DUPLICATE = "SIMILARITY_EXACT_DUPLICATE"
    SIMILARITY_TOO_HIGH = "SIMILARITY_TOO_HIGH"
    # 500
    INTERNAL = "ERR_INTERNAL"


STATUS_BY_CODE = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHENTICATED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.SIMILARITY_EXACT_DUPLICATE: 409,
    E.SIMILARITY_TOO_HIGH: 409,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for an error; status defaults from the code."""
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or STATUS_BY_CODE.get(code, 400)
