"""
Portal-wide exception hierarchy.

Services raise these types and nothing else for expected failures; the
blueprint layer maps each one to a status code once, in
``review_portal.core.error_handlers``.

Usage:
    from review_portal.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id=student_id)
    raise ValidationError("Title is required", details={"title": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Project", "ReviewStage").
        resource_id: The key that was looked up. Included in logs and message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is empty or malformed (caller's fault).

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation collides with the current state of a resource.

    Root of the 409 family; StateConflictError narrows it to review stages.

    Maps to HTTP 409.
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(message or f"{resource} with {field}={value!r} already exists")


class StateConflictError(ConflictError):
    """Raised when a stage is not in the status the transition requires.

    Examples: submitting a locked stage, approving a stage that was never
    submitted, or losing a concurrent race for the same stage.

    Maps to HTTP 409.

    Args:
        stage_number: The stage the transition targeted.
        action: submit | approve | reject.
        current_status: Status observed on the stage.
        required_status: Status the action needs.
    """

    def __init__(
        self,
        stage_number: int,
        action: str,
        current_status: str | None,
        required_status: str | None = None,
        message: str | None = None,
    ) -> None:
        self.stage_number = stage_number
        self.action = action
        self.current_status = current_status
        self.required_status = required_status
        if message is None:
            message = f"Cannot {action} review stage {stage_number} (status={current_status})"
            if required_status:
                message += f"; stage must be {required_status}"
        super().__init__("ReviewStage", "status", current_status, message=message)


class SimilarityRejection(Exception):
    """Raised when a title is refused by the submission gate.

    Kept apart from ValidationError so the UI can show the matching title
    and score instead of a generic form error.

    Maps to HTTP 409.

    Args:
        outcome: rejected_exact_duplicate | rejected_high_similarity.
        best_match_title: The existing title that triggered the rejection.
        score_percent: Similarity with that title (100 for exact duplicates).
        compared_with: Ranked near matches, for display.
    """

    def __init__(
        self,
        outcome: str,
        best_match_title: str | None,
        score_percent: int,
        compared_with: list[dict] | None = None,
    ) -> None:
        self.outcome = outcome
        self.best_match_title = best_match_title
        self.score_percent = score_percent
        self.compared_with = compared_with or []
        if outcome == "rejected_exact_duplicate":
            msg = f"Title already exists: {best_match_title!r}. Please choose a different title."
        else:
            msg = (
                f"Title similarity too high ({score_percent}%). "
                "Please choose a different title."
            )
        super().__init__(msg)

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "best_match_title": self.best_match_title,
            "score_percent": self.score_percent,
            "compared_with": self.compared_with,
        }


class AuthenticationError(Exception):
    """Raised when no principal can be resolved for the request. Maps to 401."""


class PermissionDenied(Exception):
    """Raised when the principal's user type may not perform the action. Maps to 403."""

    def __init__(self, user_id: int | None, action: str, required: str) -> None:
        self.user_id = user_id
        self.action = action
        self.required = required
        super().__init__(f"User {user_id} cannot {action}: {required} account required")
