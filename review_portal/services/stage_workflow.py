"""
Review Stage Workflow — the per-project state machine.

States per stage (see STAGE_TRANSITIONS in models.project):

    locked ──unlock──▶ available ──submit──▶ submitted ──approve──▶ completed
                           ▲                     │
                           └───────reject────────┘

Rules:
    - Stage 0 starts available; stages 1–3 start locked.
    - approve(N) unlocks N+1 and advances current_stage, or completes the
      project after the last stage.
    - reject(N) re-opens N for resubmission; current_stage does not move.
    - Stage 0 submissions need an accepted SubmissionGate decision.
    - Every transition appends a typed notification to the project log.

The functions mutate the Project / ReviewStage objects they are given and
never touch the session; persisting (with the optimistic version check on
ReviewStage) is done by project_service.

Usage:
    from review_portal.services import stage_workflow

    stage_workflow.initialize_stages(project)
    stage_workflow.submit(project, 0, {"title": "..."}, decision=decision)
    stage_workflow.approve(project, 0, {"comment": "ok", "grade": 80}, reviewer_id=7)
"""

from datetime import datetime, timedelta, timezone

from review_portal.core.exceptions import NotFoundError, StateConflictError, ValidationError
from review_portal.models.project import (
    FINAL_STAGE,
    STAGE_DEFINITIONS,
    TITLE_STAGE,
    ProjectNotification,
    ReviewStage,
    validate_stage_transition,
)
from review_portal.services.similarity import to_percent

DEFAULT_DUE_DAYS = (7, 21, 35, 49)

# action -> (required status, resulting status)
STAGE_ACTIONS = {
    "submit": ("available", "submitted"),
    "approve": ("submitted", "completed"),
    "reject": ("submitted", "available"),
}


def _now(now=None):
    return now or datetime.now(timezone.utc)


# ── Derived values (recomputed on read, never stored) ────────────────────────


def progress_percentage(project) -> int:
    """completed stages / total stages as an integer percent."""
    stages = list(project.review_stages)
    if not stages:
        return 0
    completed = sum(1 for s in stages if s.status == "completed")
    return to_percent(completed / len(stages))


def current_available_stage(project):
    """The stage the student can act on next, or None."""
    for stage in project.review_stages:
        if stage.status == "available":
            return stage
    return None


def next_due_date(project):
    stage = current_available_stage(project)
    return stage.due_date if stage else None


# ── Helpers ──────────────────────────────────────────────────────────────────


def get_stage(project, stage_number: int) -> ReviewStage:
    stage = project.stage(stage_number)
    if stage is None:
        raise NotFoundError(resource="ReviewStage", resource_id=stage_number)
    return stage


def notify(project, message: str, type_: str = "info", now=None) -> ProjectNotification:
    """Append a notification to the project log."""
    notification = ProjectNotification(message=message, type=type_, created_at=_now(now))
    project.notifications.append(notification)
    return notification


def _apply(stage: ReviewStage, action: str) -> None:
    required, target = STAGE_ACTIONS[action]
    if stage.status != required or not validate_stage_transition(stage.status, target):
        raise StateConflictError(stage.stage_number, action, stage.status, required)
    stage.status = target


def _clean_feedback(feedback: dict | None, reviewer_id, approved: bool, now) -> dict:
    feedback = dict(feedback or {})
    grade = feedback.get("grade")
    if grade is not None:
        if isinstance(grade, bool) or not isinstance(grade, int) or not 0 <= grade <= 100:
            raise ValidationError(
                "grade must be an integer between 0 and 100", details={"grade": "invalid"},
            )
    comment = feedback.get("comment")
    return {
        "comment": comment.strip() if isinstance(comment, str) else comment,
        "grade": grade,
        "reviewer_id": reviewer_id,
        "reviewed_at": now.isoformat(),
        "approved": approved,
    }


def _record_feedback(stage: ReviewStage, entry: dict) -> None:
    # Reassign rather than mutate so the JSON columns register the change.
    stage.feedback = entry
    stage.feedback_history = list(stage.feedback_history or []) + [entry]


def _clean_payload(payload: dict | None) -> dict:
    data = dict(payload or {})
    for key in ("title", "description"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    data["files"] = list(data.get("files") or [])
    return data


# ── Transitions ──────────────────────────────────────────────────────────────


def initialize_stages(project, now=None, due_days=DEFAULT_DUE_DAYS) -> None:
    """Create the four stages: stage 0 available, the rest locked."""
    now = _now(now)
    project.review_stages = [
        ReviewStage(
            stage_number=number,
            stage_name=definition["stage_name"],
            stage_description=definition["stage_description"],
            required_fields=list(definition["required_fields"]),
            status="available" if number == TITLE_STAGE else "locked",
            due_date=now + timedelta(days=due_days[number]),
            feedback_history=[],
        )
        for number, definition in enumerate(STAGE_DEFINITIONS)
    ]
    project.current_stage = TITLE_STAGE
    project.overall_status = "in_progress"
    project.last_activity_at = now


def submit(project, stage_number: int, payload: dict | None, *, decision=None, now=None) -> ReviewStage:
    """Store a submission and move the stage to ``submitted``.

    For stage 0 the payload must carry a title and ``decision`` must be the
    SubmissionGate result for it; a rejecting decision raises
    SimilarityRejection and leaves the stage available.

    Raises:
        NotFoundError, StateConflictError, ValidationError, SimilarityRejection
    """
    now = _now(now)
    stage = get_stage(project, stage_number)
    required, _ = STAGE_ACTIONS["submit"]
    if stage.status != required:
        raise StateConflictError(
            stage_number, "submit", stage.status, required,
            message="This review stage is not available for submission",
        )

    data = _clean_payload(payload)
    if stage_number == TITLE_STAGE:
        if not data.get("title"):
            raise ValidationError("Project title is required", details={"title": "required"})
        if decision is None:
            raise ValidationError("Title submissions must pass the similarity check")
        decision.raise_for_rejection()
        data["similarity"] = decision.similarity_record()

    data["submitted_at"] = now.isoformat()
    _apply(stage, "submit")
    stage.submission = data

    if project.overall_status == "not_started":
        project.overall_status = "in_progress"
    project.last_activity_at = now
    notify(project, f"{stage.stage_name} submitted successfully", "success", now)
    return stage


def approve(project, stage_number: int, feedback: dict | None = None, *, reviewer_id=None, now=None) -> ReviewStage:
    """Complete a submitted stage and unlock the next one.

    Raises:
        NotFoundError, StateConflictError, ValidationError
    """
    now = _now(now)
    stage = get_stage(project, stage_number)
    if stage.status != "submitted":
        raise StateConflictError(stage_number, "approve", stage.status, "submitted")

    entry = _clean_feedback(feedback, reviewer_id, approved=True, now=now)
    _apply(stage, "approve")
    _record_feedback(stage, entry)
    stage.completed_at = now

    next_stage = project.stage(stage_number + 1) if stage_number < FINAL_STAGE else None
    if next_stage is not None:
        if not validate_stage_transition(next_stage.status, "available"):
            raise StateConflictError(next_stage.stage_number, "unlock", next_stage.status, "locked")
        next_stage.status = "available"
        project.current_stage = max(project.current_stage or 0, next_stage.stage_number)
        notify(
            project,
            f"{stage.stage_name} approved. {next_stage.stage_name} is now available.",
            "success",
            now,
        )
    else:
        project.overall_status = "completed"
        notify(project, "All review stages completed successfully!", "success", now)

    project.last_activity_at = now
    return stage


def reject(project, stage_number: int, feedback: dict | None = None, *, reviewer_id=None, now=None) -> ReviewStage:
    """Send a submitted stage back for revision.

    Raises:
        NotFoundError, StateConflictError, ValidationError
    """
    now = _now(now)
    stage = get_stage(project, stage_number)
    if stage.status != "submitted":
        raise StateConflictError(stage_number, "reject", stage.status, "submitted")

    entry = _clean_feedback(feedback, reviewer_id, approved=False, now=now)
    _apply(stage, "reject")
    _record_feedback(stage, entry)

    project.last_activity_at = now
    notify(project, f"{stage.stage_name} requires revision. Please resubmit.", "warning", now)
    return stage
