"""
Project Review Service — the operations exposed to the HTTP layer.

Functions:
    - check_similarity:       read-only gate evaluation for a candidate title
    - get_or_create_project:  lazily create a student's project (stage 0 open)
    - submit_title:           stage-0 submission through the similarity gate
    - submit_stage:           submission for any stage (stage 0 → submit_title)
    - approve_stage:          reviewer approval, unlocks the next stage
    - reject_stage:           reviewer rejection, re-opens the stage
    - get_review_stages:      stages + progress + recent unread notifications
    - list_notifications / mark_notification_read / mark_all_notifications_read

Layer contract:
    - Corpus loading and persistence go through a ProjectStore (injectable).
    - Similarity scoring and stage transitions are delegated to the pure
      modules submission_gate and stage_workflow.
    - Expected failures raise review_portal.core.exceptions types only.
"""

import logging
from datetime import datetime, timezone

from flask import current_app, has_app_context

from review_portal.core.exceptions import NotFoundError, PermissionDenied, StateConflictError
from review_portal.models.project import TITLE_STAGE, Project
from review_portal.models.title import TitleRecord
from review_portal.services import stage_workflow, submission_gate
from review_portal.services.notification import NotificationService
from review_portal.services.project_store import default_store

logger = logging.getLogger(__name__)

_DEFAULTS = {
    "SIMILARITY_THRESHOLD": submission_gate.DEFAULT_THRESHOLD,
    "SIMILARITY_REFERENCE_FLOOR": submission_gate.DEFAULT_REFERENCE_FLOOR,
    "TITLE_MIN_TOKEN_LENGTH": 3,
    "DEFAULT_DEPARTMENT": "Computer Science",
    "STAGE_DUE_DAYS": stage_workflow.DEFAULT_DUE_DAYS,
    "UNREAD_NOTIFICATION_PREVIEW": 5,
}


def _setting(name):
    if has_app_context():
        return current_app.config.get(name, _DEFAULTS[name])
    return _DEFAULTS[name]


# ── Private helpers ────────────────────────────────────────────────────────────


def _get_student(student_id, store):
    user = store.get_user(student_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=student_id)
    if not user.is_student:
        raise PermissionDenied(student_id, "manage a review project", "Student")
    return user


def _get_reviewer(reviewer_id, store):
    reviewer = store.get_user(reviewer_id)
    if reviewer is None or not reviewer.is_reviewer:
        raise PermissionDenied(reviewer_id, "review project stages", "Staff")
    return reviewer


def _require_project(student_id, store) -> Project:
    project = store.find_project_by_student(student_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=student_id)
    return project


def _academic_year(now=None) -> str:
    year = (now or datetime.now(timezone.utc)).year
    return f"{year}-{year + 1}"


def _title_key(title) -> str:
    return (title or "").strip().lower()


def build_corpus(department, store, *, exclude_project_id=None, exclude_student_id=None) -> list:
    """Title corpus for one department.

    Accepted TitleRecords come first (oldest first), followed by other
    students' stage-0 submissions. The caller's own records and project are
    left out. A pending stage-0 title that is also stored as a TitleRecord
    appears once; titles differing in anything beyond case and surrounding
    whitespace are all kept, so the exact-duplicate check sees every one.
    """
    corpus, seen = [], set()
    for record in store.find_titles_by_department(department):
        if exclude_student_id is not None and record.submitted_by_id == exclude_student_id:
            continue
        key = _title_key(record.title)
        if key in seen:
            continue
        seen.add(key)
        corpus.append(record)
    for entry in store.find_other_project_titles(department, exclude_project_id=exclude_project_id):
        key = _title_key(entry["title"])
        if key in seen:
            continue
        seen.add(key)
        corpus.append(entry)
    return corpus


def _evaluate(title, department, store, *, project_id=None, student_id=None):
    corpus = build_corpus(
        department, store, exclude_project_id=project_id, exclude_student_id=student_id,
    )
    return submission_gate.evaluate(
        title,
        corpus,
        scope=department,
        threshold=_setting("SIMILARITY_THRESHOLD"),
        reference_floor=_setting("SIMILARITY_REFERENCE_FLOOR"),
        min_length=_setting("TITLE_MIN_TOKEN_LENGTH"),
    )


# ── Public API ─────────────────────────────────────────────────────────────────


def check_similarity(candidate_title, scope=None, *, student_id=None, store=None):
    """Evaluate a title without submitting it.

    Args:
        candidate_title: Title to check.
        scope: Department to compare within. Defaults to the student's
               department when student_id is given, then to
               DEFAULT_DEPARTMENT; titles of other departments are never
               compared.
        student_id: When given, the student's own project and records are
                    excluded from the corpus.

    Returns:
        submission_gate.Decision

    Raises:
        ValidationError: empty title.
    """
    store = store or default_store
    title = submission_gate.clean_candidate(candidate_title)

    project_id = None
    if student_id is not None:
        user = store.get_user(student_id)
        project = store.find_project_by_student(student_id)
        project_id = project.id if project else None
        if not scope:
            scope = (project.department if project else None) or (user.department if user else None)
    if not scope:
        scope = _setting("DEFAULT_DEPARTMENT")

    decision = _evaluate(title, scope, store, project_id=project_id, student_id=student_id)
    logger.info(
        "Similarity check",
        extra={"department": scope, "outcome": decision.outcome, "score_percent": decision.score_percent},
    )
    return decision


def get_or_create_project(student_id, *, store=None) -> Project:
    """Return the student's project, creating it with stage 0 open if needed."""
    store = store or default_store
    user = _get_student(student_id, store)
    project = store.find_project_by_student(student_id)
    if project is not None:
        return project

    now = datetime.now(timezone.utc)
    project = Project(
        student_id=user.id,
        department=user.department or _setting("DEFAULT_DEPARTMENT"),
        academic_year=_academic_year(now),
    )
    stage_workflow.initialize_stages(project, now=now, due_days=_setting("STAGE_DUE_DAYS"))
    project = store.add_project(project)
    logger.info(
        "Project created",
        extra={"student_id": student_id, "project_id": project.id, "department": project.department},
    )
    return project


def submit_title(student_id, title, description=None, *, store=None) -> dict:
    """Submit a project title for review stage 0.

    The title is validated, the project is created if missing, stage 0 must
    be available, and the title must pass the similarity gate against the
    department corpus (other students only). An accepted title is stored on
    the stage and inserted into the corpus in the same commit.

    Returns:
        {"outcome": "accepted", "decision": {...}, "project": {...}}

    Raises:
        ValidationError, StateConflictError, SimilarityRejection, PermissionDenied
    """
    store = store or default_store
    clean_title = submission_gate.clean_candidate(title)
    user = _get_student(student_id, store)
    project = get_or_create_project(student_id, store=store)

    stage = stage_workflow.get_stage(project, TITLE_STAGE)
    if stage.status != "available":
        raise StateConflictError(
            TITLE_STAGE, "submit", stage.status, "available",
            message="Title submission is not available at this time",
        )

    decision = _evaluate(
        clean_title, project.department, store, project_id=project.id, student_id=student_id,
    )
    if not decision.accepted:
        logger.info(
            "Title rejected",
            extra={
                "student_id": student_id,
                "project_id": project.id,
                "outcome": decision.outcome,
                "score_percent": decision.score_percent,
            },
        )
    stage_workflow.submit(
        project, TITLE_STAGE, {"title": clean_title, "description": description or ""},
        decision=decision,
    )
    store.insert_title_record(TitleRecord(
        title=clean_title,
        submitted_by=user.full_name or user.email,
        submitted_by_id=user.id,
        department=project.department,
        similarity_percentage=decision.score_percent,
        compared_with=list(decision.compared_with),
    ))
    store.save_project(project, stage_number=TITLE_STAGE, action="submit")
    logger.info(
        "Title accepted",
        extra={"student_id": student_id, "project_id": project.id, "score_percent": decision.score_percent},
    )
    return {"outcome": decision.outcome, "decision": decision.to_dict(), "project": project.to_dict()}


def submit_stage(student_id, stage_number, payload, *, store=None) -> dict:
    """Submit any review stage. Stage 0 goes through the title gate.

    Raises:
        NotFoundError: no project yet, or unknown stage.
        StateConflictError: stage is not available.
        ValidationError, SimilarityRejection
    """
    store = store or default_store
    payload = payload or {}
    if stage_number == TITLE_STAGE:
        return submit_title(student_id, payload.get("title"), payload.get("description"), store=store)

    project = _require_project(student_id, store)
    stage_workflow.submit(project, stage_number, payload)
    store.save_project(project, stage_number=stage_number, action="submit")
    logger.info(
        "Stage submitted",
        extra={"student_id": student_id, "project_id": project.id, "stage_number": stage_number},
    )
    return {"outcome": "submitted", "project": project.to_dict()}


def approve_stage(student_id, stage_number, feedback=None, *, reviewer_id, store=None) -> dict:
    """Approve a submitted stage and unlock the next one.

    Returns:
        The approved stage as a dict.

    Raises:
        NotFoundError, StateConflictError, ValidationError, PermissionDenied
    """
    store = store or default_store
    reviewer = _get_reviewer(reviewer_id, store)
    project = _require_project(student_id, store)
    stage = stage_workflow.approve(project, stage_number, feedback, reviewer_id=reviewer.id)
    store.save_project(project, stage_number=stage_number, action="approve")
    logger.info(
        "Stage approved",
        extra={"student_id": student_id, "project_id": project.id, "stage_number": stage_number},
    )
    return stage.to_dict()


def reject_stage(student_id, stage_number, feedback=None, *, reviewer_id, store=None) -> dict:
    """Reject a submitted stage so the student can resubmit.

    Returns:
        The rejected stage as a dict (status back to ``available``).

    Raises:
        NotFoundError, StateConflictError, ValidationError, PermissionDenied
    """
    store = store or default_store
    reviewer = _get_reviewer(reviewer_id, store)
    project = _require_project(student_id, store)
    stage = stage_workflow.reject(project, stage_number, feedback, reviewer_id=reviewer.id)
    store.save_project(project, stage_number=stage_number, action="reject")
    logger.info(
        "Stage rejected",
        extra={"student_id": student_id, "project_id": project.id, "stage_number": stage_number},
    )
    return stage.to_dict()


def get_review_stages(student_id, *, store=None) -> dict:
    """Stages, progress and the most recent unread notifications."""
    store = store or default_store
    project = _require_project(student_id, store)
    unread = NotificationService.recent_unread(project.id, limit=_setting("UNREAD_NOTIFICATION_PREVIEW"))
    return {
        "review_stages": [s.to_dict() for s in project.review_stages],
        "current_stage": project.current_stage,
        "overall_status": project.overall_status,
        "progress_percentage": stage_workflow.progress_percentage(project),
        "notifications": [n.to_dict() for n in unread],
    }


def list_notifications(student_id, *, unread_only=False, limit=50, offset=0, store=None) -> dict:
    store = store or default_store
    project = _require_project(student_id, store)
    items, total = NotificationService.list_for_project(
        project.id, unread_only=unread_only, limit=limit, offset=offset,
    )
    return {
        "items": [n.to_dict() for n in items],
        "total": total,
        "unread": NotificationService.unread_count(project.id),
    }


def mark_notification_read(student_id, notification_id, *, store=None) -> dict:
    store = store or default_store
    project = _require_project(student_id, store)
    return NotificationService.mark_read(project.id, notification_id).to_dict()


def mark_all_notifications_read(student_id, *, store=None) -> int:
    store = store or default_store
    project = _require_project(student_id, store)
    return NotificationService.mark_all_read(project.id)
