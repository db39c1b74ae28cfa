"""
Persistence collaborator for the review workflow.

All reads and writes the project service needs go through ProjectStore, so
the similarity engine and the state machine only ever see plain, already
fetched data. The default implementation is backed by Flask-SQLAlchemy;
tests may pass any object with the same methods.

Concurrency: ReviewStage carries a ``version_id_col``. When two requests load
the same stage and both try to move it out of ``available``, the second flush
matches zero rows and SQLAlchemy raises StaleDataError. save_project rolls
back and reports that as StateConflictError, so at most one transition is
applied per stage.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from review_portal.core.exceptions import ConflictError, StateConflictError
from review_portal.models import db
from review_portal.models.project import TITLE_STAGE, Project, ReviewStage
from review_portal.models.title import TitleRecord
from review_portal.models.user import User

logger = logging.getLogger(__name__)


class ProjectStore:
    """SQLAlchemy-backed store. Stateless; every call uses db.session."""

    # ── Reads ─────────────────────────────────────────────────────────────

    def get_user(self, user_id) -> User | None:
        if user_id is None:
            return None
        return db.session.get(User, user_id)

    def find_project_by_student(self, student_id) -> Project | None:
        return db.session.execute(
            select(Project).where(Project.student_id == student_id)
        ).scalar_one_or_none()

    def find_titles_by_department(self, department: str | None) -> list[TitleRecord]:
        """Title corpus in insertion order; every department when None."""
        stmt = select(TitleRecord).order_by(TitleRecord.submitted_at, TitleRecord.id)
        if department:
            stmt = stmt.where(db.func.lower(TitleRecord.department) == department.strip().lower())
        return list(db.session.execute(stmt).scalars())

    def find_other_project_titles(self, department: str | None, exclude_project_id=None) -> list[dict]:
        """Stage-0 titles submitted by other students' projects in the department."""
        stmt = (
            select(ReviewStage, Project)
            .join(Project, ReviewStage.project_id == Project.id)
            .where(ReviewStage.stage_number == TITLE_STAGE)
            .order_by(Project.id)
        )
        if department:
            stmt = stmt.where(db.func.lower(Project.department) == department.strip().lower())
        if exclude_project_id is not None:
            stmt = stmt.where(Project.id != exclude_project_id)

        entries = []
        for stage, project in db.session.execute(stmt):
            title = (stage.submission or {}).get("title")
            if not title:
                continue
            entries.append({
                "id": f"project:{project.id}",
                "title": title,
                "department": project.department,
                "submitted_by": str(project.student_id),
                "submitted_at": (stage.submission or {}).get("submitted_at"),
            })
        return entries

    # ── Writes ────────────────────────────────────────────────────────────

    def add_project(self, project: Project) -> Project:
        """Insert a new project; returns the existing one if another request won."""
        db.session.add(project)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            existing = self.find_project_by_student(project.student_id)
            if existing is None:
                raise ConflictError("Project", "student_id", str(project.student_id)) from exc
            logger.info(
                "Project already created concurrently",
                extra={"student_id": project.student_id, "project_id": existing.id},
            )
            return existing
        return project

    def insert_title_record(self, record: TitleRecord) -> None:
        """Stage a corpus insert; committed together with the next save_project."""
        db.session.add(record)

    def save_project(self, project: Project, *, stage_number=None, action=None) -> None:
        """Commit pending changes; a lost stage race becomes StateConflictError."""
        db.session.add(project)
        project_id = project.id
        try:
            db.session.commit()
        except StaleDataError as exc:
            db.session.rollback()
            logger.warning(
                "Concurrent stage update rejected",
                extra={"project_id": project_id, "stage_number": stage_number},
            )
            current = None
            if stage_number is not None:
                current = db.session.execute(
                    select(ReviewStage.status).where(
                        ReviewStage.project_id == project_id,
                        ReviewStage.stage_number == stage_number,
                    )
                ).scalar_one_or_none()
            raise StateConflictError(
                stage_number if stage_number is not None else -1,
                action or "update",
                current,
                message="Review stage was modified by another request; reload and retry",
            ) from exc


default_store = ProjectStore()
