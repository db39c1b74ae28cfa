"""
Student Review Portal
Project review domain models.

Models:
    - Project: one per student; owns the four review stages and the
      notification log
    - ReviewStage: a single gated checkpoint (Title, Proposal, Progress, Final)
    - ProjectNotification: append-only message log with read tracking

Lifecycle per stage: locked → available → submitted → completed, with
submitted → available on rejection so the student can resubmit.
Stage 0 starts available, stages 1–3 start locked.
"""

from datetime import datetime, timezone

from review_portal.models import db

# ── Constants ────────────────────────────────────────────────────────────────

STAGE_STATUSES = ("locked", "available", "submitted", "completed")
PROJECT_STATUSES = ("not_started", "in_progress", "completed")
NOTIFICATION_TYPES = frozenset({"info", "success", "warning", "error"})

TITLE_STAGE = 0
FINAL_STAGE = 3

# Ordered stage catalogue; index == stage_number.
STAGE_DEFINITIONS = (
    {
        "stage_name": "Project Title Submission",
        "stage_description": "Submit your project title for approval",
        "required_fields": ["title", "description"],
    },
    {
        "stage_name": "Initial Proposal",
        "stage_description": "Submit your detailed project proposal",
        "required_fields": ["title", "description", "methodology", "objectives"],
    },
    {
        "stage_name": "Progress Report",
        "stage_description": "Submit your project progress report",
        "required_fields": ["progress_description", "completed_work", "challenges", "next_steps"],
    },
    {
        "stage_name": "Complete Submission",
        "stage_description": "Submit your final project documentation",
        "required_fields": ["final_report", "source_code", "documentation"],
    },
)

STAGE_TRANSITIONS = {
    "locked":    ["available"],
    "available": ["submitted"],
    "submitted": ["completed", "available"],   # approve | reject
    "completed": [],
}


def validate_stage_transition(old_status, new_status):
    """Return True if ReviewStage status transition is valid."""
    return new_status in STAGE_TRANSITIONS.get(old_status, [])


def _iso(value):
    return value.isoformat() if value else None


class Project(db.Model):
    """
    Student project aggregate.

    current_stage only moves forward (on approval). Progress, the current
    actionable stage and the next due date are derived on read.
    """

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    guide_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    department = db.Column(db.String(200), nullable=False, index=True)
    academic_year = db.Column(db.String(9), nullable=False, comment="YYYY-YYYY")
    current_stage = db.Column(db.Integer, nullable=False, default=0)
    overall_status = db.Column(
        db.String(20), nullable=False, default="not_started",
        comment="not_started | in_progress | completed",
    )
    last_activity_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    review_stages = db.relationship(
        "ReviewStage", back_populates="project", cascade="all, delete-orphan",
        order_by="ReviewStage.stage_number",
    )
    notifications = db.relationship(
        "ProjectNotification", back_populates="project", cascade="all, delete-orphan",
        order_by="ProjectNotification.id",
    )

    def stage(self, stage_number):
        for s in self.review_stages:
            if s.stage_number == stage_number:
                return s
        return None

    @property
    def title(self):
        """Title submitted at stage 0, if any."""
        title_stage = self.stage(TITLE_STAGE)
        if title_stage and title_stage.submission:
            return title_stage.submission.get("title")
        return None

    def to_dict(self, include_notifications=False):
        from review_portal.services import stage_workflow

        available = stage_workflow.current_available_stage(self)
        d = {
            "id": self.id,
            "student_id": self.student_id,
            "guide_id": self.guide_id,
            "department": self.department,
            "academic_year": self.academic_year,
            "title": self.title,
            "current_stage": self.current_stage,
            "overall_status": self.overall_status,
            "progress_percentage": stage_workflow.progress_percentage(self),
            "current_available_stage": available.stage_number if available else None,
            "next_due_date": _iso(stage_workflow.next_due_date(self)),
            "review_stages": [s.to_dict() for s in self.review_stages],
            "last_activity_at": _iso(self.last_activity_at),
            "created_at": _iso(self.created_at),
        }
        if include_notifications:
            d["notifications"] = [n.to_dict() for n in self.notifications]
        return d

    def __repr__(self):
        return f"<Project {self.id}: student={self.student_id} stage={self.current_stage}>"


class ReviewStage(db.Model):
    """
    One review checkpoint of a project.

    ``version`` is the optimistic-concurrency counter: every flush of a changed
    stage issues ``UPDATE … WHERE id = ? AND version = ?``, so two writers that
    both loaded the stage as ``available`` cannot both apply a transition.
    """

    __tablename__ = "review_stages"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    stage_number = db.Column(db.Integer, nullable=False)
    stage_name = db.Column(db.String(100), nullable=False)
    stage_description = db.Column(db.String(300), nullable=False, default="")
    required_fields = db.Column(db.JSON, default=list)
    status = db.Column(db.String(20), nullable=False, default="locked",
                       comment="locked | available | submitted | completed")

    # {title, description, files, submitted_at, similarity: {percentage, compared_with}}
    submission = db.Column(db.JSON, nullable=True)
    # {comment, grade, reviewer_id, reviewed_at, approved}
    feedback = db.Column(db.JSON, nullable=True)
    feedback_history = db.Column(db.JSON, default=list)

    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("project_id", "stage_number", name="uq_review_stage_project_number"),
    )
    __mapper_args__ = {"version_id_col": version}

    project = db.relationship("Project", back_populates="review_stages")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "stage_number": self.stage_number,
            "stage_name": self.stage_name,
            "stage_description": self.stage_description,
            "required_fields": self.required_fields or [],
            "status": self.status,
            "submission": self.submission,
            "feedback": self.feedback,
            "feedback_history": self.feedback_history or [],
            "due_date": _iso(self.due_date),
            "completed_at": _iso(self.completed_at),
        }

    def __repr__(self):
        return f"<ReviewStage {self.project_id}/{self.stage_number}: {self.status}>"


class ProjectNotification(db.Model):
    """Project-scoped notification. Only the read flag ever changes."""

    __tablename__ = "project_notifications"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    message = db.Column(db.String(500), nullable=False)
    type = db.Column(db.String(20), nullable=False, default="info", comment="info | success | warning | error")
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    project = db.relationship("Project", back_populates="notifications")

    def mark_read(self):
        self.is_read = True
        self.read_at = datetime.now(timezone.utc)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "message": self.message,
            "type": self.type,
            "is_read": self.is_read,
            "read_at": _iso(self.read_at),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<ProjectNotification {self.id}: {self.message[:40]}>"
