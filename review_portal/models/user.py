"""
Student Review Portal
User model — the identity collaborator's local shadow.

Authentication and session issuance live outside this service; the portal
only needs a stable id, a user type and the department scope.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import validates

from review_portal.models import db

USER_TYPES = frozenset({"Admin", "Staff", "Student"})
REVIEWER_TYPES = frozenset({"Admin", "Staff"})


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), unique=True, nullable=False)
    full_name = db.Column(db.String(200))
    user_type = db.Column(db.String(20), nullable=False, default="Student",
                          comment="Admin | Staff | Student")
    department = db.Column(db.String(200), nullable=True, index=True)
    student_code = db.Column(db.String(50), nullable=True)
    staff_code = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @validates("email")
    def _lower_email(self, _key, value):
        return value.strip().lower() if value else value

    @property
    def is_student(self) -> bool:
        return self.user_type == "Student"

    @property
    def is_reviewer(self) -> bool:
        return self.user_type in REVIEWER_TYPES

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "user_type": self.user_type,
            "department": self.department,
            "student_code": self.student_code,
            "staff_code": self.staff_code,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
