"""
Student Review Portal
Title corpus model.

Models:
    - TitleRecord: an accepted project title, kept indefinitely so that later
      submissions in the same department can be compared against it.

Records are written once, on accepted submission (or by seeding), together
with the similarity metadata computed at that moment. They are never edited
afterwards.
"""

from datetime import datetime, timezone

from review_portal.models import db


class TitleRecord(db.Model):
    """Accepted project title — one row per accepted submission."""

    __tablename__ = "title_records"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    submitted_by = db.Column(db.String(200), nullable=False, comment="Display name of the submitter")
    submitted_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    department = db.Column(db.String(200), nullable=False, default="Computer Science", index=True)
    submitted_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True,
    )

    # Similarity metadata captured when the title was accepted
    similarity_percentage = db.Column(db.Integer, default=0)
    compared_with = db.Column(db.JSON, default=list, comment='[{"title": str, "percentage": int}]')

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "submitted_by": self.submitted_by,
            "submitted_by_id": self.submitted_by_id,
            "department": self.department,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "similarity": {
                "percentage": self.similarity_percentage or 0,
                "compared_with": self.compared_with or [],
            },
        }

    def __repr__(self):
        return f"<TitleRecord {self.id}: {self.title[:40]}>"
