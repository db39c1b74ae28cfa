"""
Student Review Portal
Notification Service.

Queries and read-tracking for the per-project notification log. New entries
are appended by stage_workflow on every transition; this service never edits
message content and never deletes entries.
"""

from datetime import datetime, timezone

from review_portal.core.exceptions import NotFoundError
from review_portal.models import db
from review_portal.models.project import ProjectNotification


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_project(project_id, unread_only=False, limit=50, offset=0):
        """
        Retrieve a project's notifications, unread first then newest first.

        Returns:
            (items, total)
        """
        q = ProjectNotification.query.filter_by(project_id=project_id)
        if unread_only:
            q = q.filter_by(is_read=False)
        total = q.count()
        items = (
            q.order_by(
                ProjectNotification.is_read,
                ProjectNotification.created_at.desc(),
                ProjectNotification.id.desc(),
            )
            .offset(offset).limit(limit).all()
        )
        return items, total

    @staticmethod
    def unread_count(project_id):
        """Return count of unread notifications."""
        return ProjectNotification.query.filter_by(project_id=project_id, is_read=False).count()

    @staticmethod
    def recent_unread(project_id, limit=5):
        items, _ = NotificationService.list_for_project(project_id, unread_only=True, limit=limit)
        return items

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(project_id, notification_id):
        """Mark a single notification as read. Only the read flag changes."""
        notif = db.session.get(ProjectNotification, notification_id)
        if not notif or notif.project_id != project_id:
            raise NotFoundError(resource="Notification", resource_id=notification_id)
        if not notif.is_read:
            notif.mark_read()
            db.session.commit()
        return notif

    @staticmethod
    def mark_all_read(project_id):
        """Mark all unread notifications of a project as read."""
        now = datetime.now(timezone.utc)
        count = (
            ProjectNotification.query
            .filter_by(project_id=project_id, is_read=False)
            .update({"is_read": True, "read_at": now}, synchronize_session="fetch")
        )
        db.session.commit()
        return count
