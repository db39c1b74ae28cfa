"""
Student Review Portal
Tests — project notification log.
"""

import pytest

from review_portal.core.exceptions import NotFoundError
from review_portal.models.project import ProjectNotification
from review_portal.services import project_service
from review_portal.services.notification import NotificationService


@pytest.fixture()
def reviewed_project(student, staff):
    """Title submitted, rejected, resubmitted and approved: four notifications."""
    project_service.submit_title(student.id, "Quantum Cryptography Protocols")
    project_service.reject_stage(student.id, 0, {"comment": "Narrow the scope"}, reviewer_id=staff.id)
    project_service.submit_title(student.id, "Quantum Cryptography Protocols for Banking")
    project_service.approve_stage(student.id, 0, reviewer_id=staff.id)
    return project_service.get_or_create_project(student.id)


class TestNotificationLog:
    def test_every_transition_notifies(self, reviewed_project):
        types = [n.type for n in reviewed_project.notifications]
        assert types == ["success", "warning", "success", "success"]

    def test_list_newest_first(self, student, reviewed_project):
        result = project_service.list_notifications(student.id)
        assert result["total"] == 4
        assert result["unread"] == 4
        assert result["items"][0]["message"] == (
            "Project Title Submission approved. Initial Proposal is now available."
        )

    def test_unread_listed_before_read(self, student, reviewed_project):
        newest = reviewed_project.notifications[-1]
        project_service.mark_notification_read(student.id, newest.id)
        items = project_service.list_notifications(student.id)["items"]
        assert [i["is_read"] for i in items] == [False, False, False, True]

    def test_mark_read_changes_only_read_flag(self, student, reviewed_project):
        target = reviewed_project.notifications[0]
        before = (target.message, target.type, target.created_at)
        result = project_service.mark_notification_read(student.id, target.id)
        assert result["is_read"] is True
        assert result["read_at"] is not None
        assert (target.message, target.type, target.created_at) == before
        assert NotificationService.unread_count(reviewed_project.id) == 3

    def test_mark_all_read(self, student, reviewed_project):
        assert project_service.mark_all_notifications_read(student.id) == 4
        assert project_service.list_notifications(student.id, unread_only=True)["total"] == 0
        assert ProjectNotification.query.count() == 4

    def test_cannot_read_another_projects_notification(self, student, other_student, reviewed_project):
        project_service.get_or_create_project(other_student.id)
        target = reviewed_project.notifications[0]
        with pytest.raises(NotFoundError):
            project_service.mark_notification_read(other_student.id, target.id)

    def test_review_stages_preview(self, student, reviewed_project):
        stages = project_service.get_review_stages(student.id)
        assert len(stages["notifications"]) == 4
        assert all(n["is_read"] is False for n in stages["notifications"])

    def test_pagination(self, student, reviewed_project):
        page = project_service.list_notifications(student.id, limit=2, offset=2)
        assert len(page["items"]) == 2
        assert page["total"] == 4
