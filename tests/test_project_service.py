"""
Student Review Portal
Tests — project review service (DB-backed).

Covers:
    1. Lazy project creation
    2. Title submission through the similarity gate + corpus insert
    3. Stage submission / approval / rejection
    4. check_similarity corpus rules (department scope, own titles excluded,
       exact duplicates among punctuation variants)
    5. Concurrent stage update → StateConflictError
"""

import pytest
from sqlalchemy import update

from review_portal.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDenied,
    SimilarityRejection,
    StateConflictError,
    ValidationError,
)
from review_portal.models import db
from review_portal.models.project import Project, ReviewStage
from review_portal.models.title import TitleRecord
from review_portal.services import project_service
from review_portal.services.project_store import ProjectStore
from review_portal.services.submission_gate import (
    ACCEPTED,
    REJECTED_EXACT_DUPLICATE,
    REJECTED_HIGH_SIMILARITY,
)


def _approved_title(student, staff, title="Quantum Cryptography Protocols for Secure Messaging"):
    project_service.submit_title(student.id, title)
    project_service.approve_stage(student.id, 0, {"grade": 80}, reviewer_id=staff.id)


# ═══════════════════════════════════════════════════════════════════════════
#  PROJECT CREATION
# ═══════════════════════════════════════════════════════════════════════════

class TestGetOrCreateProject:
    def test_creates_with_four_stages(self, student):
        project = project_service.get_or_create_project(student.id)
        assert project.id is not None
        assert [s.status for s in project.review_stages] == ["available", "locked", "locked", "locked"]
        assert project.department == "Computer Science"
        assert len(project.academic_year) == 9

    def test_is_idempotent(self, student):
        first = project_service.get_or_create_project(student.id)
        second = project_service.get_or_create_project(student.id)
        assert first.id == second.id
        assert Project.query.count() == 1

    def test_staff_cannot_own_a_project(self, staff):
        with pytest.raises(PermissionDenied):
            project_service.get_or_create_project(staff.id)

    def test_unknown_user(self):
        with pytest.raises(NotFoundError):
            project_service.get_or_create_project(999)

    def test_department_falls_back_to_default(self, make_user):
        user = make_user("Student", department=None)
        project = project_service.get_or_create_project(user.id)
        assert project.department == "Computer Science"

    def test_insert_failure_without_existing_row_is_conflict(self, student):
        class _BlindStore(ProjectStore):
            def find_project_by_student(self, student_id):
                return None

        project_service.get_or_create_project(student.id)
        with pytest.raises(ConflictError) as exc_info:
            project_service.get_or_create_project(student.id, store=_BlindStore())
        assert exc_info.value.resource == "Project"
        assert exc_info.value.field == "student_id"
        assert Project.query.count() == 1


# ═══════════════════════════════════════════════════════════════════════════
#  TITLE SUBMISSION
# ═══════════════════════════════════════════════════════════════════════════

class TestSubmitTitle:
    def test_accepted_title_enters_corpus(self, student):
        result = project_service.submit_title(student.id, "  Quantum Cryptography Protocols  ", "desc")
        assert result["outcome"] == ACCEPTED
        assert result["project"]["review_stages"][0]["status"] == "submitted"
        assert result["project"]["title"] == "Quantum Cryptography Protocols"

        record = TitleRecord.query.one()
        assert record.title == "Quantum Cryptography Protocols"
        assert record.submitted_by_id == student.id
        assert record.submitted_by == "Student One"
        assert record.department == "Computer Science"

    def test_exact_duplicate_of_corpus_rejected(self, student, add_title):
        add_title("Machine Learning X")
        with pytest.raises(SimilarityRejection) as exc_info:
            project_service.submit_title(student.id, "machine learning x")
        assert exc_info.value.outcome == REJECTED_EXACT_DUPLICATE
        assert exc_info.value.score_percent == 100
        assert TitleRecord.query.count() == 1

    def test_rejection_leaves_stage_available(self, student, add_title):
        add_title("A Survey of Deep Learning for Image Classification")
        with pytest.raises(SimilarityRejection) as exc_info:
            project_service.submit_title(student.id, "A Study of Deep Learning for Image Classification")
        assert exc_info.value.outcome == REJECTED_HIGH_SIMILARITY
        db.session.expire_all()
        project = Project.query.filter_by(student_id=student.id).one()
        assert project.stage(0).status == "available"

    def test_duplicate_of_other_students_title(self, student, other_student):
        project_service.submit_title(student.id, "Smart Home Automation System")
        with pytest.raises(SimilarityRejection):
            project_service.submit_title(other_student.id, "Smart Home Automation System")

    def test_other_department_does_not_block(self, student, add_title):
        add_title("Smart Home Automation System", department="Electrical Engineering")
        result = project_service.submit_title(student.id, "Smart Home Automation System")
        assert result["outcome"] == ACCEPTED

    def test_empty_title(self, student):
        with pytest.raises(ValidationError):
            project_service.submit_title(student.id, "   ")
        assert Project.query.count() == 0

    def test_second_submission_while_pending(self, student):
        project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        with pytest.raises(StateConflictError, match="not available"):
            project_service.submit_title(student.id, "Autonomous Drone Navigation")

    def test_resubmission_after_reject_ignores_own_title(self, student, staff):
        project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        project_service.reject_stage(student.id, 0, {"comment": "Narrow it"}, reviewer_id=staff.id)
        result = project_service.submit_title(student.id, "Quantum Cryptography Protocols for Banking")
        assert result["outcome"] == ACCEPTED


# ═══════════════════════════════════════════════════════════════════════════
#  STAGES
# ═══════════════════════════════════════════════════════════════════════════

class TestStages:
    def test_approve_unlocks_next(self, student, staff):
        _approved_title(student, staff)
        stages = project_service.get_review_stages(student.id)
        assert [s["status"] for s in stages["review_stages"]] == ["completed", "available", "locked", "locked"]
        assert stages["current_stage"] == 1
        assert stages["progress_percentage"] == 25

    def test_submit_locked_stage(self, student):
        project_service.get_or_create_project(student.id)
        with pytest.raises(StateConflictError):
            project_service.submit_stage(student.id, 2, {"progress_description": "x"})

    def test_stage_conflict_is_a_conflict(self, student):
        project_service.get_or_create_project(student.id)
        with pytest.raises(ConflictError) as exc_info:
            project_service.submit_stage(student.id, 2, {"progress_description": "x"})
        assert isinstance(exc_info.value, StateConflictError)
        assert exc_info.value.resource == "ReviewStage"
        assert exc_info.value.field == "status"
        assert exc_info.value.value == "locked"

    def test_submit_without_project(self, student):
        with pytest.raises(NotFoundError):
            project_service.submit_stage(student.id, 1, {})

    def test_submit_stage_zero_routes_through_gate(self, student, add_title):
        add_title("Machine Learning X")
        with pytest.raises(SimilarityRejection):
            project_service.submit_stage(student.id, 0, {"title": "Machine Learning X"})

    def test_full_lifecycle(self, student, staff):
        _approved_title(student, staff)
        for number in (1, 2, 3):
            result = project_service.submit_stage(student.id, number, {"description": f"stage {number}"})
            assert result["outcome"] == "submitted"
            project_service.approve_stage(student.id, number, reviewer_id=staff.id)
        project = Project.query.filter_by(student_id=student.id).one()
        assert project.overall_status == "completed"
        assert project.to_dict()["progress_percentage"] == 100

    def test_reject_records_feedback(self, student, staff):
        project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        stage = project_service.reject_stage(
            student.id, 0, {"comment": "Too vague", "grade": 40}, reviewer_id=staff.id,
        )
        assert stage["status"] == "available"
        assert stage["feedback"]["grade"] == 40
        assert stage["feedback"]["reviewer_id"] == staff.id

    def test_student_cannot_review(self, student, other_student):
        project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        with pytest.raises(PermissionDenied):
            project_service.approve_stage(student.id, 0, reviewer_id=other_student.id)

    def test_admin_can_review(self, student, admin):
        project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        stage = project_service.approve_stage(student.id, 0, reviewer_id=admin.id)
        assert stage["status"] == "completed"

    def test_approve_twice_conflicts(self, student, staff):
        _approved_title(student, staff)
        with pytest.raises(StateConflictError):
            project_service.approve_stage(student.id, 0, reviewer_id=staff.id)

    def test_concurrent_update_maps_to_state_conflict(self, student):
        project = project_service.get_or_create_project(student.id)
        assert project.stage(0).version == 1
        # Another request bumps the stage version behind this session's back.
        db.session.execute(
            update(ReviewStage)
            .where(ReviewStage.project_id == project.id, ReviewStage.stage_number == 0)
            .values(version=ReviewStage.version + 1)
            .execution_options(synchronize_session=False)
        )
        with pytest.raises(StateConflictError, match="modified by another request"):
            project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        assert TitleRecord.query.count() == 0


# ═══════════════════════════════════════════════════════════════════════════
#  CHECK SIMILARITY
# ═══════════════════════════════════════════════════════════════════════════

class TestCheckSimilarity:
    def test_read_only(self, student, add_title):
        add_title("Smart Home Automation System")
        decision = project_service.check_similarity("Smart Home Automation System", "Computer Science")
        assert decision.outcome == REJECTED_EXACT_DUPLICATE
        assert TitleRecord.query.count() == 1
        assert Project.query.count() == 0

    def test_scope_defaults_to_student_department(self, make_user, add_title):
        ee_student = make_user("Student", department="Electrical Engineering")
        add_title("Smart Home Automation System", department="Computer Science")
        decision = project_service.check_similarity("Smart Home Automation System", student_id=ee_student.id)
        assert decision.outcome == ACCEPTED

    def test_own_title_excluded(self, student):
        project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        decision = project_service.check_similarity("Quantum Cryptography Protocols", student_id=student.id)
        assert decision.outcome == ACCEPTED

    def test_missing_scope_uses_default_department(self, add_title):
        add_title("Smart Home Automation System", department="Electrical Engineering")
        decision = project_service.check_similarity("Smart Home Automation System")
        assert decision.outcome == ACCEPTED

        add_title("Smart Home Automation System", department="Computer Science")
        decision = project_service.check_similarity("Smart Home Automation System")
        assert decision.outcome == REJECTED_EXACT_DUPLICATE

    def test_student_without_department_stays_in_default(self, make_user, add_title):
        user = make_user("Student", department=None)
        add_title("Smart Home Automation System", department="Electrical Engineering")
        decision = project_service.check_similarity("Smart Home Automation System", student_id=user.id)
        assert decision.outcome == ACCEPTED

    def test_empty_title(self):
        with pytest.raises(ValidationError):
            project_service.check_similarity("")


class TestCorpus:
    def test_punctuation_variants_all_reach_the_gate(self, add_title):
        add_title("Smart Home Automation System!")
        add_title("smart home automation system")
        corpus = project_service.build_corpus("Computer Science", ProjectStore())
        assert [r.title for r in corpus] == [
            "Smart Home Automation System!",
            "smart home automation system",
        ]

        decision = project_service.check_similarity("Smart Home Automation System", "Computer Science")
        assert decision.outcome == REJECTED_EXACT_DUPLICATE
        assert decision.score_percent == 100
        assert decision.best_match_title == "smart home automation system"

    def test_case_and_whitespace_variants_collapse(self, add_title):
        add_title("Smart Home Automation System")
        add_title("  smart home automation system ")
        corpus = project_service.build_corpus("Computer Science", ProjectStore())
        assert len(corpus) == 1

    def test_includes_pending_stage_zero_titles(self, student, other_student):
        project_service.submit_title(student.id, "Quantum Cryptography Protocols")
        other = project_service.get_or_create_project(other_student.id)
        corpus = project_service.build_corpus(
            "Computer Science", ProjectStore(), exclude_project_id=other.id,
        )
        assert [e.title if hasattr(e, "title") else e["title"] for e in corpus] == [
            "Quantum Cryptography Protocols",
        ]
