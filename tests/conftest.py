"""
Shared pytest fixtures for the Student Review Portal test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / student / other_student / staff / admin: user factories
    - auth_headers: X-User-Id header builder
"""

import pytest

from review_portal import create_app
from review_portal.models import db as _db
from review_portal.models.title import TitleRecord
from review_portal.models.user import User


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: create and commit a User."""
    counter = {"n": 0}

    def _make(user_type="Student", department="Computer Science", full_name=None, email=None):
        counter["n"] += 1
        user = User(
            email=email or f"{user_type.lower()}{counter['n']}@college.edu",
            full_name=full_name or f"{user_type} {counter['n']}",
            user_type=user_type,
            department=department,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def student(make_user):
    return make_user("Student", full_name="Student One")


@pytest.fixture()
def other_student(make_user):
    return make_user("Student", full_name="John Doe")


@pytest.fixture()
def staff(make_user):
    return make_user("Staff", full_name="Dr. Sarah Johnson")


@pytest.fixture()
def admin(make_user):
    return make_user("Admin", department="Administration")


@pytest.fixture()
def add_title():
    """Factory: insert a TitleRecord into the corpus."""
    def _add(title, department="Computer Science", submitted_by="Seed", submitted_by_id=None):
        record = TitleRecord(
            title=title,
            submitted_by=submitted_by,
            submitted_by_id=submitted_by_id,
            department=department,
            similarity_percentage=0,
            compared_with=[],
        )
        _db.session.add(record)
        _db.session.commit()
        return record

    return _add


@pytest.fixture()
def auth_headers():
    """Factory: X-User-Id header for a user (or raw id)."""
    def _headers(user):
        user_id = user if isinstance(user, (int, str)) else user.id
        return {"X-User-Id": str(user_id)}

    return _headers
