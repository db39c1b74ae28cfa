"""
Sample data for local development and demos.

Both functions are idempotent: users are matched by email and titles by
their normalized text, so re-running adds only what is missing.
"""

import logging

from review_portal.models import db
from review_portal.models.title import TitleRecord
from review_portal.models.user import User
from review_portal.services.text_normalizer import normalize

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {"email": "admin@college.edu", "full_name": "Admin User", "user_type": "Admin",
     "department": "Administration", "staff_code": "ADM001"},
    {"email": "staff@college.edu", "full_name": "Dr. Sarah Johnson", "user_type": "Staff",
     "department": "Computer Science", "staff_code": "CSE001"},
    {"email": "student@college.edu", "full_name": "Student One", "user_type": "Student",
     "department": "Computer Science", "student_code": "CS2023001"},
    {"email": "john.doe@college.edu", "full_name": "John Doe", "user_type": "Student",
     "department": "Computer Science", "student_code": "CS2023002"},
]

SAMPLE_TITLES = [
    "Machine Learning for Text Classification",
    "Smart Home Automation System",
    "Blockchain-based Supply Chain Management",
]


def seed_sample_users() -> int:
    created = 0
    for data in SAMPLE_USERS:
        if User.query.filter_by(email=data["email"]).first():
            continue
        db.session.add(User(**data))
        created += 1
    db.session.commit()
    return created


def seed_sample_titles(department: str, submitted_by: str = "Sample Data") -> int:
    """Insert the sample titles into ``department``'s corpus."""
    existing = {
        normalize(r.title)
        for r in TitleRecord.query.filter(db.func.lower(TitleRecord.department) == department.lower())
    }
    created = 0
    for title in SAMPLE_TITLES:
        if normalize(title) in existing:
            continue
        db.session.add(TitleRecord(
            title=title,
            submitted_by=submitted_by,
            department=department,
            similarity_percentage=0,
            compared_with=[],
        ))
        created += 1
    db.session.commit()
    logger.info("Seeded sample titles", extra={"department": department})
    return created


def seed_demo_data(department: str) -> dict:
    users = seed_sample_users()
    titles = seed_sample_titles(department)
    return {"users": users, "titles": titles}
