"""initial_review_portal_schema

Create users, title_records, projects, review_stages and
project_notifications.

Revision ID: a1c3e5f7b902
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "a1c3e5f7b902"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("full_name", sa.String(length=200), nullable=True),
            sa.Column("user_type", sa.String(length=20), nullable=False),
            sa.Column("department", sa.String(length=200), nullable=True),
            sa.Column("student_code", sa.String(length=50), nullable=True),
            sa.Column("staff_code", sa.String(length=50), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_department", "users", ["department"])

    if "title_records" not in existing_tables:
        op.create_table(
            "title_records",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=500), nullable=False),
            sa.Column("submitted_by", sa.String(length=200), nullable=False),
            sa.Column("submitted_by_id", sa.Integer(), nullable=True),
            sa.Column("department", sa.String(length=200), nullable=False),
            sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("similarity_percentage", sa.Integer(), nullable=True),
            sa.Column("compared_with", sa.JSON(), nullable=True),
            sa.ForeignKeyConstraint(["submitted_by_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_title_records_submitted_by_id", "title_records", ["submitted_by_id"])
        op.create_index("ix_title_records_department", "title_records", ["department"])
        op.create_index("ix_title_records_submitted_at", "title_records", ["submitted_at"])

    if "projects" not in existing_tables:
        op.create_table(
            "projects",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("student_id", sa.Integer(), nullable=False),
            sa.Column("guide_id", sa.Integer(), nullable=True),
            sa.Column("department", sa.String(length=200), nullable=False),
            sa.Column("academic_year", sa.String(length=9), nullable=False),
            sa.Column("current_stage", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("overall_status", sa.String(length=20), nullable=False, server_default="not_started"),
            sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["guide_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("student_id"),
        )
        op.create_index("ix_projects_department", "projects", ["department"])

    if "review_stages" not in existing_tables:
        op.create_table(
            "review_stages",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("stage_number", sa.Integer(), nullable=False),
            sa.Column("stage_name", sa.String(length=100), nullable=False),
            sa.Column("stage_description", sa.String(length=300), nullable=False, server_default=""),
            sa.Column("required_fields", sa.JSON(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="locked"),
            sa.Column("submission", sa.JSON(), nullable=True),
            sa.Column("feedback", sa.JSON(), nullable=True),
            sa.Column("feedback_history", sa.JSON(), nullable=True),
            sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_id", "stage_number", name="uq_review_stage_project_number"),
        )
        op.create_index("ix_review_stages_project_id", "review_stages", ["project_id"])

    if "project_notifications" not in existing_tables:
        op.create_table(
            "project_notifications",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("message", sa.String(length=500), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False, server_default="info"),
            sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_project_notifications_project_id", "project_notifications", ["project_id"])


def downgrade():
    op.drop_table("project_notifications")
    op.drop_table("review_stages")
    op.drop_table("projects")
    op.drop_table("title_records")
    op.drop_table("users")
