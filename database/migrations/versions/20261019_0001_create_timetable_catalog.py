"""create timetable catalog and schedules

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    schedule_status = sa.Enum("draft", "published", name="schedule_status")

    op.create_table(
        "departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("admin_id", "name", name="uq_departments_admin_name"),
    )
    op.create_index("ix_departments_admin_id", "departments", ["admin_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("hours_per_week", sa.Integer(), nullable=True, server_default="3"),
        sa.Column("requires_lab", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_admin_id", "subjects", ["admin_id"])
    op.create_index("ix_subjects_department", "subjects", ["department"])

    op.create_table(
        "faculty",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("subjects", sa.JSON(), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_faculty_admin_id", "faculty", ["admin_id"])
    op.create_index("ix_faculty_department", "faculty", ["department"])

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("building", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_lab", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_classrooms_admin_id", "classrooms", ["admin_id"])
    op.create_index("ix_classrooms_department", "classrooms", ["department"])

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("roll_number", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_students_admin_id", "students", ["admin_id"])
    op.create_index("ix_students_department", "students", ["department"])

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("weekly_schedule", sa.JSON(), nullable=False),
        sa.Column("assignments", sa.JSON(), nullable=False),
        sa.Column("status", schedule_status, nullable=False, server_default="draft"),
        sa.Column("generated_by", sa.String(length=20), nullable=False, server_default="AI"),
        sa.Column("constraints", sa.JSON(), nullable=False),
        sa.Column("grid", sa.JSON(), nullable=False),
        sa.Column("metrics", sa.JSON(), nullable=False),
        sa.Column("warnings", sa.JSON(), nullable=False),
        sa.Column("fitness", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_schedules_admin_id", "schedules", ["admin_id"])
    op.create_index("ix_schedules_department", "schedules", ["department"])
    op.create_index("ix_schedules_semester", "schedules", ["semester"])


def downgrade() -> None:
    op.drop_index("ix_schedules_semester", table_name="schedules")
    op.drop_index("ix_schedules_department", table_name="schedules")
    op.drop_index("ix_schedules_admin_id", table_name="schedules")
    op.drop_table("schedules")
    op.drop_index("ix_students_department", table_name="students")
    op.drop_index("ix_students_admin_id", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_classrooms_department", table_name="classrooms")
    op.drop_index("ix_classrooms_admin_id", table_name="classrooms")
    op.drop_table("classrooms")
    op.drop_index("ix_faculty_department", table_name="faculty")
    op.drop_index("ix_faculty_admin_id", table_name="faculty")
    op.drop_table("faculty")
    op.drop_index("ix_subjects_department", table_name="subjects")
    op.drop_index("ix_subjects_admin_id", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_departments_admin_id", table_name="departments")
    op.drop_table("departments")
    sa.Enum(name="schedule_status").drop(op.get_bind(), checkfirst=True)
