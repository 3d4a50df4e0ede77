"""create courses and enrollments

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.String(length=5000), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_courses_slug", "courses", ["slug"], unique=True)

    op.create_table(
        "course_enrollments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column(
            "status",
            sa.Enum("active", "completed", name="enrollmentstatus"),
            nullable=False,
            server_default="active",
        ),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_enrollment_progress_range"),
    )
    op.create_index("ix_course_enrollments_user_id", "course_enrollments", ["user_id"], unique=False)
    op.create_index("ix_course_enrollments_course_id", "course_enrollments", ["course_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_course_enrollments_course_id", table_name="course_enrollments")
    op.drop_index("ix_course_enrollments_user_id", table_name="course_enrollments")
    op.drop_table("course_enrollments")
    op.execute("DROP TYPE IF EXISTS enrollmentstatus")
    op.drop_index("ix_courses_slug", table_name="courses")
    op.drop_table("courses")
