"""create module progress and quiz responses

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "module_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=True),
        sa.Column("section_id", sa.String(length=200), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("time_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_accessed", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "module_id", "section_id", name="uq_module_progress_triple"),
    )
    op.create_index("ix_module_progress_user_id", "module_progress", ["user_id"], unique=False)
    op.create_index("ix_module_progress_module_id", "module_progress", ["module_id"], unique=False)

    op.create_table(
        "user_quiz_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("quiz_id", sa.String(length=200), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("time_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_user_quiz_responses_user_id", "user_quiz_responses", ["user_id"], unique=False)
    op.create_index("ix_user_quiz_responses_module_id", "user_quiz_responses", ["module_id"], unique=False)
    op.create_index("ix_user_quiz_responses_course_id", "user_quiz_responses", ["course_id"], unique=False)
    op.create_index("ix_user_quiz_responses_quiz_id", "user_quiz_responses", ["quiz_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_user_quiz_responses_quiz_id", table_name="user_quiz_responses")
    op.drop_index("ix_user_quiz_responses_course_id", table_name="user_quiz_responses")
    op.drop_index("ix_user_quiz_responses_module_id", table_name="user_quiz_responses")
    op.drop_index("ix_user_quiz_responses_user_id", table_name="user_quiz_responses")
    op.drop_table("user_quiz_responses")
    op.drop_index("ix_module_progress_module_id", table_name="module_progress")
    op.drop_index("ix_module_progress_user_id", table_name="module_progress")
    op.drop_table("module_progress")
