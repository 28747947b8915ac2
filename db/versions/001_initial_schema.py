"""Initial schema — curriculum hierarchy, quizzes, identities and schools.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False)


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    # -- schools --
    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("principal_name", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at(),
        _created_at("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )

    # -- user_accounts / profiles --
    op.create_table(
        "user_accounts",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "profiles",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), server_default="student", nullable=False),
        sa.Column("school_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("last_login", sa.TIMESTAMP(), nullable=True),
        _created_at(),
        _created_at("updated_at"),
        sa.ForeignKeyConstraint(["id"], ["user_accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["school_id"], ["schools.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "role IN ('student', 'teacher', 'admin', 'super_admin')", name="ck_profiles_role"
        ),
    )

    # -- subjects / subject_teachers --
    op.create_table(
        "subjects",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("level", sa.String(20), nullable=False),
        sa.Column("exam_board", sa.String(20), nullable=False),
        sa.Column("school_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("enrolled_students", sa.Integer(), server_default="0", nullable=False),
        sa.Column("content_items", sa.Integer(), server_default="0", nullable=False),
        sa.Column("completion_rate", sa.Numeric(5, 2), server_default="0", nullable=False),
        _created_at(),
        _created_at("updated_at"),
        sa.ForeignKeyConstraint(["school_id"], ["schools.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("level IN ('JC', 'O-Level', 'A-Level')", name="ck_subjects_level"),
        sa.CheckConstraint(
            "exam_board IN ('ZIMSEC', 'Cambridge')", name="ck_subjects_exam_board"
        ),
    )
    op.create_index("idx_subjects_level", "subjects", ["level"])
    op.create_index("idx_subjects_exam_board", "subjects", ["exam_board"])

    op.create_table(
        "subject_teachers",
        _id(),
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("qualification", sa.String(200), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    # -- terms / weeks / chapters --
    op.create_table(
        "terms",
        _id(),
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("order_number", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subject_id", "order_number", name="uq_terms_subject_order"),
    )
    op.create_table(
        "weeks",
        _id(),
        sa.Column("term_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("order_number", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["term_id"], ["terms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("term_id", "order_number", name="uq_weeks_term_order"),
    )
    op.create_table(
        "chapters",
        _id(),
        sa.Column("week_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order_number", sa.Integer(), nullable=False),
        sa.Column("is_continuation", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("original_chapter_id", postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["week_id"], ["weeks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["original_chapter_id"], ["chapters.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("week_id", "order_number", name="uq_chapters_week_order"),
    )

    # -- content --
    op.create_table(
        "content",
        _id(),
        sa.Column("chapter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("duration", sa.String(50), nullable=True),
        sa.Column("estimated_study_time", sa.String(50), nullable=True),
        sa.Column("order_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), server_default="published", nullable=False),
        sa.Column("tags", postgresql.JSONB(), server_default="[]", nullable=False),
        sa.Column("view_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("quiz_data", postgresql.JSONB(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        _created_at("updated_at"),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapters.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("chapter_id", "order_number", name="uq_content_chapter_order"),
        sa.CheckConstraint("type IN ('video', 'pdf', 'quiz', 'notes')", name="ck_content_type"),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'review', 'archived')", name="ck_content_status"
        ),
    )
    op.create_index("idx_content_type", "content", ["type"])
    op.create_index("idx_content_status", "content", ["status"])

    # -- quiz_questions / quiz_attempts --
    op.create_table(
        "quiz_questions",
        _id(),
        sa.Column("content_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("question_image_url", sa.Text(), nullable=True),
        sa.Column("answer_a", sa.Text(), nullable=False),
        sa.Column("answer_b", sa.Text(), nullable=False),
        sa.Column("answer_c", sa.Text(), nullable=True),
        sa.Column("answer_d", sa.Text(), nullable=True),
        sa.Column("answer_a_image_url", sa.Text(), nullable=True),
        sa.Column("answer_b_image_url", sa.Text(), nullable=True),
        sa.Column("answer_c_image_url", sa.Text(), nullable=True),
        sa.Column("answer_d_image_url", sa.Text(), nullable=True),
        sa.Column("correct_answer", sa.String(1), nullable=False),
        sa.Column("order_number", sa.Integer(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("points", sa.Integer(), server_default="1", nullable=False),
        _created_at(),
        _created_at("updated_at"),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "correct_answer IN ('A', 'B', 'C', 'D')", name="ck_quiz_questions_correct_answer"
        ),
    )
    op.create_index("idx_quiz_questions_content_id", "quiz_questions", ["content_id"])

    op.create_table(
        "quiz_attempts",
        _id(),
        sa.Column("content_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("time_taken", sa.Integer(), nullable=True),
        sa.Column("answers", postgresql.JSONB(), server_default="{}", nullable=False),
        _created_at("completed_at"),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quiz_attempts_content_id", "quiz_attempts", ["content_id"])

    # -- user_enrollments --
    op.create_table(
        "user_enrollments",
        _id(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at("enrolled_at"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "subject_id"),
    )


def downgrade() -> None:
    op.drop_table("user_enrollments")
    op.drop_table("quiz_attempts")
    op.drop_table("quiz_questions")
    op.drop_table("content")
    op.drop_table("chapters")
    op.drop_table("weeks")
    op.drop_table("terms")
    op.drop_table("subject_teachers")
    op.drop_table("subjects")
    op.drop_table("profiles")
    op.drop_table("user_accounts")
    op.drop_table("schools")
