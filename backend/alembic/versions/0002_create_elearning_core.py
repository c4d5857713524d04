"""create courses, quizzes, enrollments and attempts

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
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.String(length=5000), nullable=True),
        sa.Column(
            "type",
            sa.Enum(
                "food_safety",
                "haccp",
                "allergens",
                "hygiene",
                "management",
                "customer_service",
                name="coursetype",
            ),
            nullable=False,
        ),
        sa.Column(
            "level",
            sa.Enum("beginner", "intermediate", "advanced", name="courselevel"),
            nullable=False,
            server_default="beginner",
        ),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("required_score", sa.Integer(), nullable=False, server_default="70"),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_courses_company_id", "courses", ["company_id"], unique=False)
    op.create_index("ix_courses_title", "courses", ["title"], unique=False)
    op.create_index("ix_courses_type", "courses", ["type"], unique=False)

    op.create_table(
        "lessons",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("content", sa.String(), nullable=False, server_default=""),
        sa.Column("video_url", sa.String(length=1000), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("course_id", "order", name="uq_lesson_course_order"),
    )
    op.create_index("ix_lessons_course_id", "lessons", ["course_id"], unique=False)

    op.create_table(
        "quizzes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("lessons.id"), nullable=True),
        sa.Column("title", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("description", sa.String(length=5000), nullable=True),
        sa.Column("passing_score", sa.Integer(), nullable=True),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("randomize_questions", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_quizzes_course_id", "quizzes", ["course_id"], unique=False)
    op.create_index("ix_quizzes_lesson_id", "quizzes", ["lesson_id"], unique=False)

    op.create_table(
        "questions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("quiz_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("text", sa.String(), nullable=False, server_default=""),
        sa.Column(
            "type",
            sa.Enum("multiple_choice", "true_false", "matching", name="questiontype"),
            nullable=False,
            server_default="multiple_choice",
        ),
        sa.Column("points", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"], unique=False)

    op.create_table(
        "options",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("question_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("questions.id"), nullable=False),
        sa.Column("text", sa.String(), nullable=False, server_default=""),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_options_question_id", "options", ["question_id"], unique=False)

    op.create_table(
        "user_courses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_lesson_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("lessons.id"), nullable=True),
        sa.Column("certificate", sa.String(length=64), nullable=True),
        sa.UniqueConstraint("user_id", "course_id", name="uq_user_course"),
        sa.UniqueConstraint("certificate", name="uq_user_courses_certificate"),
    )
    op.create_index("ix_user_courses_user_id", "user_courses", ["user_id"], unique=False)
    op.create_index("ix_user_courses_course_id", "user_courses", ["course_id"], unique=False)

    op.create_table(
        "quiz_attempts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("quiz_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("user_courses.id"), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("passed", sa.Boolean(), nullable=True),
        sa.Column("time_spent", sa.Integer(), nullable=True),
    )
    op.create_index("ix_quiz_attempts_quiz_id", "quiz_attempts", ["quiz_id"], unique=False)
    op.create_index("ix_quiz_attempts_user_id", "quiz_attempts", ["user_id"], unique=False)
    op.create_index("ix_quiz_attempts_user_course_id", "quiz_attempts", ["user_course_id"], unique=False)

    op.create_table(
        "user_answers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("quiz_attempt_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quiz_attempts.id"), nullable=False),
        sa.Column("question_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("questions.id"), nullable=False),
        sa.Column("option_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("options.id"), nullable=True),
        sa.Column("text", sa.String(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("quiz_attempt_id", "question_id", name="uq_user_answer_attempt_question"),
    )
    op.create_index("ix_user_answers_quiz_attempt_id", "user_answers", ["quiz_attempt_id"], unique=False)
    op.create_index("ix_user_answers_question_id", "user_answers", ["question_id"], unique=False)

    op.create_table(
        "learning_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "course_enrolled",
                "lesson_advanced",
                "quiz_started",
                "quiz_completed",
                "course_completed",
                name="learningeventtype",
            ),
            nullable=False,
        ),
        sa.Column("ref_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("meta", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_learning_events_user_id", "learning_events", ["user_id"], unique=False)
    op.create_index("ix_learning_events_type", "learning_events", ["type"], unique=False)
    op.create_index("ix_learning_events_ref_id", "learning_events", ["ref_id"], unique=False)


def downgrade() -> None:
    op.drop_table("learning_events")
    op.drop_table("user_answers")
    op.drop_table("quiz_attempts")
    op.drop_table("user_courses")
    op.drop_table("options")
    op.drop_table("questions")
    op.drop_table("quizzes")
    op.drop_table("lessons")
    op.drop_table("courses")
    op.execute("DROP TYPE IF EXISTS learningeventtype")
    op.execute("DROP TYPE IF EXISTS questiontype")
    op.execute("DROP TYPE IF EXISTS courselevel")
    op.execute("DROP TYPE IF EXISTS coursetype")
