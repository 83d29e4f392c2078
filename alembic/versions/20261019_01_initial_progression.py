"""Initial progression schema: topics, levels, tasks and vocabulary."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_01_initial_progression"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "topics",
        sa.Column("topic_name", sa.String(length=255), primary_key=True, nullable=False),
        sa.Column("topic_hebrew", sa.String(length=255), nullable=True),
        sa.Column("icon", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )

    op.create_table(
        "user_levels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("topic_name", sa.String(length=255), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("earned_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("user_id", "topic_name", name="uq_user_levels_user_topic"),
    )

    op.create_table(
        "tasks",
        sa.Column("task_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("topic_name", sa.String(length=255), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("task_type", sa.String(length=32), nullable=False),
        sa.Column("task_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_date", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_task", sa.Integer(), nullable=True),
    )
    op.create_index("ix_tasks_user_topic", "tasks", ["user_id", "topic_name"])

    op.create_table(
        "words",
        sa.Column("word_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("word", sa.String(length=255), nullable=False),
        sa.Column("translation", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("example_usage", sa.Text(), nullable=False),
        sa.Column("topic_name", sa.String(length=255), nullable=False),
        sa.Column("english_level", sa.String(length=32), nullable=False),
    )
    op.create_index("ix_words_topic_level", "words", ["topic_name", "english_level"])

    op.create_table(
        "word_in_task",
        sa.Column("task_id", sa.String(length=36), sa.ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("word_id", sa.String(length=36), primary_key=True),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("word_in_task")
    op.drop_index("ix_words_topic_level", table_name="words")
    op.drop_table("words")
    op.drop_index("ix_tasks_user_topic", table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("user_levels")
    op.drop_table("topics")
