"""ORM models backing the Unity Voice progression store."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class TopicModel(TimestampMixin, Base):
    __tablename__ = "topics"

    topic_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    topic_hebrew: Mapped[str | None] = mapped_column(String(255), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(255), nullable=True)


class UserLevelModel(TimestampMixin, Base):
    """Progression record: the stored (user, topic) -> level mapping."""

    __tablename__ = "user_levels"
    __table_args__ = (
        UniqueConstraint("user_id", "topic_name", name="uq_user_levels_user_topic"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    topic_name: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    earned_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TaskModel(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_topic", "user_id", "topic_name"),
    )

    task_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    topic_name: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    task_type: Mapped[str] = mapped_column(String(32), nullable=False)
    task_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_task: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class WordModel(Base):
    __tablename__ = "words"
    __table_args__ = (
        Index("ix_words_topic_level", "topic_name", "english_level"),
    )

    word_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    word: Mapped[str] = mapped_column(String(255), nullable=False)
    translation: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    example_usage: Mapped[str] = mapped_column(Text, default="", nullable=False)
    topic_name: Mapped[str] = mapped_column(String(255), nullable=False)
    english_level: Mapped[str] = mapped_column(String(32), nullable=False)


class WordInTaskModel(Base):
    __tablename__ = "word_in_task"

    task_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True
    )
    word_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )


__all__ = [
    "TaskModel",
    "TopicModel",
    "UserLevelModel",
    "WordInTaskModel",
    "WordModel",
]
