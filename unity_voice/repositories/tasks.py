"""Database-backed task repository."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db.models import TaskModel, WordInTaskModel, WordModel
from ..topics import TopicName, topic_match_clause


class TaskRepository:
    def list_for_topic(self, session: Session, user_id: str, topic: TopicName) -> List[TaskModel]:
        stmt = (
            select(TaskModel)
            .where(TaskModel.user_id == user_id)
            .where(topic_match_clause(TaskModel.topic_name, topic))
            .order_by(TaskModel.level.asc(), TaskModel.start_date.desc())
        )
        return list(session.execute(stmt).scalars().all())

    def get(self, session: Session, task_id: str) -> Optional[TaskModel]:
        model = session.get(TaskModel, task_id)
        if model is not None:
            return model
        # Task ids arrive from clients with inconsistent casing.
        stmt = select(TaskModel).where(func.lower(TaskModel.task_id) == task_id.lower())
        return session.execute(stmt).scalars().first()

    def find_open(
        self,
        session: Session,
        user_id: str,
        topic: TopicName,
        task_type: str,
        level: int,
    ) -> Optional[TaskModel]:
        stmt = (
            select(TaskModel)
            .where(TaskModel.user_id == user_id)
            .where(topic_match_clause(TaskModel.topic_name, topic))
            .where(TaskModel.level == level)
            .where(TaskModel.task_type == task_type)
            .where(TaskModel.completion_date.is_(None))
            .order_by(TaskModel.start_date.desc())
            .limit(1)
        )
        return session.execute(stmt).scalars().first()

    def insert(self, session: Session, user_id: str, topic: TopicName, task_type: str, level: int) -> TaskModel:
        model = TaskModel(
            task_id=str(uuid.uuid4()),
            user_id=user_id,
            topic_name=topic.db_form,
            level=level,
            task_type=task_type,
            task_score=0,
            start_date=datetime.now(timezone.utc),
        )
        session.add(model)
        session.flush()
        return model

    def level_score(self, session: Session, user_id: str, topic: TopicName, level: int) -> int:
        stmt = (
            select(func.coalesce(func.sum(TaskModel.task_score), 0))
            .where(TaskModel.user_id == user_id)
            .where(topic_match_clause(TaskModel.topic_name, topic))
            .where(TaskModel.level == level)
        )
        return int(session.execute(stmt).scalar() or 0)

    def add_words(self, session: Session, task_id: str, word_ids: Iterable[str]) -> int:
        existing = set(
            session.execute(
                select(WordInTaskModel.word_id).where(WordInTaskModel.task_id == task_id)
            ).scalars()
        )
        added = 0
        now = datetime.now(timezone.utc)
        for word_id in word_ids:
            if word_id in existing:
                continue
            session.add(WordInTaskModel(task_id=task_id, word_id=word_id, added_at=now))
            existing.add(word_id)
            added += 1
        session.flush()
        return added

    def words_for_task(self, session: Session, task_id: str) -> List[WordModel]:
        stmt = (
            select(WordModel)
            .join(WordInTaskModel, WordInTaskModel.word_id == WordModel.word_id)
            .where(WordInTaskModel.task_id == task_id)
            .order_by(WordInTaskModel.added_at.asc())
        )
        return list(session.execute(stmt).scalars().all())


task_repository = TaskRepository()

__all__ = ["TaskRepository", "task_repository"]
