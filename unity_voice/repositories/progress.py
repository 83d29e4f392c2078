"""Database-backed progression record repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..db.models import TaskModel, TopicModel, UserLevelModel
from ..topics import TopicName, topic_match_clause

_CONFLICT_KEYS = ("user_id", "topic_name")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressRepository:
    """Reads and writes ``user_levels`` rows and the task levels that feed them."""

    def highest_recorded_level(self, session: Session, user_id: str, topic: TopicName) -> Optional[int]:
        stmt = (
            select(UserLevelModel.level)
            .where(UserLevelModel.user_id == user_id)
            .where(topic_match_clause(UserLevelModel.topic_name, topic))
            .order_by(UserLevelModel.level.desc())
            .limit(1)
        )
        return session.execute(stmt).scalars().first()

    def get_record(self, session: Session, user_id: str, topic: TopicName) -> Optional[UserLevelModel]:
        stmt = (
            select(UserLevelModel)
            .where(UserLevelModel.user_id == user_id)
            .where(topic_match_clause(UserLevelModel.topic_name, topic))
            .order_by(UserLevelModel.level.desc())
            .limit(1)
        )
        return session.execute(stmt).scalars().first()

    def highest_completed_task_level(self, session: Session, user_id: str, topic: TopicName) -> Optional[int]:
        stmt = (
            select(func.max(TaskModel.level))
            .where(TaskModel.user_id == user_id)
            .where(topic_match_clause(TaskModel.topic_name, topic))
            .where(TaskModel.completion_date.is_not(None))
        )
        return session.execute(stmt).scalar()

    def lowest_open_task_level(self, session: Session, user_id: str, topic: TopicName) -> Optional[int]:
        stmt = (
            select(func.min(TaskModel.level))
            .where(TaskModel.user_id == user_id)
            .where(topic_match_clause(TaskModel.topic_name, topic))
            .where(TaskModel.completion_date.is_(None))
        )
        return session.execute(stmt).scalar()

    def upsert(
        self,
        session: Session,
        user_id: str,
        topic: TopicName,
        level: int,
        *,
        earned_score: Optional[int] = None,
        completed_at: Optional[datetime] = None,
    ) -> None:
        """Insert the (user, topic) record or update it in place.

        ``level`` is always written. ``earned_score`` and ``completed_at`` only
        overwrite an existing row when supplied; a new row defaults them to 0
        and NULL. A row stored under another spelling of the topic is updated
        under that spelling rather than duplicated.
        """
        now = _now()
        existing = self.get_record(session, user_id, topic)
        values: Dict[str, Any] = {
            "user_id": user_id,
            "topic_name": existing.topic_name if existing is not None else topic.db_form,
            "level": level,
            "earned_score": earned_score if earned_score is not None else 0,
            "completed_at": completed_at,
            "created_at": now,
            "updated_at": now,
        }
        updates: Dict[str, Any] = {"level": level, "updated_at": now}
        if earned_score is not None:
            updates["earned_score"] = earned_score
        if completed_at is not None:
            updates["completed_at"] = completed_at

        dialect = session.get_bind().dialect.name
        if dialect == "mysql":
            stmt = mysql_insert(UserLevelModel).values(**values).on_duplicate_key_update(**updates)
            session.execute(stmt)
        elif dialect in ("sqlite", "postgresql"):
            insert = sqlite_insert if dialect == "sqlite" else postgresql_insert
            stmt = (
                insert(UserLevelModel)
                .values(**values)
                .on_conflict_do_update(index_elements=list(_CONFLICT_KEYS), set_=updates)
            )
            session.execute(stmt)
        else:
            self._select_then_write(session, values, updates)
        session.flush()

    def _select_then_write(self, session: Session, values: Dict[str, Any], updates: Dict[str, Any]) -> None:
        stmt = select(UserLevelModel).where(
            UserLevelModel.user_id == values["user_id"],
            UserLevelModel.topic_name == values["topic_name"],
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            session.add(UserLevelModel(**values))
            return
        for key, value in updates.items():
            setattr(model, key, value)

    def list_topic_names(self, session: Session) -> List[str]:
        stmt = select(TopicModel.topic_name).order_by(TopicModel.topic_name.asc())
        return list(session.execute(stmt).scalars().all())

    def has_record(self, session: Session, user_id: str, topic: TopicName) -> bool:
        stmt = (
            select(UserLevelModel.id)
            .where(UserLevelModel.user_id == user_id)
            .where(topic_match_clause(UserLevelModel.topic_name, topic))
            .limit(1)
        )
        return session.execute(stmt).first() is not None


progress_repository = ProgressRepository()

__all__ = ["ProgressRepository", "progress_repository"]
