"""Vocabulary selection for new tasks."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .db.models import TaskModel, TopicModel, WordInTaskModel, WordModel
from .db.session import session_scope
from .topics import TopicName, topic_match_clause

logger = logging.getLogger(__name__)

MIN_FILTERED_WORDS = 3
DEFAULT_WORD_LIMIT = 20


class WordSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    word_id: str
    word: str
    translation: str = ""
    example_usage: str = ""
    topic_name: str
    english_level: str


def _random_order(session: Session):  # type: ignore[no-untyped-def]
    if session.get_bind().dialect.name == "mysql":
        return func.rand()
    return func.random()


def _learned_word_ids(user_id: str):  # type: ignore[no-untyped-def]
    return (
        select(WordInTaskModel.word_id)
        .join(TaskModel, TaskModel.task_id == WordInTaskModel.task_id)
        .where(TaskModel.user_id == user_id)
        .where(TaskModel.completion_date.is_not(None))
    )


def _sample(
    session: Session,
    topic: TopicName,
    limit: int,
    *,
    english_level: Optional[str] = None,
    exclude_learned_by: Optional[str] = None,
) -> List[WordModel]:
    stmt = select(WordModel).where(topic_match_clause(WordModel.topic_name, topic))
    if english_level is not None:
        stmt = stmt.where(WordModel.english_level == english_level)
    if exclude_learned_by is not None:
        stmt = stmt.where(WordModel.word_id.not_in(_learned_word_ids(exclude_learned_by)))
    stmt = stmt.order_by(_random_order(session)).limit(limit)
    return list(session.execute(stmt).scalars().all())


def select_words(
    user_id: str,
    topic_name: str,
    english_level: str,
    limit: int = DEFAULT_WORD_LIMIT,
) -> List[WordSnapshot]:
    """Pick up to ``limit`` words the learner has not met in a finished task.

    Relaxes the level filter, then the learned-word filter, whenever fewer than
    ``MIN_FILTERED_WORDS`` words survive. If the filtered queries fail, the
    plain topic and level sample is tried before giving up with an empty list.
    """
    topic = TopicName.parse(topic_name)
    try:
        with session_scope(commit=False) as session:
            words = _sample(session, topic, limit, english_level=english_level, exclude_learned_by=user_id)
            if len(words) < MIN_FILTERED_WORDS:
                logger.info(
                    "Only %d unlearned %s words for topic=%s, dropping level filter",
                    len(words),
                    english_level,
                    topic.db_form,
                )
                words = _sample(session, topic, limit, exclude_learned_by=user_id)
            if len(words) >= MIN_FILTERED_WORDS:
                return [WordSnapshot.model_validate(model) for model in words]
        logger.info("Falling back to unfiltered words for topic=%s level=%s", topic.db_form, english_level)
    except Exception:  # noqa: BLE001
        logger.exception("Filtered word selection failed for user=%s topic=%s", user_id, topic.db_form)

    try:
        with session_scope(commit=False) as session:
            words = _sample(session, topic, limit, english_level=english_level)
            return [WordSnapshot.model_validate(model) for model in words]
    except Exception:  # noqa: BLE001
        logger.exception("Failed to select words for user=%s topic=%s", user_id, topic.db_form)
        return []


def list_topics() -> List[dict]:
    with session_scope(commit=False) as session:
        rows = session.execute(select(TopicModel).order_by(TopicModel.topic_name.asc())).scalars().all()
        return [
            {
                "topic_name": row.topic_name,
                "topic_hebrew": row.topic_hebrew,
                "icon": row.icon,
                "url_form": TopicName.parse(row.topic_name).url_form,
            }
            for row in rows
        ]


__all__ = ["MIN_FILTERED_WORDS", "WordSnapshot", "list_topics", "select_words"]
