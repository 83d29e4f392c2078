"""Task persistence and the topic-level "what next" flow."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .db.models import TaskModel
from .db.session import session_scope
from .level_resolver import LevelResolver, level_resolver
from .repositories.tasks import TaskRepository, task_repository
from .task_sequencer import NextTask, TaskSequencer, TaskSnapshot, TaskType
from .telemetry import emit_event
from .topics import TopicName
from .word_store import WordSnapshot

logger = logging.getLogger(__name__)

TEMPORARY_TASK_PREFIXES = ("client_", "temp_")


class TaskStoreError(RuntimeError):
    """Raised when task storage cannot fulfil a request."""


class TaskNotFoundError(TaskStoreError):
    pass


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_temporary_task_id(task_id: str) -> bool:
    return task_id.startswith(TEMPORARY_TASK_PREFIXES)


def _owned_by(model: Optional[TaskModel], user_id: Optional[str]) -> bool:
    # Without a user the caller is trusted, as in background jobs and tests.
    return model is not None and (user_id is None or model.user_id == user_id)


class TaskStore:
    def __init__(
        self,
        repository: TaskRepository = task_repository,
        resolver: LevelResolver = level_resolver,
    ) -> None:
        self._repository = repository
        self._resolver = resolver

    def list_topic_tasks(self, user_id: str, topic_name: str) -> List[TaskSnapshot]:
        topic = TopicName.parse(topic_name)
        with session_scope(commit=False) as session:
            models = self._repository.list_for_topic(session, user_id, topic)
            snapshots = [TaskSnapshot.model_validate(model) for model in models]
        return [snapshot.model_copy(update={"topic_name": topic.db_form}) for snapshot in snapshots]

    def create_task(self, user_id: str, topic_name: str, task_type: TaskType, level: int) -> str:
        """Return the id of an open task matching the request, creating one if needed."""
        topic = TopicName.parse(topic_name)
        task_type = TaskType(task_type)
        try:
            with session_scope() as session:
                existing = self._repository.find_open(session, user_id, topic, task_type.value, level)
                if existing is not None:
                    logger.info("Reusing open task %s for user=%s topic=%s", existing.task_id, user_id, topic.db_form)
                    return existing.task_id
                model = self._repository.insert(session, user_id, topic, task_type.value, level)
                task_id = model.task_id
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to create %s task for user=%s topic=%s", task_type.value, user_id, topic.db_form)
            raise TaskStoreError(f"Failed to create task: {exc}") from exc
        logger.info("Created task %s (%s, level %s) for user=%s", task_id, task_type.value, level, user_id)
        return task_id

    def next_task(self, user_id: str, topic_name: str) -> NextTask:
        tasks = self.list_topic_tasks(user_id, topic_name)
        sequencer = TaskSequencer(self.create_task, max_level=self._resolver.max_level)
        return sequencer.next_task(user_id, topic_name, tasks)

    def complete_task(
        self,
        task_id: str,
        score: int,
        duration: Optional[int] = None,
        *,
        user_id: Optional[str] = None,
    ) -> TaskSnapshot:
        """Mark a task finished. Tasks owned by another user are reported as not found."""
        completed_at = datetime.now(timezone.utc)
        with session_scope() as session:
            model = self._repository.get(session, task_id)
            if not _owned_by(model, user_id):
                raise TaskNotFoundError(f"Task {task_id} not found")
            if duration is None and model.start_date is not None:
                duration = max(0, int((completed_at - _as_utc(model.start_date)).total_seconds()))
            model.completion_date = completed_at
            model.task_score = score
            model.duration_task = duration
            session.flush()
            snapshot = TaskSnapshot.model_validate(model)

        emit_event(
            "task_completed",
            user_id=snapshot.user_id,
            task_id=snapshot.task_id,
            task_type=snapshot.task_type,
            level=snapshot.level,
            score=score,
        )
        if snapshot.task_type is TaskType.CONVERSATION:
            self._advance_after_conversation(snapshot)
        return snapshot

    def _advance_after_conversation(self, task: TaskSnapshot) -> None:
        topic = TopicName.parse(task.topic_name)
        with session_scope(commit=False) as session:
            total = self._repository.level_score(session, task.user_id, topic, task.level)
        progress = self._resolver.record_level_completion(
            task.user_id,
            topic.db_form,
            task.level,
            earned_score=total,
            completed=True,
        )
        if progress is None:
            logger.warning("Task %s completed but level progression was not stored", task.task_id)

    def update_task_duration(self, task_id: str, duration: int, *, user_id: Optional[str] = None) -> bool:
        try:
            with session_scope() as session:
                model = self._repository.get(session, task_id)
                if not _owned_by(model, user_id):
                    logger.warning("Duration update for unknown task %s", task_id)
                    return False
                model.duration_task = duration
        except Exception:  # noqa: BLE001
            logger.exception("Failed to update duration for task %s", task_id)
            return False
        return True

    def add_words_to_task(self, task_id: str, word_ids: Iterable[str], *, user_id: Optional[str] = None) -> int:
        if is_temporary_task_id(task_id):
            logger.info("Skipping word assignment for temporary task id %s", task_id)
            return 0
        cleaned = [word_id.strip() for word_id in word_ids if word_id and word_id.strip()]
        if not cleaned:
            return 0
        with session_scope() as session:
            if not _owned_by(self._repository.get(session, task_id), user_id):
                raise TaskNotFoundError(f"Task {task_id} not found")
            return self._repository.add_words(session, task_id, cleaned)

    def words_for_task(self, task_id: str, *, user_id: Optional[str] = None) -> List[WordSnapshot]:
        if is_temporary_task_id(task_id):
            return []
        with session_scope(commit=False) as session:
            if user_id is not None and not _owned_by(self._repository.get(session, task_id), user_id):
                raise TaskNotFoundError(f"Task {task_id} not found")
            return [WordSnapshot.model_validate(model) for model in self._repository.words_for_task(session, task_id)]


task_store = TaskStore()

__all__ = [
    "TaskNotFoundError",
    "TaskStore",
    "TaskStoreError",
    "is_temporary_task_id",
    "task_store",
]
