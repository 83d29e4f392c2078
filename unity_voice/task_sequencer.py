"""Pick the next learning activity from a learner's task history in a topic."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict

from .config import get_settings
from .telemetry import emit_event
from .topics import TopicName

logger = logging.getLogger(__name__)


class TaskType(str, Enum):
    FLASHCARD = "flashcard"
    QUIZ = "quiz"
    POST = "post"
    CONVERSATION = "conversation"


TASK_TYPE_ORDER: tuple[TaskType, ...] = (
    TaskType.FLASHCARD,
    TaskType.QUIZ,
    TaskType.POST,
    TaskType.CONVERSATION,
)


class TaskSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_id: str
    user_id: str
    topic_name: str
    level: int
    task_type: TaskType
    task_score: int = 0
    start_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    duration_task: Optional[int] = None

    @property
    def is_completed(self) -> bool:
        return self.completion_date is not None


class NextTask(BaseModel):
    task_id: str
    task_type: TaskType
    level: int
    topic_url: str
    created: bool

    @property
    def path(self) -> str:
        return f"/topics/{self.topic_url}/tasks/{self.task_type.value}?level={self.level}&taskId={self.task_id}"


class TaskCreator(Protocol):
    def __call__(self, user_id: str, topic_name: str, task_type: TaskType, level: int) -> str:  # pragma: no cover
        ...


class TaskSequencingError(RuntimeError):
    """Raised when a task history matches none of the sequencing rules."""


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _current_cycle(tasks: Sequence[TaskSnapshot]) -> List[TaskSnapshot]:
    """Tasks at one level that were started after its last finished conversation.

    A learner who restarts the top level works through it again; only that
    pass is ranked, so the older finished conversation does not win again.
    """
    finished = [
        _as_utc(task.completion_date)
        for task in tasks
        if task.task_type is TaskType.CONVERSATION and task.completion_date is not None
    ]
    if not finished:
        return list(tasks)
    last_finished = max(finished)
    restarted = [
        task for task in tasks if task.start_date is not None and _as_utc(task.start_date) > last_finished
    ]
    return restarted or list(tasks)


def _rank(task: TaskSnapshot) -> tuple[int, bool]:
    # Later task types first; within a type, an unfinished task beats a finished one.
    return TASK_TYPE_ORDER.index(task.task_type), not task.is_completed


class TaskSequencer:
    def __init__(self, create_task: TaskCreator, *, max_level: Optional[int] = None) -> None:
        self._create_task = create_task
        self._max_level = max_level

    @property
    def max_level(self) -> int:
        return self._max_level if self._max_level is not None else get_settings().max_level

    def next_task(self, user_id: str, topic_name: str, tasks: Sequence[TaskSnapshot]) -> NextTask:
        topic = TopicName.parse(topic_name)

        if not tasks:
            logger.info("No tasks for user=%s topic=%s, starting at level 1", user_id, topic.db_form)
            return self._start(user_id, topic, TaskType.FLASHCARD, 1, reason="first_task")

        highest_level = max(task.level for task in tasks)
        at_highest = _current_cycle([task for task in tasks if task.level == highest_level])
        most_advanced = max(at_highest, key=_rank)

        if not most_advanced.is_completed:
            emit_event(
                "task_resumed",
                user_id=user_id,
                topic=topic.db_form,
                task_id=most_advanced.task_id,
                task_type=most_advanced.task_type,
                level=most_advanced.level,
            )
            return NextTask(
                task_id=most_advanced.task_id,
                task_type=most_advanced.task_type,
                level=most_advanced.level,
                topic_url=topic.url_form,
                created=False,
            )

        if most_advanced.task_type is TASK_TYPE_ORDER[-1]:
            next_level = min(highest_level + 1, self.max_level)
            return self._start(user_id, topic, TASK_TYPE_ORDER[0], next_level, reason="level_advanced")

        next_index = TASK_TYPE_ORDER.index(most_advanced.task_type) + 1
        if next_index < len(TASK_TYPE_ORDER):
            return self._start(user_id, topic, TASK_TYPE_ORDER[next_index], highest_level, reason="type_advanced")

        raise TaskSequencingError("Could not determine next task")

    def _start(self, user_id: str, topic: TopicName, task_type: TaskType, level: int, *, reason: str) -> NextTask:
        task_id = self._create_task(user_id, topic.db_form, task_type, level)
        emit_event(
            "task_started",
            user_id=user_id,
            topic=topic.db_form,
            task_id=task_id,
            task_type=task_type,
            level=level,
            reason=reason,
        )
        return NextTask(
            task_id=task_id,
            task_type=task_type,
            level=level,
            topic_url=topic.url_form,
            created=True,
        )


__all__ = [
    "NextTask",
    "TASK_TYPE_ORDER",
    "TaskCreator",
    "TaskSequencer",
    "TaskSequencingError",
    "TaskSnapshot",
    "TaskType",
]
