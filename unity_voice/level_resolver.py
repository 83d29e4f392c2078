"""Resolve a learner's progression level within a topic.

The resolver walks an ordered list of strategies; the first one that yields a
candidate wins. Strategies only read. Writing the normalized progression record
back happens afterwards in its own transaction, so the level returned to the
caller never depends on whether that write succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.orm import Session

from .config import get_settings
from .db.session import session_scope
from .repositories.progress import ProgressRepository, progress_repository
from .telemetry import emit_event
from .topics import TopicName

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 1


class CacheWrite(str, Enum):
    SKIPPED = "skipped"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolutionContext:
    session: Session
    repository: ProgressRepository
    user_id: str
    topic: TopicName
    max_level: int


@dataclass(frozen=True)
class LevelCandidate:
    level: int
    source: str
    write_back: bool = True
    stamp_completed: bool = False


@dataclass(frozen=True)
class LevelResolution:
    level: int
    source: str
    cache_write: CacheWrite = CacheWrite.SKIPPED


ResolutionStrategy = Callable[[ResolutionContext], Optional[LevelCandidate]]


def progression_record_strategy(context: ResolutionContext) -> Optional[LevelCandidate]:
    level = context.repository.highest_recorded_level(context.session, context.user_id, context.topic)
    if level is None:
        return None
    return LevelCandidate(level=int(level), source="progression_record", write_back=False)


def completed_tasks_strategy(context: ResolutionContext) -> Optional[LevelCandidate]:
    completed = context.repository.highest_completed_task_level(context.session, context.user_id, context.topic)
    if completed is None:
        return None
    next_level = min(int(completed) + 1, context.max_level)
    return LevelCandidate(level=next_level, source="completed_tasks", stamp_completed=True)


def open_tasks_strategy(context: ResolutionContext) -> Optional[LevelCandidate]:
    # The earliest level still in progress, not the most advanced one.
    level = context.repository.lowest_open_task_level(context.session, context.user_id, context.topic)
    if level is None:
        return None
    return LevelCandidate(level=int(level), source="open_tasks")


def default_strategy(context: ResolutionContext) -> Optional[LevelCandidate]:
    return LevelCandidate(level=DEFAULT_LEVEL, source="default")


DEFAULT_STRATEGIES: Sequence[ResolutionStrategy] = (
    progression_record_strategy,
    completed_tasks_strategy,
    open_tasks_strategy,
    default_strategy,
)


class LevelProgress(BaseModel):
    user_id: str
    topic_name: str
    level: int
    next_level: int
    earned_score: int
    completed: bool


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _clamp(level: int, max_level: int) -> int:
    return max(DEFAULT_LEVEL, min(int(level), max_level))


class LevelResolver:
    def __init__(
        self,
        strategies: Sequence[ResolutionStrategy] = DEFAULT_STRATEGIES,
        *,
        repository: ProgressRepository = progress_repository,
        max_level: Optional[int] = None,
    ) -> None:
        self._strategies = tuple(strategies)
        self._repository = repository
        self._max_level = max_level

    @property
    def max_level(self) -> int:
        return self._max_level if self._max_level is not None else get_settings().max_level

    def resolve(self, user_id: Optional[str], topic_name: Optional[str]) -> LevelResolution:
        user = _clean(user_id)
        raw_topic = _clean(topic_name)
        if user is None or raw_topic is None:
            logger.warning("Level requested with missing input user_id=%r topic=%r", user_id, topic_name)
            return LevelResolution(level=DEFAULT_LEVEL, source="missing_input")

        topic = TopicName.parse(raw_topic)
        try:
            max_level = self.max_level
            candidate = self._first_candidate(user, topic, max_level)
        except Exception:  # noqa: BLE001
            logger.exception("Level resolution failed for user=%s topic=%s", user, topic.db_form)
            emit_event("level_resolution_failed", user_id=user, topic=topic.db_form)
            return LevelResolution(level=DEFAULT_LEVEL, source="fallback")

        if candidate is None:
            resolution = LevelResolution(level=DEFAULT_LEVEL, source="fallback")
        else:
            level = _clamp(candidate.level, max_level)
            cache_write = CacheWrite.SKIPPED
            if candidate.write_back:
                cache_write = self._write_back(user, topic, level, stamp_completed=candidate.stamp_completed)
            resolution = LevelResolution(level=level, source=candidate.source, cache_write=cache_write)

        emit_event(
            "level_resolved",
            user_id=user,
            topic=topic.db_form,
            level=resolution.level,
            source=resolution.source,
            cache_write=resolution.cache_write,
        )
        return resolution

    def resolve_level(self, user_id: Optional[str], topic_name: Optional[str]) -> int:
        return self.resolve(user_id, topic_name).level

    def _first_candidate(self, user_id: str, topic: TopicName, max_level: int) -> Optional[LevelCandidate]:
        with session_scope(commit=False) as session:
            context = ResolutionContext(
                session=session,
                repository=self._repository,
                user_id=user_id,
                topic=topic,
                max_level=max_level,
            )
            for strategy in self._strategies:
                candidate = strategy(context)
                if candidate is not None:
                    return candidate
        return None

    def _write_back(self, user_id: str, topic: TopicName, level: int, *, stamp_completed: bool) -> CacheWrite:
        completed_at = datetime.now(timezone.utc) if stamp_completed else None
        try:
            with session_scope() as session:
                self._repository.upsert(session, user_id, topic, level, completed_at=completed_at)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to store level %s for user=%s topic=%s", level, user_id, topic.db_form)
            emit_event("level_cache_write_failed", user_id=user_id, topic=topic.db_form, level=level)
            return CacheWrite.FAILED
        return CacheWrite.WRITTEN

    def update_level(
        self,
        user_id: Optional[str],
        topic_name: Optional[str],
        level: Optional[int],
        earned_score: Optional[int] = None,
    ) -> bool:
        user = _clean(user_id)
        raw_topic = _clean(topic_name)
        if user is None or raw_topic is None or not level:
            logger.warning("update_level called with missing input user_id=%r topic=%r level=%r", user_id, topic_name, level)
            return False

        topic = TopicName.parse(raw_topic)
        try:
            if not DEFAULT_LEVEL <= int(level) <= self.max_level:
                logger.warning("update_level rejected out-of-range level %s", level)
                return False
            with session_scope() as session:
                self._repository.upsert(
                    session,
                    user,
                    topic,
                    int(level),
                    earned_score=earned_score or 0,
                    completed_at=datetime.now(timezone.utc),
                )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to update level for user=%s topic=%s", user, topic.db_form)
            return False
        logger.info("Stored level %s for user=%s topic=%s", level, user, topic.db_form)
        return True

    def record_level_completion(
        self,
        user_id: str,
        topic_name: str,
        level: int,
        earned_score: int = 0,
        completed: bool = False,
    ) -> Optional[LevelProgress]:
        """Store a level result, keeping the best score and advancing when completed.

        Returns ``None`` when the input is blank or the result cannot be stored.
        """
        raw_topic = _clean(topic_name)
        if raw_topic is None:
            logger.warning("Level completion for user=%s has no topic", user_id)
            return None
        topic = TopicName.parse(raw_topic)
        try:
            max_level = self.max_level
            current = _clamp(level, max_level)
            next_level = _clamp(current + 1, max_level) if completed else current
            with session_scope() as session:
                record = self._repository.get_record(session, user_id, topic)
                best_score = max(earned_score, record.earned_score if record else 0)
                self._repository.upsert(
                    session,
                    user_id,
                    topic,
                    next_level,
                    earned_score=best_score,
                    completed_at=datetime.now(timezone.utc) if completed else None,
                )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to record level completion for user=%s topic=%s", user_id, topic.db_form)
            return None

        emit_event(
            "level_progress_recorded",
            user_id=user_id,
            topic=topic.db_form,
            level=current,
            next_level=next_level,
            completed=completed,
        )
        return LevelProgress(
            user_id=user_id,
            topic_name=topic.db_form,
            level=current,
            next_level=next_level,
            earned_score=best_score,
            completed=completed,
        )

    def initialize_user_levels(self, user_id: str) -> List[Dict[str, object]]:
        """Give ``user_id`` a level-1 record in every known topic it has none in."""
        results: List[Dict[str, object]] = []
        with session_scope() as session:
            for name in self._repository.list_topic_names(session):
                topic = TopicName.parse(name)
                if self._repository.has_record(session, user_id, topic):
                    status = "exists"
                else:
                    self._repository.upsert(session, user_id, topic, DEFAULT_LEVEL, earned_score=0)
                    status = "created"
                results.append({"topic": topic.db_form, "level": DEFAULT_LEVEL, "user_id": user_id, "status": status})
        return results


level_resolver = LevelResolver()

__all__ = [
    "CacheWrite",
    "DEFAULT_STRATEGIES",
    "LevelCandidate",
    "LevelProgress",
    "LevelResolution",
    "LevelResolver",
    "ResolutionContext",
    "ResolutionStrategy",
    "completed_tasks_strategy",
    "default_strategy",
    "level_resolver",
    "open_tasks_strategy",
    "progression_record_strategy",
]
