from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator, List, Optional

import pytest

from unity_voice.config import get_settings
from unity_voice.db.base import Base
from unity_voice.db.models import TaskModel, TopicModel, WordInTaskModel, WordModel
from unity_voice.db.session import dispose_engine, get_engine, session_scope
from unity_voice.telemetry import TelemetryEvent, register_listener

JWT_SECRET = "test-secret"
STARTED_BEFORE_COMPLETION = datetime(2023, 12, 31, tzinfo=timezone.utc)
COMPLETED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch) -> Iterator[None]:
    monkeypatch.setenv("UNITY_VOICE_DATABASE_URL", f"sqlite:///{tmp_path / 'unity_voice.sqlite'}")
    monkeypatch.setenv("UNITY_VOICE_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("ENV_FILE", str(tmp_path / "missing.env"))
    get_settings.cache_clear()
    dispose_engine()
    Base.metadata.create_all(get_engine())
    yield
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture
def events() -> Iterator[List[TelemetryEvent]]:
    captured: List[TelemetryEvent] = []
    unregister = register_listener(captured.append)
    yield captured
    unregister()


def add_task(
    user_id: str,
    topic_name: str,
    level: int,
    task_type: str,
    *,
    completed: bool = False,
    score: int = 0,
    task_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
) -> str:
    with session_scope() as session:
        model = TaskModel(
            user_id=user_id,
            topic_name=topic_name,
            level=level,
            task_type=task_type,
            task_score=score,
            start_date=start_date or (STARTED_BEFORE_COMPLETION if completed else datetime.now(timezone.utc)),
            completion_date=COMPLETED_AT if completed else None,
        )
        if task_id is not None:
            model.task_id = task_id
        session.add(model)
        session.flush()
        return model.task_id


def add_topic(topic_name: str, topic_hebrew: str = "", icon: str = "") -> None:
    with session_scope() as session:
        session.add(TopicModel(topic_name=topic_name, topic_hebrew=topic_hebrew, icon=icon))


def add_word(word_id: str, word: str, topic_name: str, english_level: str) -> None:
    with session_scope() as session:
        session.add(
            WordModel(
                word_id=word_id,
                word=word,
                translation=f"{word}-he",
                example_usage=f"Use {word} in a sentence.",
                topic_name=topic_name,
                english_level=english_level,
            )
        )


def link_word(task_id: str, word_id: str) -> None:
    with session_scope() as session:
        session.add(WordInTaskModel(task_id=task_id, word_id=word_id))
