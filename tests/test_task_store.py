"""Task persistence, reuse and completion side effects."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete, select

from unity_voice.db.models import TaskModel, UserLevelModel, WordInTaskModel
from unity_voice.db.session import session_scope
from unity_voice.level_resolver import LevelResolver
from unity_voice.repositories.tasks import TaskRepository
from unity_voice.task_sequencer import TaskType
from unity_voice.task_store import TaskNotFoundError, TaskStore, TaskStoreError

from .conftest import add_task, add_word

TOPIC = "Society And Culture"


def _store() -> TaskStore:
    return TaskStore(resolver=LevelResolver(max_level=3))


class InsertFailingRepository(TaskRepository):
    def insert(self, session, user_id, topic, task_type, level):  # type: ignore[no-untyped-def]
        raise RuntimeError("disk full")


def test_create_task_reuses_open_task() -> None:
    store = _store()
    first = store.create_task("u1", TOPIC, TaskType.QUIZ, 1)
    again = store.create_task("u1", "society-and-culture", TaskType.QUIZ, 1)
    other_level = store.create_task("u1", TOPIC, TaskType.QUIZ, 2)
    assert first == again
    assert other_level != first


def test_create_task_after_completion_inserts_new_row() -> None:
    store = _store()
    first = store.create_task("u1", TOPIC, TaskType.FLASHCARD, 1)
    store.complete_task(first, score=10)
    assert store.create_task("u1", TOPIC, TaskType.FLASHCARD, 1) != first


def test_create_task_failure_raises_store_error() -> None:
    store = TaskStore(repository=InsertFailingRepository())
    with pytest.raises(TaskStoreError):
        store.create_task("u1", TOPIC, TaskType.FLASHCARD, 1)


def test_list_topic_tasks_orders_and_reports_db_form() -> None:
    now = datetime.now(timezone.utc)
    add_task("u1", "society-and-culture", 2, "flashcard", task_id="l2")
    add_task("u1", "society-and-culture", 1, "flashcard", task_id="old", start_date=now - timedelta(days=2))
    add_task("u1", "society-and-culture", 1, "quiz", task_id="new", start_date=now - timedelta(days=1))
    add_task("u2", "society-and-culture", 1, "quiz", task_id="someone-else")

    tasks = _store().list_topic_tasks("u1", TOPIC)
    assert [task.task_id for task in tasks] == ["new", "old", "l2"]
    assert {task.topic_name for task in tasks} == {TOPIC}


def test_next_task_creates_then_resumes() -> None:
    store = _store()
    first = store.next_task("u1", "society-and-culture")
    assert first.created is True
    assert (first.task_type, first.level) == (TaskType.FLASHCARD, 1)

    second = store.next_task("u1", TOPIC)
    assert second.created is False
    assert second.task_id == first.task_id


def test_complete_task_records_score_and_computed_duration() -> None:
    started = datetime.now(timezone.utc) - timedelta(seconds=90)
    task_id = add_task("u1", TOPIC, 1, "flashcard", start_date=started)

    snapshot = _store().complete_task(task_id, score=75)
    assert snapshot.task_score == 75
    assert snapshot.is_completed
    assert snapshot.duration_task is not None and snapshot.duration_task >= 90


def test_completing_conversation_advances_progression() -> None:
    add_task("u1", TOPIC, 1, "flashcard", completed=True, score=20)
    add_task("u1", TOPIC, 1, "quiz", completed=True, score=30)
    conversation = add_task("u1", TOPIC, 1, "conversation")
    store = _store()

    store.complete_task(conversation, score=50, duration=300)

    with session_scope(commit=False) as session:
        record = session.execute(select(UserLevelModel).where(UserLevelModel.user_id == "u1")).scalar_one()
    assert record.level == 2
    assert record.earned_score == 100
    assert record.completed_at is not None
    assert store.next_task("u1", TOPIC).level == 2


def test_complete_unknown_task_raises() -> None:
    with pytest.raises(TaskNotFoundError):
        _store().complete_task("missing", score=1)


def test_update_task_duration() -> None:
    task_id = add_task("u1", TOPIC, 1, "post")
    store = _store()
    assert store.update_task_duration(task_id, 42) is True
    assert store.update_task_duration("missing", 42) is False
    assert store.list_topic_tasks("u1", TOPIC)[0].duration_task == 42


def test_add_words_to_task_is_idempotent() -> None:
    task_id = add_task("u1", TOPIC, 1, "flashcard")
    add_word("w1", "heritage", TOPIC, "B1")
    add_word("w2", "tradition", TOPIC, "B1")
    store = _store()

    assert store.add_words_to_task(task_id, ["w1", "w2"]) == 2
    with session_scope(commit=False) as session:
        first_added = session.execute(
            select(WordInTaskModel.added_at).where(WordInTaskModel.word_id == "w1")
        ).scalar_one()
    assert store.add_words_to_task(task_id, ["w1", " ", "w2"]) == 0
    with session_scope(commit=False) as session:
        assert session.execute(
            select(WordInTaskModel.added_at).where(WordInTaskModel.word_id == "w1")
        ).scalar_one() == first_added

    assert sorted(word.word for word in store.words_for_task(task_id)) == ["heritage", "tradition"]


def test_temporary_task_ids_are_skipped() -> None:
    store = _store()
    assert store.add_words_to_task("client_123", ["w1"]) == 0
    assert store.add_words_to_task("temp_abc", ["w1"]) == 0
    assert store.words_for_task("temp_abc") == []


def test_add_words_to_unknown_task_raises() -> None:
    with pytest.raises(TaskNotFoundError):
        _store().add_words_to_task("missing", ["w1"])


def test_deleting_task_removes_its_word_links() -> None:
    task_id = add_task("u1", TOPIC, 1, "flashcard")
    add_word("w1", "heritage", TOPIC, "B1")
    _store().add_words_to_task(task_id, ["w1"])

    with session_scope() as session:
        session.execute(delete(TaskModel).where(TaskModel.task_id == task_id))

    with session_scope(commit=False) as session:
        assert session.execute(select(WordInTaskModel)).scalars().all() == []


def test_ownership_is_checked_when_user_is_given() -> None:
    task_id = add_task("u2", TOPIC, 1, "flashcard")
    store = _store()

    with pytest.raises(TaskNotFoundError):
        store.complete_task(task_id, score=5, user_id="u1")
    assert store.update_task_duration(task_id, 10, user_id="u1") is False
    with pytest.raises(TaskNotFoundError):
        store.add_words_to_task(task_id, ["w1"], user_id="u1")
    with pytest.raises(TaskNotFoundError):
        store.words_for_task(task_id, user_id="u1")

    assert store.complete_task(task_id, score=5, user_id="u2").is_completed


def test_ceiling_level_cycles_through_every_task_type() -> None:
    for level in (1, 2, 3):
        for task_type in ("flashcard", "quiz", "post", "conversation"):
            add_task("u1", TOPIC, level, task_type, completed=True, score=10)
    store = _store()

    seen = []
    for _ in range(5):
        decision = store.next_task("u1", TOPIC)
        assert decision.created is True
        seen.append((decision.task_type, decision.level))
        store.complete_task(decision.task_id, score=10)

    assert seen == [
        (TaskType.FLASHCARD, 3),
        (TaskType.QUIZ, 3),
        (TaskType.POST, 3),
        (TaskType.CONVERSATION, 3),
        (TaskType.FLASHCARD, 3),
    ]
