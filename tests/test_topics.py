from __future__ import annotations

import pytest
from sqlalchemy import select

from unity_voice.db.models import TaskModel
from unity_voice.db.session import session_scope
from unity_voice.topics import TopicName, are_equivalent, to_db_form, to_url_form, topic_match_clause

from .conftest import add_task


def test_url_form_parses_to_title_case_db_form() -> None:
    topic = TopicName.parse("holocaust-and-revival")
    assert topic.db_form == "Holocaust And Revival"
    assert topic.url_form == "holocaust-and-revival"


def test_db_form_is_canonical_title_case() -> None:
    assert to_db_form("Iron  Swords") == "Iron Swords"
    assert to_db_form("Holocaust and revival") == "Holocaust And Revival"
    assert to_db_form("IRON swords") == "Iron Swords"
    assert TopicName.parse("Holocaust and revival").db_form == TopicName.parse("holocaust-and-revival").db_form
    assert to_url_form("Iron Swords") == "iron-swords"


def test_equivalent_spellings_compare_equal() -> None:
    spellings = ["Society And Culture", "society-and-culture", "society and culture", "SocietyAndCulture"]
    parsed = {TopicName.parse(value) for value in spellings}
    assert len(parsed) == 1
    assert are_equivalent("Diplomacy-And-International-Relations", "diplomacy and international relations")
    assert not are_equivalent("economy", "environment")


def test_blank_topic_rejected() -> None:
    with pytest.raises(ValueError):
        TopicName.parse("   ")


def test_match_clause_finds_rows_stored_in_either_form() -> None:
    add_task("u1", "holocaust-and-revival", 1, "flashcard")
    add_task("u1", "Holocaust And Revival", 1, "quiz")
    add_task("u1", "Economy", 1, "quiz")

    topic = TopicName.parse("Holocaust And Revival")
    with session_scope(commit=False) as session:
        rows = session.execute(
            select(TaskModel.task_type).where(topic_match_clause(TaskModel.topic_name, topic))
        ).scalars().all()
    assert sorted(rows) == ["flashcard", "quiz"]
