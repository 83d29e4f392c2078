from __future__ import annotations

from unity_voice import word_store
from unity_voice.word_store import list_topics, select_words

from .conftest import add_task, add_topic, add_word, link_word

TOPIC = "Economy"


def _learn(user_id: str, *word_ids: str) -> None:
    task_id = add_task(user_id, TOPIC, 1, "flashcard", completed=True)
    for word_id in word_ids:
        link_word(task_id, word_id)


def test_unlearned_words_at_level_are_returned() -> None:
    for index in range(5):
        add_word(f"b{index}", f"word{index}", TOPIC, "B1")
    add_word("a0", "budget", TOPIC, "A2")
    add_word("x0", "ceasefire", "Iron Swords", "B1")
    _learn("u1", "b0")

    words = select_words("u1", "economy", "B1")
    assert {word.word_id for word in words} == {"b1", "b2", "b3", "b4"}


def test_level_filter_dropped_when_too_few_remain() -> None:
    for word_id in ("b0", "b1", "b2", "b3"):
        add_word(word_id, word_id, TOPIC, "B1")
    for word_id in ("a0", "a1"):
        add_word(word_id, word_id, TOPIC, "A2")
    _learn("u1", "b0", "b1")

    words = select_words("u1", TOPIC, "B1")
    assert {word.word_id for word in words} == {"b2", "b3", "a0", "a1"}


def test_unfiltered_sample_when_everything_is_learned() -> None:
    for word_id in ("b0", "b1", "b2"):
        add_word(word_id, word_id, TOPIC, "B1")
    _learn("u1", "b0", "b1", "b2")

    words = select_words("u1", TOPIC, "B1")
    assert {word.word_id for word in words} == {"b0", "b1", "b2"}


def test_open_tasks_do_not_count_as_learned() -> None:
    for word_id in ("b0", "b1", "b2"):
        add_word(word_id, word_id, TOPIC, "B1")
    open_task = add_task("u1", TOPIC, 1, "quiz")
    link_word(open_task, "b0")

    assert len(select_words("u1", TOPIC, "B1")) == 3


def test_limit_is_respected() -> None:
    for index in range(10):
        add_word(f"b{index}", f"word{index}", TOPIC, "B1")
    assert len(select_words("u1", TOPIC, "B1", limit=4)) == 4


def test_storage_error_returns_empty_list(monkeypatch) -> None:
    def broken_sample(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise RuntimeError("connection reset")

    monkeypatch.setattr(word_store, "_sample", broken_sample)
    assert select_words("u1", TOPIC, "B1") == []


def test_list_topics_includes_url_form() -> None:
    add_topic("Iron Swords", topic_hebrew="חרבות ברזל", icon="🛡️")
    add_topic("Economy")
    topics = list_topics()
    assert [topic["topic_name"] for topic in topics] == ["Economy", "Iron Swords"]
    assert topics[1]["url_form"] == "iron-swords"


def test_learned_word_lookup_failure_falls_back_to_unfiltered_sample(monkeypatch) -> None:
    for word_id in ("b0", "b1"):
        add_word(word_id, word_id, TOPIC, "B1")
    add_word("a0", "a0", TOPIC, "A2")

    def broken_lookup(user_id: str):  # type: ignore[no-untyped-def]
        raise RuntimeError("word_in_task unavailable")

    monkeypatch.setattr(word_store, "_learned_word_ids", broken_lookup)
    words = select_words("u1", TOPIC, "B1")
    assert {word.word_id for word in words} == {"b0", "b1"}
