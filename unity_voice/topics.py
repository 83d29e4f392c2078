"""Topic names and their two interchangeable spellings.

Topics are stored in "db form" ("Holocaust And Revival") and routed in "url
form" ("holocaust-and-revival"). ``TopicName`` parses either spelling once so
callers never hand-roll the conversions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from sqlalchemy import ColumnElement, func, or_

_SEPARATORS = re.compile(r"[\s-]+")


def normalize_topic_name(name: str) -> str:
    """Lower-case ``name`` and strip spaces and hyphens."""
    return _SEPARATORS.sub("", name.lower())


def _words(name: str) -> list[str]:
    return [word for word in _SEPARATORS.split(name.strip()) if word]


def to_db_form(name: str) -> str:
    """Title-case every word, so each spelling of a topic has one stored form."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in _words(name))


def to_url_form(name: str) -> str:
    return "-".join(word.lower() for word in _words(name))


def are_equivalent(first: str, second: str) -> bool:
    return normalize_topic_name(first) == normalize_topic_name(second)


@dataclass(frozen=True, eq=False)
class TopicName:
    db_form: str
    url_form: str
    key: str = field(repr=False)

    @classmethod
    def parse(cls, raw: str) -> "TopicName":
        if raw is None or not raw.strip():
            raise ValueError("Topic name cannot be empty.")
        trimmed = raw.strip()
        return cls(
            db_form=to_db_form(trimmed),
            url_form=to_url_form(trimmed),
            key=normalize_topic_name(trimmed),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TopicName):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.db_form


def topic_match_clause(column: ColumnElement[str], topic: TopicName) -> ColumnElement[bool]:
    """Predicate matching ``column`` against every accepted spelling of ``topic``."""
    lowered = func.lower(column)
    url_lower = topic.url_form.lower()
    return or_(
        column == topic.db_form,
        column == topic.url_form,
        lowered == topic.db_form.lower(),
        lowered == url_lower,
        func.replace(lowered, " ", "-") == url_lower,
        lowered == url_lower.replace("-", " "),
        func.replace(func.replace(lowered, " ", ""), "-", "") == topic.key,
    )


__all__ = [
    "TopicName",
    "are_equivalent",
    "normalize_topic_name",
    "to_db_form",
    "to_url_form",
    "topic_match_clause",
]
