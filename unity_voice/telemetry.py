"""Progression events.

Level resolutions, task starts and completions, and pool status are all
reported through ``emit_event``. Each event becomes one ``EVENT <name> <json>``
line on the ``unity_voice.events`` logger and is handed to every subscribed
listener, which is how the tests follow a learner through a topic.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List

logger = logging.getLogger("unity_voice.events")


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[TelemetryEvent], None]

_subscribers: List[Listener] = []
_subscribers_lock = Lock()


def register_listener(listener: Listener) -> Callable[[], None]:
    """Subscribe ``listener`` and return a callable that unsubscribes it."""
    with _subscribers_lock:
        _subscribers.append(listener)

    def unregister() -> None:
        with _subscribers_lock:
            if listener in _subscribers:
                _subscribers.remove(listener)

    return unregister


def _plain(value: Any) -> Any:
    # Task types and cache outcomes are str enums; listeners see their values.
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def emit_event(name: str, **fields: Any) -> None:
    event = TelemetryEvent(name=name, payload={key: _plain(value) for key, value in fields.items()})

    with _subscribers_lock:
        subscribers = tuple(_subscribers)
    for listener in subscribers:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Listener %r failed on %s", listener, name)

    logger.info("EVENT %s %s", name, json.dumps(event.payload, default=str, sort_keys=True))


__all__ = [
    "Listener",
    "TelemetryEvent",
    "emit_event",
    "register_listener",
]
