"""Connection pool observability for the progression database."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Dict
from weakref import WeakKeyDictionary

from sqlalchemy import event
from sqlalchemy.engine import Engine

from ..telemetry import emit_event


@dataclass
class PoolCounters:
    counts: Dict[str, int] = field(
        default_factory=lambda: {"connect": 0, "checkout": 0, "checkin": 0}
    )
    last_emit: float = 0.0


_COUNTERS: "WeakKeyDictionary[Engine, PoolCounters]" = WeakKeyDictionary()
_EMIT_INTERVAL = float(os.getenv("UNITY_VOICE_DB_TELEMETRY_INTERVAL", "60"))


def instrument_engine(engine: Engine) -> None:
    """Count pool events on ``engine`` and periodically emit ``db_pool_status``."""
    if engine in _COUNTERS:
        return
    counters = PoolCounters()
    _COUNTERS[engine] = counters

    def _record(kind: str) -> None:
        counters.counts[kind] += 1
        now = time.time()
        if _EMIT_INTERVAL > 0 and (now - counters.last_emit) < _EMIT_INTERVAL:
            return
        counters.last_emit = now
        emit_event("db_pool_status", trigger=kind, **get_pool_snapshot(engine))

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        _record("connect")

    @event.listens_for(engine, "checkout")
    def _on_checkout(dbapi_connection, connection_record, connection_proxy) -> None:  # type: ignore[no-untyped-def]
        _record("checkout")

    @event.listens_for(engine, "checkin")
    def _on_checkin(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        _record("checkin")


def get_pool_snapshot(engine: Engine) -> Dict[str, object]:
    counters = _COUNTERS.get(engine)
    counts = dict(counters.counts) if counters else {"connect": 0, "checkout": 0, "checkin": 0}
    try:
        status = engine.pool.status()  # type: ignore[no-untyped-call]
    except Exception as exc:  # pragma: no cover - pool without status support
        status = f"unavailable: {exc}"
    return {
        "status": status,
        "connects": counts["connect"],
        "checkouts": counts["checkout"],
        "checkins": counts["checkin"],
    }


__all__ = [
    "get_pool_snapshot",
    "instrument_engine",
]
