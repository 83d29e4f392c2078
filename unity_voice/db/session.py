"""The process-wide progression database handle.

The engine is created on first use from ``UNITY_VOICE_DATABASE_URL`` and shared
by every request. ``dispose_engine`` drops it so the next use rebuilds it from
fresh settings, which the tests rely on to point each test at its own file.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings
from .monitoring import instrument_engine


@dataclass(frozen=True)
class _Database:
    engine: Engine
    sessions: sessionmaker[Session]


_database: Optional[_Database] = None


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    # SQLite ignores ON DELETE CASCADE on word_in_task unless asked per connection.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _open(settings: Settings) -> _Database:
    url = settings.database_url
    if not url:
        raise RuntimeError("UNITY_VOICE_DATABASE_URL must be configured before using the database.")

    options: Dict[str, Any] = {"echo": settings.database_echo, "pool_pre_ping": True}
    sqlite = url.startswith("sqlite")
    if sqlite:
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(pool_size=settings.database_pool_size, max_overflow=settings.database_max_overflow)

    engine = create_engine(url, **options)
    if sqlite:
        _enable_sqlite_foreign_keys(engine)
    instrument_engine(engine)
    return _Database(
        engine=engine,
        sessions=sessionmaker(bind=engine, autoflush=False, expire_on_commit=False),
    )


def _current() -> _Database:
    global _database
    if _database is None:
        _database = _open(get_settings())
    return _database


def get_engine() -> Engine:
    return _current().engine


@contextmanager
def session_scope(*, commit: bool = True) -> Iterator[Session]:
    """Yield a session that commits on success (unless ``commit=False``) and rolls back on error."""
    session = _current().sessions()
    try:
        yield session
        if commit:
            session.commit()
    except Exception:  # noqa: BLE001
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    global _database
    if _database is not None:
        _database.engine.dispose()
    _database = None


__all__ = [
    "dispose_engine",
    "get_engine",
    "session_scope",
]
