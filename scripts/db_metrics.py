"""Print a JSON snapshot of pool health and progression table sizes."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from unity_voice.db.models import TaskModel, UserLevelModel, WordModel
from unity_voice.db.monitoring import get_pool_snapshot
from unity_voice.db.session import get_engine, session_scope
from unity_voice.logging_config import configure_logging

LOGGER = logging.getLogger("unity_voice.db_metrics")


def collect_table_counts(session: Session) -> Dict[str, int]:
    open_tasks = select(func.count()).select_from(TaskModel).where(TaskModel.completion_date.is_(None))
    return {
        "user_levels": session.execute(select(func.count()).select_from(UserLevelModel)).scalar_one(),
        "tasks": session.execute(select(func.count()).select_from(TaskModel)).scalar_one(),
        "open_tasks": session.execute(open_tasks).scalar_one(),
        "words": session.execute(select(func.count()).select_from(WordModel)).scalar_one(),
    }


def collect_metrics() -> Dict[str, object]:
    with session_scope(commit=False) as session:
        counts = collect_table_counts(session)
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "pool": get_pool_snapshot(get_engine()),
        "tables": counts,
    }


def main() -> int:
    configure_logging()
    try:
        print(json.dumps(collect_metrics()))
        return 0
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Failed to collect database metrics: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
