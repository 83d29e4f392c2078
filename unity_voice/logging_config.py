"""Process logging for the API, migrations and maintenance scripts."""

import os
from logging.config import dictConfig
from typing import Any, Dict, Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "0").strip().lower() in {"1", "true", "yes"}


def build_logging_config(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Translate the UNITY_VOICE_* logging variables into a ``dictConfig`` mapping.

    ``UNITY_VOICE_LOG_LEVEL`` sets the application level. Progression events
    follow it unless ``UNITY_VOICE_EVENT_LOG_LEVEL`` says otherwise, so they can
    be silenced without hiding warnings. ``UNITY_VOICE_DEBUG_SQL`` and
    ``UNITY_VOICE_DEBUG_HTTP`` turn on statement and access logs.
    """
    env = os.environ if env is None else env
    level = env.get("UNITY_VOICE_LOG_LEVEL", "INFO").upper()
    event_level = env.get("UNITY_VOICE_EVENT_LOG_LEVEL", level).upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "plain"},
        },
        "loggers": {
            "unity_voice": {"level": level},
            "unity_voice.events": {"level": event_level},
            "sqlalchemy.engine": {"level": "INFO" if _flag(env, "UNITY_VOICE_DEBUG_SQL") else "WARNING"},
            "uvicorn.access": {"level": "DEBUG" if _flag(env, "UNITY_VOICE_DEBUG_HTTP") else "INFO"},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def configure_logging(env: Optional[Mapping[str, str]] = None) -> None:
    dictConfig(build_logging_config(env))


__all__ = ["LOG_FORMAT", "build_logging_config", "configure_logging"]
