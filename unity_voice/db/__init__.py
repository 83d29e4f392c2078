"""Database utilities for Unity Voice."""

from .base import Base
from .session import dispose_engine, get_engine, session_scope

__all__ = [
    "Base",
    "dispose_engine",
    "get_engine",
    "session_scope",
]
