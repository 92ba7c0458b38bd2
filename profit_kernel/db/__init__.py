"""Database layer - engine, base classes, and column types."""

from profit_kernel.db.base import Base, TrackedBase, UUIDString
from profit_kernel.db.engine import create_tables, get_engine, get_session, session_scope

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
]
