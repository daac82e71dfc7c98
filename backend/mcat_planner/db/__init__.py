"""Database utilities for the MCAT planner."""

from .base import Base
from .session import (
    build_engine,
    create_schema,
    dispose_engine,
    get_engine,
    get_session_dependency,
    get_session_factory,
    session_scope,
)

__all__ = [
    "Base",
    "build_engine",
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session_dependency",
    "get_session_factory",
    "session_scope",
]
