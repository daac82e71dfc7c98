"""Engine and session helpers for the catalog database."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import Settings, get_settings
from .base import Base
from .monitoring import instrument_engine

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url in {"sqlite://", "sqlite:///:memory:"} or "mode=memory" in database_url


def build_engine(database_url: str, settings: Optional[Settings] = None) -> Engine:
    settings = settings or get_settings()
    kwargs: dict[str, object] = {
        "echo": settings.database_echo,
        "future": True,
        "pool_pre_ping": True,
    }

    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(database_url):
            # Every session must see the same in-memory database.
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["max_overflow"] = settings.database_max_overflow

    return create_engine(database_url, **kwargs)


def get_engine() -> Engine:
    global _engine, _session_factory
    if _engine is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("MCAT_PLANNER_DATABASE_URL must be configured before using the database.")
        _engine = build_engine(settings.database_url, settings)
        instrument_engine(_engine)
        _session_factory = sessionmaker(
            bind=_engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None
    return _session_factory


def create_schema(engine: Optional[Engine] = None) -> None:
    """Create any missing tables; migrations remain the source of truth in production."""
    Base.metadata.create_all(engine or get_engine())


@contextmanager
def session_scope(*, commit: bool = True) -> Generator[Session, None, None]:
    session = get_session_factory()()
    try:
        yield session
        if commit:
            session.commit()
    except Exception:  # noqa: BLE001
        session.rollback()
        raise
    finally:
        session.close()


def get_session_dependency() -> Generator[Session, None, None]:
    with session_scope() as session:
        yield session


def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "build_engine",
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session_dependency",
    "get_session_factory",
    "session_scope",
]
