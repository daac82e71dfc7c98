"""Connection pool counters and throttled pool telemetry."""

from __future__ import annotations

import os
import time
import weakref
from dataclasses import dataclass
from typing import Dict

from sqlalchemy import event
from sqlalchemy.engine import Engine

from ..telemetry import emit_event


@dataclass
class PoolTelemetryState:
    connects: int = 0
    checkouts: int = 0
    checkins: int = 0
    last_emit: float = 0.0


_STATE_BY_ENGINE: "weakref.WeakKeyDictionary[Engine, PoolTelemetryState]" = weakref.WeakKeyDictionary()
_TELEMETRY_INTERVAL = float(os.getenv("MCAT_PLANNER_DB_TELEMETRY_INTERVAL", "30"))


def instrument_engine(engine: Engine) -> None:
    """Count pool events on ``engine``; safe to call more than once."""
    if engine in _STATE_BY_ENGINE:
        return

    state = PoolTelemetryState()
    _STATE_BY_ENGINE[engine] = state

    def snapshot(event_name: str) -> None:
        now = time.time()
        if _TELEMETRY_INTERVAL > 0 and (now - state.last_emit) < _TELEMETRY_INTERVAL:
            return
        state.last_emit = now
        emit_event(
            "db_pool_status",
            status=_safe_pool_status(engine),
            event=event_name,
            connects=state.connects,
            checkouts=state.checkouts,
            checkins=state.checkins,
        )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        state.connects += 1
        snapshot("db_pool_connect")

    @event.listens_for(engine, "checkout")
    def _on_checkout(dbapi_connection, connection_record, connection_proxy) -> None:  # type: ignore[no-untyped-def]
        state.checkouts += 1
        snapshot("db_pool_checkout")

    @event.listens_for(engine, "checkin")
    def _on_checkin(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        state.checkins += 1
        snapshot("db_pool_checkin")


def get_pool_snapshot(engine: Engine) -> Dict[str, object]:
    state = _STATE_BY_ENGINE.get(engine)
    return {
        "status": _safe_pool_status(engine),
        "connects": state.connects if state else 0,
        "checkouts": state.checkouts if state else 0,
        "checkins": state.checkins if state else 0,
    }


def _safe_pool_status(engine: Engine) -> str:
    try:
        return engine.pool.status()  # type: ignore[no-untyped-call]
    except Exception as exc:  # noqa: BLE001
        return f"unavailable: {exc}"


__all__ = ["get_pool_snapshot", "instrument_engine"]
