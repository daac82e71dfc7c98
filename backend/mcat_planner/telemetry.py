"""In-process telemetry for schedule generation runs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from threading import RLock
from typing import Any, Callable, Dict, List

logger = logging.getLogger("mcat_planner.telemetry")


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]


_listeners: List[Callable[[TelemetryEvent], None]] = []
_lock = RLock()


def register_listener(listener: Callable[[TelemetryEvent], None]) -> None:
    """Register an in-process listener (used in tests)."""
    with _lock:
        _listeners.append(listener)


def clear_listeners() -> None:
    with _lock:
        _listeners.clear()


def emit_event(name: str, **fields: Any) -> None:
    """Log a structured event and fan it out to registered listeners."""
    payload = {key: _serialise(value) for key, value in fields.items()}
    event = TelemetryEvent(name=name, payload=payload)

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **payload}, default=str))


def _serialise(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


__all__ = [
    "TelemetryEvent",
    "clear_listeners",
    "emit_event",
    "register_listener",
]
