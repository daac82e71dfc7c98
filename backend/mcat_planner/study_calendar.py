"""Calendar arithmetic for study plans: day sequence, full lengths, phases and time targets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List

from .telemetry import emit_event

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
FULL_LENGTH_COUNT = 6
FULL_LENGTH_BLACKOUT_DAYS = 7
AGGRESSIVE_MAX_STUDY_DAYS = 42
BALANCED_MAX_STUDY_DAYS = 84


class FullLengthPlacementError(ValueError):
    """Raised when the window before the exam cannot hold the requested full lengths."""


@dataclass(frozen=True)
class PhaseSplit:
    phase1: int
    phase2: int
    phase3: int

    @property
    def total(self) -> int:
        return self.phase1 + self.phase2 + self.phase3


@dataclass(frozen=True)
class TimeTargets:
    phase1: int
    phase2: int
    phase3: int
    strategy: str

    def for_phase(self, phase: int) -> int:
        if phase == 1:
            return self.phase1
        if phase == 2:
            return self.phase2
        if phase == 3:
            return self.phase3
        raise RuntimeError(f"Invalid phase: {phase}")


def date_range(start: date, end: date) -> List[date]:
    """Dates in ``[start, end)``."""
    return [start + timedelta(days=offset) for offset in range((end - start).days)]


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def is_study_day(day: date, availability: Iterable[str]) -> bool:
    return weekday_name(day) in set(availability)


def _evenly_spaced(pool: List[date], count: int) -> List[date]:
    interval = len(pool) // count
    picks = [pool[index * interval] for index in range(count) if index * interval < len(pool)]
    return sorted(picks)


def distribute_full_lengths(
    start: date,
    exam_date: date,
    weekday: str,
    count: int = FULL_LENGTH_COUNT,
) -> List[date]:
    """Place ``count`` full-length exams before the final week.

    Candidates are the ``weekday`` dates in ``[start, exam_date - 7 days)``, picked
    every ``len(pool) // count`` positions starting from the first one. When the
    weekday pool is too small every day of the window becomes a candidate.
    """
    window = date_range(start, exam_date - timedelta(days=FULL_LENGTH_BLACKOUT_DAYS))
    weekday_pool = [day for day in window if weekday_name(day) == weekday]
    if len(weekday_pool) >= count:
        return _evenly_spaced(weekday_pool, count)

    if len(window) < count:
        raise FullLengthPlacementError(
            f"Not enough days for {count} full lengths (only {len(window)} days available)"
        )
    logger.warning(
        "Only %d %s dates before %s; spreading %d full lengths over any weekday",
        len(weekday_pool),
        weekday,
        exam_date,
        count,
    )
    emit_event(
        "full_length_fallback",
        weekday=weekday,
        weekday_candidates=len(weekday_pool),
        window_days=len(window),
        count=count,
    )
    return _evenly_spaced(window, count)


def phase_split(total_study_days: int) -> PhaseSplit:
    size, remainder = divmod(total_study_days, 3)
    return PhaseSplit(
        phase1=size + (1 if remainder > 0 else 0),
        phase2=size + (1 if remainder > 1 else 0),
        phase3=size,
    )


def phase_for_index(day_index: int, split: PhaseSplit) -> int:
    if day_index < split.phase1:
        return 1
    if day_index < split.phase1 + split.phase2:
        return 2
    return 3


def time_targets(total_study_days: int) -> TimeTargets:
    """Daily resource-minute targets; shorter plans pack each day harder."""
    if total_study_days <= AGGRESSIVE_MAX_STUDY_DAYS:
        return TimeTargets(phase1=230, phase2=235, phase3=240, strategy="aggressive")
    if total_study_days <= BALANCED_MAX_STUDY_DAYS:
        return TimeTargets(phase1=220, phase2=230, phase3=235, strategy="balanced")
    return TimeTargets(phase1=210, phase2=220, phase3=230, strategy="conservative")


__all__ = [
    "FULL_LENGTH_COUNT",
    "FullLengthPlacementError",
    "PhaseSplit",
    "TimeTargets",
    "WEEKDAY_NAMES",
    "date_range",
    "distribute_full_lengths",
    "is_study_day",
    "phase_for_index",
    "phase_split",
    "time_targets",
    "weekday_name",
]
