"""Outer calendar loop: full-length placement, anchor rotation and per-day dispatch."""

from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy.orm import Session

from .models import (
    BreakDay,
    FullLengthDay,
    ScheduleDay,
    ScheduleMetadata,
    ScheduleRequest,
    ScheduleResponse,
    Topic,
    resource_uid,
)
from .phase_planner import PhasePlanner
from .resource_manager import ResourceManager
from .study_calendar import (
    FULL_LENGTH_COUNT,
    PhaseSplit,
    date_range,
    distribute_full_lengths,
    is_study_day,
    phase_for_index,
    phase_split,
    time_targets,
)
from .telemetry import emit_event

logger = logging.getLogger(__name__)

SCHEDULE_ID_PREFIX = "schedule_"


def new_schedule_id() -> str:
    return f"{SCHEDULE_ID_PREFIX}{uuid.uuid4().hex}"


def _has_unused(resources, used: Set[str]) -> bool:  # type: ignore[no-untyped-def]
    return any(resource_uid(resource) not in used for resource in resources)


class ScheduleGenerator:
    """Plans one schedule run; the instance owns the run's category cursors."""

    def __init__(
        self,
        session: Session,
        schedule_id: Optional[str] = None,
        *,
        full_length_count: int = FULL_LENGTH_COUNT,
        manager: Optional[ResourceManager] = None,
    ) -> None:
        self.schedule_id = schedule_id or new_schedule_id()
        self.manager = manager or ResourceManager(session, self.schedule_id)
        self.planner = PhasePlanner(self.manager)
        self.full_length_count = full_length_count
        self.category_cursors: Dict[str, int] = {}

    def generate(self, request: ScheduleRequest) -> ScheduleResponse:
        started = time.perf_counter()
        priorities = [priority.strip() for priority in request.priorities if priority.strip()]
        availability = {weekday.strip() for weekday in request.availability if weekday.strip()}

        all_dates = date_range(request.start_date, request.test_date)
        full_length_dates = distribute_full_lengths(
            request.start_date,
            request.test_date,
            request.fl_weekday,
            self.full_length_count,
        )
        full_length_numbers = {day: index + 1 for index, day in enumerate(full_length_dates)}
        study_dates = [
            day for day in all_dates if is_study_day(day, availability) and day not in full_length_numbers
        ]
        split = phase_split(len(study_dates))
        targets = time_targets(split.total)

        topics = self.manager.topics_by_priority(priorities)
        if not topics:
            raise ValueError(f"No topics found for priorities: {', '.join(priorities)}")

        self.planner.initialize(topics, targets)
        logger.info(
            "Generating %s: %d days, %d study days (%d/%d/%d), %d full lengths, %s targets",
            self.schedule_id,
            len(all_dates),
            split.total,
            split.phase1,
            split.phase2,
            split.phase3,
            len(full_length_dates),
            targets.strategy,
        )

        schedule: List[ScheduleDay] = []
        study_index = 0
        topic_index = 0
        phase_one_used: Optional[Set[str]] = None

        for day in all_dates:
            if day in full_length_numbers:
                schedule.append(FullLengthDay(date=day, name=f"FL #{full_length_numbers[day]}"))
                continue
            if not is_study_day(day, availability):
                schedule.append(BreakDay(date=day))
                continue

            used = self.manager.used_resources()
            phase = phase_for_index(study_index, split)
            if phase >= 2 and phase_one_used is None:
                phase_one_used = set(used)

            anchor = self.select_anchor(topics, topic_index, phase, priorities, used)
            schedule.append(
                self.planner.plan_day(day, phase, anchor, used, frozenset(phase_one_used or ()))
            )
            study_index += 1
            topic_index = (topic_index + 1) % len(topics)

        available_days = sum(1 for day in all_dates if is_study_day(day, availability))
        metadata = _metadata(schedule, available_days, split)
        emit_event(
            "schedule_generated",
            schedule_id=self.schedule_id,
            total_days=metadata.total_days,
            study_days=metadata.study_days,
            full_length_days=metadata.full_length_days,
            strategy=targets.strategy,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return ScheduleResponse(schedule=schedule, metadata=metadata)

    def select_anchor(
        self,
        topics: Sequence[Topic],
        current_index: int,
        phase: int,
        priorities: Sequence[str],
        used: Set[str],
    ) -> Topic:
        """Pick the topic a study day is organised around.

        Phases 1 and 2 rotate across the priority categories and, inside a
        category, move a cursor forward past topics whose material is used up.
        A category with nothing left still yields its cursor topic. Phase 3
        rotates over every topic since AAMC practice is not topic scoped.
        """
        if phase > 2:
            return topics[current_index % len(topics)]

        groups = _category_groups(topics, priorities)
        if not groups:
            return topics[current_index % len(topics)]

        categories = list(groups)
        category = categories[current_index % len(categories)]
        members = groups[category]
        start = self.category_cursors.get(category, 0) % len(members)

        for offset in range(len(members)):
            position = (start + offset) % len(members)
            candidate = members[position]
            if self.has_supply(candidate, phase, used):
                self.category_cursors[category] = (position + 1) % len(members)
                return candidate

        self.category_cursors[category] = (start + 1) % len(members)
        logger.info("Category %s has no unused phase %d material; reusing %s", category, phase, members[start].key)
        emit_event(
            "anchor_supply_exhausted",
            schedule_id=self.schedule_id,
            category=category,
            phase=phase,
            topic=members[start].key,
        )
        return members[start]

    def has_supply(self, anchor: Topic, phase: int, used: Set[str]) -> bool:
        if phase == 1:
            return (
                _has_unused(self.manager.kaplan_resources(anchor.key, high_yield_only=True), used)
                or _has_unused(self.manager.discrete_resources(anchor.key), used)
                or _has_unused(self.manager.kaplan_resources(anchor.key), used)
            )
        if phase == 2:
            return _has_unused(self.manager.science_passages(anchor.key), used) or bool(
                self.manager.uworld_resources(anchor.key)
            )
        return True


def _category_groups(topics: Sequence[Topic], priorities: Sequence[str]) -> "OrderedDict[str, List[Topic]]":
    """High-yield topics per priority category, in priority order.

    Categories without any high-yield topic contribute all of their topics.
    """
    groups: "OrderedDict[str, List[Topic]]" = OrderedDict()
    for category in priorities:
        if category in groups:
            continue
        members = [topic for topic in topics if topic.category == category]
        high_yield = [topic for topic in members if topic.high_yield]
        if high_yield or members:
            groups[category] = high_yield or members
    return groups


def _metadata(schedule: Sequence[ScheduleDay], available_days: int, split: PhaseSplit) -> ScheduleMetadata:
    """Calendar-level counts.

    ``study_days`` counts every available weekday, including those taken by a
    full-length exam; every other day counts as a break. The phase counts cover
    only the days that were actually planned.
    """
    return ScheduleMetadata(
        total_days=len(schedule),
        study_days=available_days,
        break_days=len(schedule) - available_days,
        phase_1_days=split.phase1,
        phase_2_days=split.phase2,
        phase_3_days=split.phase3,
        full_length_days=sum(1 for day in schedule if isinstance(day, FullLengthDay)),
    )


def generate_schedule(
    session: Session,
    request: ScheduleRequest,
    *,
    schedule_id: Optional[str] = None,
    full_length_count: int = FULL_LENGTH_COUNT,
) -> ScheduleResponse:
    generator = ScheduleGenerator(session, schedule_id, full_length_count=full_length_count)
    return generator.generate(request)


__all__ = [
    "SCHEDULE_ID_PREFIX",
    "ScheduleGenerator",
    "generate_schedule",
    "new_schedule_id",
]
