"""Per-phase day recipes that fill a study day slot by slot under a fixed time budget."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import AbstractSet, Dict, List, Optional, Sequence, Set, Tuple

from .models import BaseResource, ResourceItem, StudyDay, Topic, resource_uid
from .resource_manager import ResourceManager
from .resource_selection import ResourceSelection, SlotType, select_for_slot
from .study_calendar import TimeTargets, time_targets

logger = logging.getLogger(__name__)

DAILY_RESOURCE_MINUTES = 240
WRITTEN_REVIEW_MINUTES = 60
PHASE_THREE_EXTRA_PACKS = 3
PHASE_THREE_PACK_MIN_REMAINING = 25
PHASE_THREE_PASSAGE_MIN_REMAINING = 20

PHASE_ONE_BLOCKS = ("science_content", "science_discretes", "cars")
PHASE_TWO_BLOCKS = ("science_passages", "uworld_set", "extra_discretes", "cars")
PHASE_THREE_BLOCKS = ("aamc_sets", "aamc_cars_passages")

_URL_PATTERN = re.compile(r"https?://\S+")
_TRAILING_DASH = re.compile(r"\s*-\s*$")

# (block name, slot type, candidate pool)
FillSource = Tuple[str, SlotType, Sequence[BaseResource]]


def to_resource_item(selection: ResourceSelection, anchor: Topic) -> ResourceItem:
    resource = selection.resource
    match = _URL_PATTERN.search(resource.title)
    title = resource.title
    if match:
        title = _URL_PATTERN.sub("", title)
    title = _TRAILING_DASH.sub("", title.strip()).strip()
    return ResourceItem(
        title=title,
        topic_number=resource.key,
        topic_title=anchor.concept_title,
        provider=selection.provider,
        time_minutes=selection.time_minutes,
        url=match.group(0) if match else None,
        high_yield=getattr(resource, "high_yield", None),
        resource_type=getattr(resource, "resource_type", None),
    )


class _DayAssembly:
    """Working state for one study day while its slots are filled."""

    def __init__(
        self,
        manager: ResourceManager,
        day: date,
        phase: int,
        anchor: Topic,
        used: Set[str],
        block_names: Sequence[str],
    ) -> None:
        self.manager = manager
        self.day = day
        self.phase = phase
        self.anchor = anchor
        self.used = used
        self.same_day_used: Set[str] = set()
        self.blocks: Dict[str, List[ResourceItem]] = {name: [] for name in block_names}
        self.remaining = DAILY_RESOURCE_MINUTES

    @property
    def assigned_minutes(self) -> int:
        return DAILY_RESOURCE_MINUTES - self.remaining

    def fits(self, selection: ResourceSelection) -> bool:
        return selection.time_minutes <= self.remaining

    def below(self, target: int) -> bool:
        return self.assigned_minutes < target

    def add(self, block: str, selection: ResourceSelection) -> None:
        self.blocks[block].append(to_resource_item(selection, self.anchor))
        self.remaining -= selection.time_minutes
        uid = selection.uid
        self.same_day_used.add(uid)
        self.used.add(uid)
        self.manager.mark_used(selection.resource, selection.provider, self.day)

    def finish(self) -> StudyDay:
        return StudyDay(
            date=self.day,
            phase=self.phase,
            blocks=self.blocks,
            written_review_minutes=WRITTEN_REVIEW_MINUTES,
            total_resource_minutes=self.assigned_minutes,
        )


class PhasePlanner:
    """Builds one study day at a time; holds only plan-wide configuration between days."""

    def __init__(self, manager: ResourceManager) -> None:
        self.manager = manager
        self.topics: List[Topic] = []
        self.time_targets: TimeTargets = time_targets(0)

    def initialize(self, topics: Sequence[Topic], targets: TimeTargets) -> None:
        self.topics = list(topics)
        self.time_targets = targets

    def plan_day(
        self,
        day: date,
        phase: int,
        anchor: Topic,
        used: Set[str],
        phase_one_used: AbstractSet[str] = frozenset(),
    ) -> StudyDay:
        if phase == 1:
            return self.plan_phase_one_day(day, anchor, used)
        if phase == 2:
            return self.plan_phase_two_day(day, anchor, used, phase_one_used)
        if phase == 3:
            return self.plan_phase_three_day(day, anchor, used)
        raise RuntimeError(f"Invalid phase: {phase}")

    # -- shared steps -----------------------------------------------------

    def _select(
        self,
        assembly: _DayAssembly,
        slot_type: SlotType,
        candidates: Sequence[BaseResource],
        phase_one_used: AbstractSet[str] = frozenset(),
    ) -> List[ResourceSelection]:
        return select_for_slot(
            assembly.anchor,
            slot_type,
            assembly.phase,
            candidates,
            assembly.used,
            assembly.remaining,
            self.topics,
            assembly.same_day_used,
            phase_one_used,
        )

    def _fill_slot(
        self,
        assembly: _DayAssembly,
        block: str,
        slot_type: SlotType,
        candidates: Sequence[BaseResource],
        limit: int,
        phase_one_used: AbstractSet[str] = frozenset(),
    ) -> int:
        """Add up to ``limit`` of the best-ranked candidates that still fit."""
        added: Set[str] = set()
        for selection in self._select(assembly, slot_type, candidates, phase_one_used):
            if len(added) >= limit:
                break
            if selection.uid in added or not assembly.fits(selection):
                continue
            assembly.add(block, selection)
            added.add(selection.uid)
        return len(added)

    def _fill_to_target(
        self,
        assembly: _DayAssembly,
        sources: Sequence[FillSource],
        target: int,
        phase_one_used: AbstractSet[str] = frozenset(),
    ) -> None:
        """Greedily top the day up until ``target`` minutes are assigned.

        Unlike the recipe steps, the filler never repeats a resource that is
        already in the ledger or already on today's plan.
        """
        for block, slot_type, candidates in sources:
            if not assembly.below(target):
                break
            for selection in self._select(assembly, slot_type, candidates, phase_one_used):
                if not assembly.below(target):
                    break
                uid = selection.uid
                if uid in assembly.same_day_used or uid in assembly.used or not assembly.fits(selection):
                    continue
                assembly.add(block, selection)

    # -- recipes ----------------------------------------------------------

    def _kaplan_pool(self, anchor: Topic, used: AbstractSet[str]) -> List[BaseResource]:
        high_yield = self.manager.kaplan_resources(anchor.key, high_yield_only=True)
        if any(resource_uid(resource) not in used for resource in high_yield):
            return list(high_yield)
        return list(self.manager.kaplan_resources(anchor.key))

    def plan_phase_one_day(self, day: date, anchor: Topic, used: Set[str]) -> StudyDay:
        """Foundation: Kaplan section with matching Khan Academy content, one discrete set, two CARS passages."""
        assembly = _DayAssembly(self.manager, day, 1, anchor, used, PHASE_ONE_BLOCKS)

        videos = self.manager.khan_academy_resources(anchor.key, "Videos")
        articles = self.manager.khan_academy_resources(anchor.key, "Articles")
        discretes = self.manager.discrete_resources(anchor.key)

        self._fill_slot(assembly, "science_content", "kaplan", self._kaplan_pool(anchor, used), 1)
        self._fill_slot(assembly, "science_content", "ka_video", videos, 2)
        self._fill_slot(assembly, "science_content", "ka_article", articles, 1)
        self._fill_slot(assembly, "science_discretes", "discrete", discretes, 1)
        self._fill_slot(assembly, "cars", "cars_passage", self.manager.cars_passages(), 2)

        # CARS is not topped up here; the remaining passages are kept for phase 2.
        self._fill_to_target(
            assembly,
            [
                ("science_content", "ka_video", videos),
                ("science_content", "ka_article", articles),
                ("science_discretes", "discrete", discretes),
            ],
            self.time_targets.for_phase(assembly.phase),
        )
        return self._finish(assembly)

    def plan_phase_two_day(
        self,
        day: date,
        anchor: Topic,
        used: Set[str],
        phase_one_used: AbstractSet[str] = frozenset(),
    ) -> StudyDay:
        """Integration: science passages, a UWorld set, fresh discretes and exactly two CARS passages."""
        assembly = _DayAssembly(self.manager, day, 2, anchor, used, PHASE_TWO_BLOCKS)

        passages = self.manager.science_passages(anchor.key)
        discretes = self.manager.discrete_resources(anchor.key)

        self._fill_slot(assembly, "science_passages", "science_passage", passages, 2)
        self._fill_slot(assembly, "uworld_set", "uworld", self.manager.uworld_resources(anchor.key), 1)
        self._fill_slot(assembly, "extra_discretes", "discrete", discretes, 2, phase_one_used)
        self._fill_slot(assembly, "cars", "cars_passage", self.manager.cars_passages(), 2)

        self._fill_to_target(
            assembly,
            [
                ("science_passages", "science_passage", passages),
                ("extra_discretes", "discrete", discretes),
            ],
            self.time_targets.for_phase(assembly.phase),
            phase_one_used,
        )
        return self._finish(assembly)

    def plan_phase_three_day(self, day: date, anchor: Topic, used: Set[str]) -> StudyDay:
        """Exam simulation: AAMC question packs from distinct packs plus AAMC CARS passages."""
        assembly = _DayAssembly(self.manager, day, 3, anchor, used, PHASE_THREE_BLOCKS)
        target = self.time_targets.for_phase(assembly.phase)

        pack_selections = self._select(assembly, "aamc_set", self.manager.aamc_question_packs())
        packs_used: Set[str] = set()
        for _ in range(2):
            choice = self._next_pack(assembly, pack_selections, packs_used, prefer_new_pack=True)
            if choice is None:
                break
            assembly.add("aamc_sets", choice)
            packs_used.add(_pack_name(choice))

        passage_selections = self._select(assembly, "aamc_cars", self.manager.aamc_cars_passages())
        self._take_in_order(assembly, "aamc_cars_passages", passage_selections, 2)

        extra_packs = 0
        while (
            extra_packs < PHASE_THREE_EXTRA_PACKS
            and assembly.remaining >= PHASE_THREE_PACK_MIN_REMAINING
            and assembly.below(target)
        ):
            choice = self._next_pack(assembly, pack_selections, packs_used, prefer_new_pack=False)
            if choice is None:
                break
            assembly.add("aamc_sets", choice)
            packs_used.add(_pack_name(choice))
            extra_packs += 1

        if assembly.remaining >= PHASE_THREE_PASSAGE_MIN_REMAINING and assembly.below(target):
            self._take_in_order(assembly, "aamc_cars_passages", passage_selections, 1)

        return self._finish(assembly)

    @staticmethod
    def _next_pack(
        assembly: _DayAssembly,
        selections: Sequence[ResourceSelection],
        packs_used: AbstractSet[str],
        *,
        prefer_new_pack: bool,
    ) -> Optional[ResourceSelection]:
        available = [
            selection
            for selection in selections
            if selection.uid not in assembly.same_day_used and assembly.fits(selection)
        ]
        if prefer_new_pack:
            for selection in available:
                if _pack_name(selection) not in packs_used:
                    return selection
        return available[0] if available else None

    @staticmethod
    def _take_in_order(
        assembly: _DayAssembly,
        block: str,
        selections: Sequence[ResourceSelection],
        limit: int,
    ) -> int:
        added = 0
        for selection in selections:
            if added >= limit:
                break
            if selection.uid in assembly.same_day_used or not assembly.fits(selection):
                continue
            assembly.add(block, selection)
            added += 1
        return added

    @staticmethod
    def _finish(assembly: _DayAssembly) -> StudyDay:
        study_day = assembly.finish()
        logger.debug(
            "Planned phase %d day %s around %s: %d minutes",
            assembly.phase,
            assembly.day,
            assembly.anchor.key,
            study_day.total_resource_minutes,
        )
        return study_day


def _pack_name(selection: ResourceSelection) -> str:
    return getattr(selection.resource, "pack_name", None) or "Unknown"


__all__ = [
    "DAILY_RESOURCE_MINUTES",
    "PHASE_ONE_BLOCKS",
    "PHASE_THREE_BLOCKS",
    "PHASE_TWO_BLOCKS",
    "PhasePlanner",
    "WRITTEN_REVIEW_MINUTES",
    "to_resource_item",
]
