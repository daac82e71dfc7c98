"""Slot eligibility filtering and multi-criteria ranking of candidate resources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Callable, Dict, Iterable, List, Literal, Sequence, Tuple

from .models import BaseResource, Topic, resource_uid
from .topic_keys import matching_keys, numeric_order, specificity

logger = logging.getLogger(__name__)

SlotType = Literal[
    "kaplan",
    "ka_video",
    "ka_article",
    "discrete",
    "science_passage",
    "cars_passage",
    "uworld",
    "aamc_set",
    "aamc_cars",
]

# UWorld's pool is small relative to demand and AAMC material is general
# practice, so these slots may repeat across days.
REPEATABLE_SLOTS: AbstractSet[str] = frozenset({"uworld", "aamc_set", "aamc_cars"})

PROVIDER_RANKS: Dict[str, int] = {
    "Khan Academy": 1,
    "Kaplan": 2,
    "Jack Westin": 3,
    "UWorld": 4,
    "AAMC": 5,
}
UNKNOWN_PROVIDER_RANK = 999


@dataclass(frozen=True)
class TimeFit:
    target: int
    band_min: int
    band_max: int

    def score(self, minutes: int) -> int:
        """0 inside the ideal band, otherwise the distance from the target."""
        if self.band_min <= minutes <= self.band_max:
            return 0
        return abs(minutes - self.target)


TIME_FITS: Dict[str, TimeFit] = {
    "KA video": TimeFit(target=15, band_min=10, band_max=15),
    "KA article": TimeFit(target=10, band_min=8, band_max=12),
    "Kaplan": TimeFit(target=30, band_min=20, band_max=30),
    "Discrete": TimeFit(target=30, band_min=25, band_max=35),
    "Passage": TimeFit(target=25, band_min=20, band_max=25),
    "UWorld 10Q": TimeFit(target=30, band_min=25, band_max=35),
    "AAMC": TimeFit(target=30, band_min=25, band_max=35),
}

_KA_TIME_FIT_KINDS = {
    "Videos": "KA video",
    "Articles": "KA article",
    "Practice Passages": "Passage",
    "Discrete Practice Questions": "Discrete",
}
_JW_DISCRETE_TYPES = {"aamc_style_discrete", "fundamental_discrete"}
_JW_PASSAGE_TYPES = {"aamc_style_passage", "fundamental_passage"}


@dataclass(frozen=True)
class ResourceSelection:
    """A ranked candidate for a slot; lives only for the duration of one selection."""

    resource: BaseResource
    provider: str
    time_minutes: int
    specificity: int

    @property
    def uid(self) -> str:
        return resource_uid(self.resource)


def provider_of(resource: BaseResource) -> str:
    return getattr(resource, "provider", "Unknown")


def time_fit_kind(resource: BaseResource) -> str:
    provider = provider_of(resource)
    resource_type = getattr(resource, "resource_type", None)
    if provider == "Khan Academy":
        return _KA_TIME_FIT_KINDS.get(resource_type or "", "AAMC")
    if provider == "Jack Westin":
        return "Discrete" if resource_type in _JW_DISCRETE_TYPES else "Passage"
    if provider == "Kaplan":
        return "Kaplan"
    if provider == "UWorld":
        return "UWorld 10Q"
    return "AAMC"


def time_fit_score(resource: BaseResource) -> int:
    return TIME_FITS.get(time_fit_kind(resource), TIME_FITS["AAMC"]).score(resource.time_minutes)


def matches_slot(resource: BaseResource, slot_type: SlotType) -> bool:
    provider = provider_of(resource)
    resource_type = getattr(resource, "resource_type", None)
    if provider == "Khan Academy":
        if slot_type == "ka_video":
            return resource_type == "Videos"
        if slot_type == "ka_article":
            return resource_type == "Articles"
        if slot_type == "discrete":
            return resource_type == "Discrete Practice Questions"
        return False
    if provider == "Jack Westin":
        if slot_type == "discrete":
            return resource_type in _JW_DISCRETE_TYPES
        if slot_type == "science_passage":
            return resource_type in _JW_PASSAGE_TYPES
        if slot_type == "cars_passage":
            return resource_type == "CARS Passage" or bool(getattr(resource, "cars_resource", False))
        return False
    if provider == "Kaplan":
        return slot_type == "kaplan"
    if provider == "UWorld":
        return slot_type == "uworld"
    if provider == "AAMC":
        return slot_type in {"aamc_set", "aamc_cars"} and resource_type == "Question Pack"
    return False


def is_high_yield_linked(resource: BaseResource, high_yield_keys: AbstractSet[str]) -> bool:
    """True when the resource key or one of its wildcard fallbacks is a high-yield topic key."""
    return any(key in high_yield_keys for key in matching_keys(resource.key))


def narrow(pool: List[BaseResource], predicate: Callable[[BaseResource], bool]) -> List[BaseResource]:
    """Apply ``predicate``; keep the larger pool when nothing would survive."""
    narrowed = [resource for resource in pool if predicate(resource)]
    return narrowed if narrowed else pool


def selection_sort_key(selection: ResourceSelection) -> Tuple[int, int, int, int, str, str]:
    resource = selection.resource
    return (
        selection.specificity,
        numeric_order(resource.key),
        time_fit_score(resource),
        PROVIDER_RANKS.get(selection.provider, UNKNOWN_PROVIDER_RANK),
        resource.title,
        resource.stable_id or "",
    )


def _prefer_high_yield(pool: List[BaseResource], topics: Iterable[Topic]) -> List[BaseResource]:
    high_yield_keys = {topic.key for topic in topics if topic.high_yield}
    linked = [resource for resource in pool if is_high_yield_linked(resource, high_yield_keys)]
    rest = [resource for resource in pool if not is_high_yield_linked(resource, high_yield_keys)]
    return linked + rest


def select_for_slot(
    anchor: Topic,
    slot_type: SlotType,
    phase: int,
    candidates: Sequence[BaseResource],
    used: AbstractSet[str],
    time_budget: int,
    topics: Sequence[Topic],
    same_day_used: AbstractSet[str] = frozenset(),
    phase_one_used: AbstractSet[str] = frozenset(),
) -> List[ResourceSelection]:
    """Rank the eligible candidates for one slot, best first.

    Only the slot-type match and the time budget are hard filters. The
    remaining stages narrow the pool in order and are skipped whenever they
    would leave nothing, so a slot with any candidate is never left empty.
    """
    pool = [resource for resource in candidates if matches_slot(resource, slot_type)]
    if not pool:
        return []

    if phase <= 2:
        pool = _prefer_high_yield(pool, topics)

    stages: List[Tuple[str, Callable[[BaseResource], bool]]] = []
    if slot_type not in REPEATABLE_SLOTS:
        stages.append(("never_repeat", lambda resource: resource_uid(resource) not in used))
    stages.append(("same_day", lambda resource: resource_uid(resource) not in same_day_used))
    if phase == 2 and slot_type == "discrete":
        stages.append(("cross_phase", lambda resource: resource_uid(resource) not in phase_one_used))

    for name, predicate in stages:
        narrowed = narrow(pool, predicate)
        if narrowed is pool:
            logger.debug("Relaxed %s for %s slot; keeping %d candidates", name, slot_type, len(pool))
        pool = narrowed

    selections = [
        ResourceSelection(
            resource=resource,
            provider=provider_of(resource),
            time_minutes=resource.time_minutes,
            specificity=specificity(anchor.key, resource.key),
        )
        for resource in pool
        if resource.time_minutes <= time_budget
    ]
    selections.sort(key=selection_sort_key)
    logger.debug(
        "Slot %s for %s (phase %d): %d ranked of %d candidates",
        slot_type,
        anchor.key,
        phase,
        len(selections),
        len(candidates),
    )
    return selections


__all__ = [
    "PROVIDER_RANKS",
    "REPEATABLE_SLOTS",
    "ResourceSelection",
    "SlotType",
    "TIME_FITS",
    "TimeFit",
    "is_high_yield_linked",
    "matches_slot",
    "narrow",
    "provider_of",
    "select_for_slot",
    "selection_sort_key",
    "time_fit_kind",
    "time_fit_score",
]
