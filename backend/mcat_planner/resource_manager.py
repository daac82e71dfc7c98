"""Catalog access bound to one database session and one schedule identifier."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, Set

from sqlalchemy.orm import Session

from .models import (
    AAMCResource,
    BaseResource,
    JackWestinResource,
    KaplanResource,
    KhanAcademyResource,
    Topic,
    UWorldResource,
)
from .repositories.catalog import JW_DISCRETE_TYPES, CatalogRepository, catalog
from .repositories.used_resources import UsedResourceRepository, used_resources


class ResourceManager:
    """Read/write boundary between the allocation engine and the resource store.

    The ledger is injected per run so concurrent schedules stay isolated by
    ``schedule_id``.
    """

    def __init__(
        self,
        session: Session,
        schedule_id: str,
        *,
        catalog_repository: Optional[CatalogRepository] = None,
        ledger: Optional[UsedResourceRepository] = None,
    ) -> None:
        self.session = session
        self.schedule_id = schedule_id
        self._catalog = catalog_repository or catalog
        self._ledger = ledger or used_resources

    def used_resources(self) -> Set[str]:
        return self._ledger.get(self.session, self.schedule_id)

    def mark_used(self, resource: BaseResource, provider: str, used_date: date) -> bool:
        return self._ledger.mark_used(self.session, self.schedule_id, resource, provider, used_date)

    def topics_by_priority(self, priorities: Sequence[str]) -> List[Topic]:
        return self._catalog.topics_by_priority(self.session, priorities)

    def kaplan_resources(self, key: str, *, high_yield_only: bool = False) -> List[KaplanResource]:
        return self._catalog.kaplan(self.session, key, high_yield_only=high_yield_only)

    def khan_academy_resources(self, key: str, resource_type: Optional[str] = None) -> List[KhanAcademyResource]:
        return self._catalog.khan_academy(self.session, key, resource_type)

    def jack_westin_resources(
        self, key: str, resource_types: Optional[Sequence[str]] = None
    ) -> List[JackWestinResource]:
        return self._catalog.jack_westin(self.session, key, resource_types)

    def discrete_resources(self, key: str) -> List[BaseResource]:
        """Khan Academy and Jack Westin discrete sets pooled for one slot."""
        pooled: List[BaseResource] = []
        pooled.extend(self.khan_academy_resources(key, "Discrete Practice Questions"))
        pooled.extend(self.jack_westin_resources(key, JW_DISCRETE_TYPES))
        return pooled

    def science_passages(self, key: str) -> List[JackWestinResource]:
        return self._catalog.science_passages(self.session, key)

    def cars_passages(self) -> List[JackWestinResource]:
        return self._catalog.cars_passages(self.session)

    def uworld_resources(self, key: str) -> List[UWorldResource]:
        return self._catalog.uworld(self.session, key)

    def aamc_question_packs(self) -> List[AAMCResource]:
        return self._catalog.aamc_question_packs(self.session)

    def aamc_cars_passages(self) -> List[AAMCResource]:
        return self._catalog.aamc_cars_passages(self.session)


__all__ = ["ResourceManager"]
