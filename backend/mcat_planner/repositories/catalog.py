"""Read-side repository for topics and provider resources."""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import case, or_, select
from sqlalchemy.orm import Session

from ..db.models import (
    AAMCResourceModel,
    JackWestinResourceModel,
    KaplanResourceModel,
    KhanAcademyResourceModel,
    TopicModel,
    UWorldResourceModel,
)
from ..models import (
    WILDCARD,
    AAMCResource,
    JackWestinResource,
    KaplanResource,
    KhanAcademyResource,
    Topic,
    UWorldResource,
)
from ..topic_keys import matching_keys

JW_DISCRETE_TYPES = ("aamc_style_discrete", "fundamental_discrete")
JW_PASSAGE_TYPES = ("aamc_style_passage", "fundamental_passage")
CARS_PASSAGE_TYPE = "CARS Passage"

# Spreadsheet annotation rows that were ingested alongside real AAMC packs.
_AAMC_ANNOTATION_MARKERS = ("This color", "developer", "note")
_AAMC_SECTION_HEADER = "Critical Analysis and Reasoning Skills"


def _is_annotation_row(title: str) -> bool:
    if title.strip() == _AAMC_SECTION_HEADER:
        return True
    return any(marker in title for marker in _AAMC_ANNOTATION_MARKERS)


def _key_level_rank(key_column):  # type: ignore[no-untyped-def]
    wildcard_subtopic = f"%.{WILDCARD}.{WILDCARD}"
    wildcard_concept = f"%.{WILDCARD}"
    return case(
        (key_column.like(wildcard_subtopic), 2),
        (key_column.like(wildcard_concept), 1),
        else_=0,
    )


class CatalogRepository:
    """Topic-keyed lookups against the provider tables.

    Every topic-scoped getter queries the exact key together with its subtopic
    and category wildcard fallbacks in a single union; ranking decides which
    level wins.
    """

    def topics_by_priority(self, session: Session, priorities: Sequence[str]) -> List[Topic]:
        categories = [priority.strip() for priority in priorities if priority and priority.strip()]
        if not categories:
            return []
        stmt = (
            select(TopicModel)
            .where(
                or_(
                    TopicModel.content_category_number.in_(categories),
                    *[TopicModel.key.like(f"{category}.%") for category in categories],
                )
            )
            .order_by(
                _key_level_rank(TopicModel.key),
                TopicModel.content_category_number,
                TopicModel.subtopic_number,
                TopicModel.concept_number,
                TopicModel.id,
            )
        )
        return [Topic.model_validate(row) for row in session.execute(stmt).scalars()]

    def khan_academy(
        self, session: Session, key: str, resource_type: Optional[str] = None
    ) -> List[KhanAcademyResource]:
        stmt = select(KhanAcademyResourceModel).where(KhanAcademyResourceModel.key.in_(matching_keys(key)))
        if resource_type:
            stmt = stmt.where(KhanAcademyResourceModel.resource_type == resource_type)
        stmt = stmt.order_by(KhanAcademyResourceModel.title, KhanAcademyResourceModel.id)
        return [KhanAcademyResource.model_validate(row) for row in session.execute(stmt).scalars()]

    def kaplan(self, session: Session, key: str, *, high_yield_only: bool = False) -> List[KaplanResource]:
        stmt = select(KaplanResourceModel).where(KaplanResourceModel.key.in_(matching_keys(key)))
        if high_yield_only:
            stmt = stmt.where(KaplanResourceModel.high_yield.is_(True))
        stmt = stmt.order_by(KaplanResourceModel.title, KaplanResourceModel.id)
        return [KaplanResource.model_validate(row) for row in session.execute(stmt).scalars()]

    def jack_westin(
        self, session: Session, key: str, resource_types: Optional[Sequence[str]] = None
    ) -> List[JackWestinResource]:
        stmt = select(JackWestinResourceModel).where(JackWestinResourceModel.key.in_(matching_keys(key)))
        if resource_types:
            stmt = stmt.where(JackWestinResourceModel.resource_type.in_(list(resource_types)))
        stmt = stmt.order_by(JackWestinResourceModel.title, JackWestinResourceModel.id)
        return [JackWestinResource.model_validate(row) for row in session.execute(stmt).scalars()]

    def science_passages(self, session: Session, key: str) -> List[JackWestinResource]:
        passages = self.jack_westin(session, key, JW_PASSAGE_TYPES)
        return [
            passage
            for passage in passages
            if not passage.cars_resource and "cars" not in passage.title.lower()
        ]

    def cars_passages(self, session: Session) -> List[JackWestinResource]:
        """Reading passages that are not scoped to any topic."""
        stmt = (
            select(JackWestinResourceModel)
            .where(
                or_(
                    JackWestinResourceModel.cars_resource.is_(True),
                    JackWestinResourceModel.resource_type == CARS_PASSAGE_TYPE,
                )
            )
            .order_by(JackWestinResourceModel.title, JackWestinResourceModel.id)
        )
        return [JackWestinResource.model_validate(row) for row in session.execute(stmt).scalars()]

    def uworld(self, session: Session, key: str) -> List[UWorldResource]:
        stmt = (
            select(UWorldResourceModel)
            .where(UWorldResourceModel.key.in_(matching_keys(key)))
            .order_by(UWorldResourceModel.title, UWorldResourceModel.id)
        )
        return [UWorldResource.model_validate(row) for row in session.execute(stmt).scalars()]

    def aamc(self, session: Session, resource_type: Optional[str] = None) -> List[AAMCResource]:
        """AAMC material is general practice, so it is fetched regardless of topic."""
        stmt = select(AAMCResourceModel)
        if resource_type:
            stmt = stmt.where(AAMCResourceModel.resource_type == resource_type)
        stmt = stmt.order_by(AAMCResourceModel.title, AAMCResourceModel.id)
        return [AAMCResource.model_validate(row) for row in session.execute(stmt).scalars()]

    def aamc_question_packs(self, session: Session) -> List[AAMCResource]:
        return [
            resource
            for resource in self.aamc(session, "Question Pack")
            if not _is_annotation_row(resource.title) and "CARS" not in resource.title
        ]

    def aamc_cars_passages(self, session: Session) -> List[AAMCResource]:
        return [
            resource
            for resource in self.aamc(session, "Question Pack")
            if not _is_annotation_row(resource.title) and "CARS" in resource.title
        ]


catalog = CatalogRepository()

__all__ = [
    "CARS_PASSAGE_TYPE",
    "CatalogRepository",
    "JW_DISCRETE_TYPES",
    "JW_PASSAGE_TYPES",
    "catalog",
]
