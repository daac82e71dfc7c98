from __future__ import annotations

from typing import Iterator, Optional

import pytest
from sqlalchemy.orm import Session, sessionmaker

from mcat_planner.config import Settings
from mcat_planner.db.models import (
    AAMCResourceModel,
    JackWestinResourceModel,
    KaplanResourceModel,
    KhanAcademyResourceModel,
    TopicModel,
    UWorldResourceModel,
)
from mcat_planner.db.session import build_engine, create_schema
from mcat_planner.telemetry import clear_listeners


class CatalogSeeder:
    """Inserts catalog rows with sensible defaults so tests only spell out what matters."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _add(self, model):  # type: ignore[no-untyped-def]
        self.session.add(model)
        self.session.flush()
        return model

    def topic(self, key: str, *, high_yield: bool = True, concept_title: Optional[str] = None) -> TopicModel:
        category, subtopic, concept = key.split(".")
        return self._add(
            TopicModel(
                content_category_number=category,
                content_category_title=f"Category {category}",
                subtopic_number=0 if subtopic == "x" else int(subtopic),
                subtopic_title=f"Subtopic {subtopic}",
                concept_number=0 if concept == "x" else int(concept),
                concept_title=concept_title or f"Concept {key}",
                high_yield=high_yield,
                key=key,
            )
        )

    def kaplan(
        self,
        key: str,
        title: str,
        *,
        minutes: int = 30,
        high_yield: bool = True,
        stable_id: Optional[str] = None,
    ) -> KaplanResourceModel:
        return self._add(
            KaplanResourceModel(
                stable_id=stable_id, title=title, key=key, time_minutes=minutes, high_yield=high_yield
            )
        )

    def khan(self, key: str, title: str, resource_type: str = "Videos", *, minutes: int = 12) -> KhanAcademyResourceModel:
        return self._add(
            KhanAcademyResourceModel(title=title, resource_type=resource_type, key=key, time_minutes=minutes)
        )

    def jack_westin(
        self,
        key: str,
        title: str,
        resource_type: str = "aamc_style_passage",
        *,
        minutes: int = 25,
        cars: bool = False,
    ) -> JackWestinResourceModel:
        return self._add(
            JackWestinResourceModel(
                title=title, resource_type=resource_type, key=key, time_minutes=minutes, cars_resource=cars
            )
        )

    def cars_passage(self, title: str, *, minutes: int = 25) -> JackWestinResourceModel:
        return self.jack_westin("CARS.x.x", title, "CARS Passage", minutes=minutes, cars=True)

    def uworld(self, key: str, title: str, *, minutes: int = 30) -> UWorldResourceModel:
        return self._add(UWorldResourceModel(title=title, key=key, time_minutes=minutes, question_count=10))

    def aamc(
        self,
        title: str,
        *,
        minutes: int = 30,
        resource_type: str = "Question Pack",
        pack_name: Optional[str] = None,
        key: str = "AAMC.x.x",
    ) -> AAMCResourceModel:
        return self._add(
            AAMCResourceModel(
                title=title,
                resource_type=resource_type,
                key=key,
                time_minutes=minutes,
                pack_name=pack_name if pack_name is not None else title,
            )
        )


@pytest.fixture
def engine():  # type: ignore[no-untyped-def]
    engine = build_engine("sqlite://", Settings())
    create_schema(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine) -> Iterator[Session]:  # type: ignore[no-untyped-def]
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(session: Session) -> CatalogSeeder:
    return CatalogSeeder(session)


@pytest.fixture(autouse=True)
def _reset_telemetry_listeners() -> Iterator[None]:
    yield
    clear_listeners()
