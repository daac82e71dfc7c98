"""Load a JSON catalog export into the topic and provider tables.

The export holds one list of row objects per sheet. Column names follow the
source spreadsheet headers, so a few of them (``content_category_#``,
``AAMC Q's``) are only reachable through field aliases.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .db.base import Base
from .db.models import (
    AAMCResourceModel,
    JackWestinResourceModel,
    KEY_LENGTH,
    KaplanResourceModel,
    KhanAcademyResourceModel,
    TopicModel,
    UWorldResourceModel,
)
from .repositories.catalog import CARS_PASSAGE_TYPE
from .telemetry import emit_event

logger = logging.getLogger(__name__)

SHEETS = ("topics", "khan_academy", "kaplan", "jack_westin", "uworld", "aamc")

DEFAULT_MINUTES = 30
KHAN_ACADEMY_DEFAULT_MINUTES = {
    "Videos": 12,
    "Articles": 10,
    "Practice Passages": 25,
    "Discrete Practice Questions": 30,
}
JACK_WESTIN_DEFAULT_MINUTES = {
    CARS_PASSAGE_TYPE: 25,
    "aamc_style_discrete": 30,
    "fundamental_discrete": 30,
}
AAMC_DEFAULT_MINUTES = {
    "Question Pack": 30,
    "Full Length": 300,
}
UWORLD_QUESTION_COUNT = 10


class CatalogLoadError(RuntimeError):
    """Raised when the catalog export cannot be read at all."""


def _yes(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"yes", "y", "true", "1"}


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class _CatalogRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: str = ""
    stable_id: Optional[str] = None
    time: Optional[int] = Field(default=None, ge=0)

    @field_validator("key", mode="before")
    @classmethod
    def _normalise_key(cls, value: Any) -> str:
        return _text(value)[:KEY_LENGTH]

    @field_validator("stable_id", mode="before")
    @classmethod
    def _blank_stable_id(cls, value: Any) -> Optional[str]:
        text = _text(value)
        return text or None

    @field_validator("time", mode="before")
    @classmethod
    def _blank_time(cls, value: Any) -> Any:
        if value in (None, "", 0):
            return None
        return value


class TopicRow(_CatalogRow):
    content_category_number: str = Field(
        validation_alias=AliasChoices("content_category_#", "content_category_number")
    )
    content_category_title: str = ""
    subtopic_number: int = 0
    subtopic_title: str = ""
    concept_number: int = 0
    concept_title: str = ""
    high_yield: bool = False

    @field_validator("high_yield", mode="before")
    @classmethod
    def _high_yield_flag(cls, value: Any) -> bool:
        return _yes(value)

    @field_validator("subtopic_number", "concept_number", mode="before")
    @classmethod
    def _wildcard_number(cls, value: Any) -> Any:
        if value in (None, "", "x"):
            return 0
        return value


class KhanAcademyRow(_CatalogRow):
    title: str
    resource_type: str

    def to_model(self) -> KhanAcademyResourceModel:
        return KhanAcademyResourceModel(
            stable_id=self.stable_id,
            title=self.title,
            resource_type=self.resource_type,
            key=self.key,
            time_minutes=self.time or KHAN_ACADEMY_DEFAULT_MINUTES.get(self.resource_type, DEFAULT_MINUTES),
        )


class KaplanRow(_CatalogRow):
    title: Optional[str] = None
    section_title: Optional[str] = None
    chapter_title: Optional[str] = None
    high_yield: bool = False

    @field_validator("high_yield", mode="before")
    @classmethod
    def _high_yield_flag(cls, value: Any) -> bool:
        return _yes(value)

    def display_title(self) -> str:
        if self.section_title or self.chapter_title:
            return f"{_text(self.section_title)} - {_text(self.chapter_title)}"
        return _text(self.title)

    def to_model(self) -> KaplanResourceModel:
        return KaplanResourceModel(
            stable_id=self.stable_id,
            title=self.display_title(),
            key=self.key,
            time_minutes=self.time or DEFAULT_MINUTES,
            high_yield=self.high_yield,
        )


class JackWestinRow(_CatalogRow):
    title: str
    resource_type: str
    cars_resource: Optional[bool] = None

    @field_validator("cars_resource", mode="before")
    @classmethod
    def _cars_flag(cls, value: Any) -> Optional[bool]:
        return None if value is None else _yes(value)

    def to_model(self) -> JackWestinResourceModel:
        cars = self.cars_resource if self.cars_resource is not None else self.resource_type == CARS_PASSAGE_TYPE
        return JackWestinResourceModel(
            stable_id=self.stable_id,
            title=self.title,
            resource_type=self.resource_type,
            key=self.key,
            time_minutes=self.time or JACK_WESTIN_DEFAULT_MINUTES.get(self.resource_type, DEFAULT_MINUTES),
            cars_resource=cars,
        )


class UWorldRow(_CatalogRow):
    title: Optional[str] = None
    topic: Optional[str] = None
    subtopic: Optional[str] = None
    question_count: int = UWORLD_QUESTION_COUNT

    def display_title(self) -> str:
        if self.topic or self.subtopic:
            return f"{_text(self.topic)} - {_text(self.subtopic)}"
        return _text(self.title)

    def to_model(self) -> UWorldResourceModel:
        return UWorldResourceModel(
            stable_id=self.stable_id,
            title=self.display_title(),
            key=self.key,
            time_minutes=self.time or DEFAULT_MINUTES,
            question_count=self.question_count,
        )


class AAMCRow(_CatalogRow):
    question_pack: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("AAMC Q's", "question_pack")
    )
    pack_name: Optional[str] = None
    full_length: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("AAMC FL's", "full_length")
    )
    time: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("time (for 20-35 question set or 2 passages if CARS)", "time"),
    )

    def to_model(self) -> Optional[AAMCResourceModel]:
        """Rows naming neither a question pack nor a full length carry no material."""
        if _text(self.question_pack):
            title, resource_type = _text(self.question_pack), "Question Pack"
            pack_name: Optional[str] = _text(self.pack_name) or title
        elif _text(self.full_length):
            title, resource_type, pack_name = _text(self.full_length), "Full Length", None
        else:
            return None
        return AAMCResourceModel(
            stable_id=self.stable_id,
            title=title,
            resource_type=resource_type,
            key=self.key,
            time_minutes=self.time or AAMC_DEFAULT_MINUTES[resource_type],
            pack_name=pack_name,
        )


def _topic_model(row: TopicRow) -> TopicModel:
    return TopicModel(
        content_category_number=row.content_category_number,
        content_category_title=row.content_category_title,
        subtopic_number=row.subtopic_number,
        subtopic_title=row.subtopic_title,
        concept_number=row.concept_number,
        concept_title=row.concept_title,
        high_yield=row.high_yield,
        key=row.key,
    )


RowSpec = Tuple[Type[_CatalogRow], Type[Base], Callable[[Any], Optional[Base]]]

_SHEET_SPECS: Dict[str, RowSpec] = {
    "topics": (TopicRow, TopicModel, _topic_model),
    "khan_academy": (KhanAcademyRow, KhanAcademyResourceModel, lambda row: row.to_model()),
    "kaplan": (KaplanRow, KaplanResourceModel, lambda row: row.to_model()),
    "jack_westin": (JackWestinRow, JackWestinResourceModel, lambda row: row.to_model()),
    "uworld": (UWorldRow, UWorldResourceModel, lambda row: row.to_model()),
    "aamc": (AAMCRow, AAMCResourceModel, lambda row: row.to_model()),
}


def _load_sheet(session: Session, sheet: str, rows: Iterable[Mapping[str, Any]]) -> int:
    row_type, model_type, build = _SHEET_SPECS[sheet]
    session.execute(delete(model_type))
    loaded = 0
    for index, entry in enumerate(rows):
        try:
            row = row_type.model_validate(entry)
        except ValidationError as exc:
            logger.warning("Skipping invalid %s row %d: %s", sheet, index, exc)
            continue
        if not row.key:
            logger.debug("Skipping %s row %d without a key", sheet, index)
            continue
        model = build(row)
        if model is None:
            continue
        session.add(model)
        loaded += 1
    session.flush()
    logger.info("Loaded %d %s rows", loaded, sheet)
    return loaded


def load_catalog(session: Session, payload: Mapping[str, Any]) -> Dict[str, int]:
    """Replace every sheet present in ``payload``; sheets that are absent keep their rows."""
    counts: Dict[str, int] = {}
    for sheet in SHEETS:
        rows = payload.get(sheet)
        if rows is None:
            logger.info("Catalog export has no %s sheet; keeping existing rows", sheet)
            continue
        if not isinstance(rows, list):
            logger.warning("Catalog sheet %s is not a list; skipping", sheet)
            continue
        counts[sheet] = _load_sheet(session, sheet, rows)
    emit_event("catalog_loaded", **counts)
    return counts


def read_catalog_file(path: Union[str, Path]) -> Dict[str, List[Dict[str, Any]]]:
    source = Path(path)
    try:
        with source.open(encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(f"Unable to read catalog export {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise CatalogLoadError(f"Catalog export {source} must be a JSON object keyed by sheet name")
    return payload


def load_catalog_file(session: Session, path: Union[str, Path]) -> Dict[str, int]:
    return load_catalog(session, read_catalog_file(path))


__all__ = [
    "AAMCRow",
    "CatalogLoadError",
    "JackWestinRow",
    "KaplanRow",
    "KhanAcademyRow",
    "SHEETS",
    "TopicRow",
    "UWorldRow",
    "load_catalog",
    "load_catalog_file",
    "read_catalog_file",
]
