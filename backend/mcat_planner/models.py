"""Domain models shared by the catalog, the allocation engine and the API."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

WILDCARD = "x"

KhanAcademyType = Literal["Videos", "Articles", "Practice Passages", "Discrete Practice Questions"]
JackWestinType = Literal[
    "aamc_style_discrete",
    "fundamental_discrete",
    "aamc_style_passage",
    "fundamental_passage",
    "CARS Passage",
]
AAMCType = Literal["Question Pack", "Full Length"]


class Topic(BaseModel):
    """Concept-level node of the `category.subtopic.concept` content outline."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    content_category_number: str
    content_category_title: str = ""
    subtopic_number: int = 0
    subtopic_title: str = ""
    concept_number: int = 0
    concept_title: str = ""
    high_yield: bool = False
    key: str

    @property
    def category(self) -> str:
        return self.key.split(".")[0]


class BaseResource(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    stable_id: Optional[str] = None
    title: str
    key: str
    time_minutes: int = Field(ge=0)


class KhanAcademyResource(BaseResource):
    provider: Literal["Khan Academy"] = "Khan Academy"
    resource_type: KhanAcademyType


class KaplanResource(BaseResource):
    provider: Literal["Kaplan"] = "Kaplan"
    high_yield: bool = False


class JackWestinResource(BaseResource):
    provider: Literal["Jack Westin"] = "Jack Westin"
    resource_type: JackWestinType
    cars_resource: bool = False


class UWorldResource(BaseResource):
    provider: Literal["UWorld"] = "UWorld"
    question_count: int = 10


class AAMCResource(BaseResource):
    provider: Literal["AAMC"] = "AAMC"
    resource_type: AAMCType
    pack_name: Optional[str] = None


def resource_uid(resource: BaseResource) -> str:
    """Ledger identity: the stable id, else normalised title plus hierarchy key."""
    if resource.stable_id:
        return resource.stable_id
    return f"{resource.title.lower().strip()}+{resource.key}"


class ResourceItem(BaseModel):
    """Rendered summary of a resource assigned to a study day."""

    title: str
    topic_number: str
    topic_title: str
    provider: str
    time_minutes: int
    url: Optional[str] = None
    high_yield: Optional[bool] = None
    resource_type: Optional[str] = None


class BreakDay(BaseModel):
    date: date
    kind: Literal["break"] = "break"


class FullLengthDay(BaseModel):
    date: date
    kind: Literal["full_length"] = "full_length"
    provider: str = "AAMC"
    name: str


class StudyDay(BaseModel):
    date: date
    kind: Literal["study"] = "study"
    phase: int = Field(ge=1, le=3)
    blocks: Dict[str, List[ResourceItem]] = Field(default_factory=dict)
    written_review_minutes: int = 60
    total_resource_minutes: int = 0


ScheduleDay = Annotated[Union[BreakDay, FullLengthDay, StudyDay], Field(discriminator="kind")]


class ScheduleMetadata(BaseModel):
    total_days: int
    study_days: int
    break_days: int
    phase_1_days: int
    phase_2_days: int
    phase_3_days: int
    full_length_days: int


class ScheduleResponse(BaseModel):
    schedule: List[ScheduleDay] = Field(default_factory=list)
    metadata: ScheduleMetadata


class ScheduleRequest(BaseModel):
    """Pre-validated generation input; the API layer owns parsing and validation."""

    start_date: date
    test_date: date
    priorities: List[str]
    availability: List[str]
    fl_weekday: str


__all__ = [
    "AAMCResource",
    "BaseResource",
    "BreakDay",
    "FullLengthDay",
    "JackWestinResource",
    "KaplanResource",
    "KhanAcademyResource",
    "ResourceItem",
    "ScheduleDay",
    "ScheduleMetadata",
    "ScheduleRequest",
    "ScheduleResponse",
    "StudyDay",
    "Topic",
    "UWorldResource",
    "WILDCARD",
    "resource_uid",
]
