"""ORM models for the resource catalog and the per-schedule usage ledger."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

KEY_LENGTH = 20
TITLE_LENGTH = 1000


class TopicModel(Base):
    __tablename__ = "topics"
    __table_args__ = (Index("ix_topics_key", "key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_category_number: Mapped[str] = mapped_column(String(10), nullable=False)
    content_category_title: Mapped[str] = mapped_column(String(TITLE_LENGTH), default="", nullable=False)
    subtopic_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    subtopic_title: Mapped[str] = mapped_column(String(TITLE_LENGTH), default="", nullable=False)
    concept_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    concept_title: Mapped[str] = mapped_column(String(TITLE_LENGTH), default="", nullable=False)
    high_yield: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    key: Mapped[str] = mapped_column(String(KEY_LENGTH), nullable=False)


class KhanAcademyResourceModel(Base):
    __tablename__ = "khan_academy_resources"
    __table_args__ = (Index("ix_khan_academy_resources_key", "key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stable_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(TITLE_LENGTH), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(64), nullable=False)
    key: Mapped[str] = mapped_column(String(KEY_LENGTH), nullable=False)
    time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)


class KaplanResourceModel(Base):
    __tablename__ = "kaplan_resources"
    __table_args__ = (Index("ix_kaplan_resources_key", "key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stable_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(TITLE_LENGTH), nullable=False)
    key: Mapped[str] = mapped_column(String(KEY_LENGTH), nullable=False)
    time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    high_yield: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class JackWestinResourceModel(Base):
    __tablename__ = "jack_westin_resources"
    __table_args__ = (
        Index("ix_jack_westin_resources_key", "key"),
        Index("ix_jack_westin_resources_cars", "cars_resource"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stable_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(TITLE_LENGTH), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(64), nullable=False)
    key: Mapped[str] = mapped_column(String(KEY_LENGTH), nullable=False)
    time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    cars_resource: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class UWorldResourceModel(Base):
    __tablename__ = "uworld_resources"
    __table_args__ = (Index("ix_uworld_resources_key", "key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stable_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(TITLE_LENGTH), nullable=False)
    key: Mapped[str] = mapped_column(String(KEY_LENGTH), nullable=False)
    time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    question_count: Mapped[int] = mapped_column(Integer, default=10, nullable=False)


class AAMCResourceModel(Base):
    __tablename__ = "aamc_resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stable_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(TITLE_LENGTH), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(64), nullable=False)
    key: Mapped[str] = mapped_column(String(KEY_LENGTH), nullable=False)
    time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    pack_name: Mapped[Optional[str]] = mapped_column(String(TITLE_LENGTH), nullable=True)


class UsedResourceModel(TimestampMixin, Base):
    __tablename__ = "used_resources"
    __table_args__ = (
        UniqueConstraint("schedule_id", "resource_uid", name="uq_used_resources_schedule_uid"),
        Index("ix_used_resources_schedule", "schedule_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schedule_id: Mapped[str] = mapped_column(String(64), nullable=False)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    resource_id: Mapped[int] = mapped_column(Integer, nullable=False)
    resource_uid: Mapped[str] = mapped_column(String(TITLE_LENGTH + KEY_LENGTH + 1), nullable=False)
    used_date: Mapped[date] = mapped_column(Date, nullable=False)


__all__ = [
    "AAMCResourceModel",
    "JackWestinResourceModel",
    "KaplanResourceModel",
    "KhanAcademyResourceModel",
    "TopicModel",
    "UWorldResourceModel",
    "UsedResourceModel",
]
