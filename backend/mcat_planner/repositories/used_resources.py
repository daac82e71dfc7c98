"""Per-schedule ledger of resources that have already been assigned."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Set

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..db.models import UsedResourceModel
from ..models import BaseResource, resource_uid

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UsedResourceRepository:
    """Ledger rows are keyed by (schedule_id, resource_uid); writes are idempotent."""

    def get(self, session: Session, schedule_id: str) -> Set[str]:
        stmt = select(UsedResourceModel.resource_uid).where(UsedResourceModel.schedule_id == schedule_id)
        return set(session.execute(stmt).scalars())

    def mark_used(
        self,
        session: Session,
        schedule_id: str,
        resource: BaseResource,
        provider: str,
        used_date: date,
    ) -> bool:
        """Record ``resource`` for ``schedule_id``; returns False when it was already recorded."""
        row: Dict[str, Any] = {
            "schedule_id": schedule_id,
            "provider": provider,
            "resource_id": resource.id,
            "resource_uid": resource_uid(resource),
            "used_date": used_date,
        }
        insert = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(UsedResourceModel).values(**row).on_conflict_do_nothing(
                index_elements=["schedule_id", "resource_uid"]
            )
            inserted = session.execute(stmt).rowcount > 0
        else:
            existing = session.execute(
                select(UsedResourceModel.id).where(
                    UsedResourceModel.schedule_id == schedule_id,
                    UsedResourceModel.resource_uid == row["resource_uid"],
                )
            ).first()
            inserted = existing is None
            if inserted:
                session.add(UsedResourceModel(**row))
                session.flush()

        if not inserted:
            logger.debug("Ledger already holds %s for %s", row["resource_uid"], schedule_id)
        return inserted


used_resources = UsedResourceRepository()

__all__ = ["UsedResourceRepository", "used_resources"]
