"""HTTP surface for study schedule generation."""

from __future__ import annotations

import logging
from datetime import date
from time import perf_counter
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from starlette.responses import JSONResponse

from .config import Settings, get_settings
from .db.session import get_session_dependency
from .models import ScheduleRequest, ScheduleResponse
from .schedule_generator import ScheduleGenerator, new_schedule_id
from .study_calendar import FullLengthPlacementError

router = APIRouter(tags=["schedule"])
logger = logging.getLogger(__name__)

REQUIRED_PARAMETERS = ["start_date", "test_date", "priorities", "availability", "fl_weekday"]
VALID_DAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def _split(value: str) -> List[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def _parse_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


@router.get("/full-plan", response_model=ScheduleResponse)
def full_plan(
    start_date: Optional[str] = Query(None, description="First study day, YYYY-MM-DD", examples=["2025-10-06"]),
    test_date: Optional[str] = Query(None, description="Exam date, YYYY-MM-DD", examples=["2025-12-15"]),
    priorities: Optional[str] = Query(None, description="Content categories in priority order", examples=["1A,1B,3A"]),
    availability: Optional[str] = Query(None, description="Study weekdays", examples=["Mon,Tue,Thu,Fri,Sat"]),
    fl_weekday: Optional[str] = Query(None, description="Weekday for full-length exams", examples=["Sat"]),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_settings),
) -> Any:
    if not all([start_date, test_date, priorities, availability, fl_weekday]):
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required parameters", required=REQUIRED_PARAMETERS)

    start = _parse_date(start_date)
    exam = _parse_date(test_date)
    if start is None or exam is None:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid date format. Use YYYY-MM-DD format")
    if start >= exam:
        return _error(status.HTTP_400_BAD_REQUEST, "Start date must be before test date")

    weekdays = _split(availability)
    invalid_days = [day for day in weekdays if day not in VALID_DAYS]
    if invalid_days:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid availability days",
            invalid_days=invalid_days,
            valid_days=VALID_DAYS,
        )
    if fl_weekday.strip() not in VALID_DAYS:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid full length weekday", valid_days=VALID_DAYS)

    request = ScheduleRequest(
        start_date=start,
        test_date=exam,
        priorities=_split(priorities),
        availability=weekdays,
        fl_weekday=fl_weekday.strip(),
    )
    schedule_id = new_schedule_id()
    started = perf_counter()
    try:
        generator = ScheduleGenerator(session, schedule_id, full_length_count=settings.full_length_count)
        response = generator.generate(request)
    except FullLengthPlacementError as exc:
        session.rollback()
        logger.warning("Full-length placement failed for %s: %s", schedule_id, exc)
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "Unable to place full-length exams", message=str(exc))
    except Exception as exc:  # noqa: BLE001
        session.rollback()
        logger.exception("Error generating schedule %s", schedule_id)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", message=str(exc))

    logger.info(
        "Generated %s in %.1f ms (%d days)",
        schedule_id,
        (perf_counter() - started) * 1000,
        response.metadata.total_days,
    )
    return response


__all__ = ["REQUIRED_PARAMETERS", "VALID_DAYS", "router"]
