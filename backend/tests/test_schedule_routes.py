from __future__ import annotations

import os
from typing import Dict, Iterator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("MCAT_PLANNER_DATABASE_URL", "sqlite://")

from mcat_planner.db.session import get_session_dependency  # noqa: E402
from mcat_planner.main import app  # noqa: E402
from mcat_planner.schedule_routes import REQUIRED_PARAMETERS, VALID_DAYS  # noqa: E402

VALID_QUERY: Dict[str, str] = {
    "start_date": "2025-10-06",
    "test_date": "2025-12-15",
    "priorities": "1A,1B",
    "availability": "Mon,Tue,Thu,Fri,Sat",
    "fl_weekday": "Sat",
}


@pytest.fixture
def client(session) -> Iterator[TestClient]:  # type: ignore[no-untyped-def]
    app.dependency_overrides[get_session_dependency] = lambda: session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_session_dependency, None)


def _query(**overrides: str) -> Dict[str, str]:
    query = dict(VALID_QUERY)
    query.update(overrides)
    return query


def test_full_plan_returns_tagged_days(client, seed) -> None:
    seed.topic("1A.1.1")
    seed.topic("1B.1.1")
    seed.kaplan("1A.1.1", "Amino Acids - Structure")
    seed.cars_passage("CARS Passage 1")
    seed.cars_passage("CARS Passage 2")
    seed.aamc("Biology Question Pack Vol 1")

    response = client.get("/full-plan", params=VALID_QUERY)

    assert response.status_code == 200
    payload = response.json()
    assert payload["metadata"]["total_days"] == 70
    assert payload["metadata"]["full_length_days"] == 6
    first = payload["schedule"][0]
    assert first["date"] == "2025-10-06"
    assert first["kind"] == "study"
    assert first["phase"] == 1
    assert first["written_review_minutes"] == 60
    assert first["blocks"]["science_content"][0]["title"] == "Amino Acids - Structure"
    kinds = {day["kind"] for day in payload["schedule"]}
    assert kinds == {"study", "break", "full_length"}
    full_length = next(day for day in payload["schedule"] if day["kind"] == "full_length")
    assert full_length == {"date": "2025-10-11", "kind": "full_length", "provider": "AAMC", "name": "FL #1"}


def test_missing_parameters_are_listed(client) -> None:
    response = client.get("/full-plan", params={"start_date": "2025-10-06"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameters", "required": REQUIRED_PARAMETERS}


def test_blank_parameter_counts_as_missing(client) -> None:
    response = client.get("/full-plan", params=_query(priorities=""))
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required parameters"


@pytest.mark.parametrize("field, value", [("start_date", "10/06/2025"), ("test_date", "2025-13-01")])
def test_invalid_dates_are_rejected(client, field: str, value: str) -> None:
    response = client.get("/full-plan", params=_query(**{field: value}))
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid date format. Use YYYY-MM-DD format"}


@pytest.mark.parametrize("test_date", ["2025-10-06", "2025-10-01"])
def test_start_must_precede_test_date(client, test_date: str) -> None:
    response = client.get("/full-plan", params=_query(test_date=test_date))
    assert response.status_code == 400
    assert response.json() == {"error": "Start date must be before test date"}


def test_unknown_availability_days_are_reported(client) -> None:
    response = client.get("/full-plan", params=_query(availability="Mon,Funday,tue"))
    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid availability days",
        "invalid_days": ["Funday", "tue"],
        "valid_days": VALID_DAYS,
    }


def test_unknown_full_length_weekday_is_rejected(client) -> None:
    response = client.get("/full-plan", params=_query(fl_weekday="Saturday"))
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid full length weekday", "valid_days": VALID_DAYS}


def test_short_window_cannot_fit_full_lengths(client, seed) -> None:
    seed.topic("1A.1.1")
    response = client.get("/full-plan", params=_query(test_date="2025-10-16"))
    assert response.status_code == 422
    payload = response.json()
    assert payload["error"] == "Unable to place full-length exams"
    assert "only 3 days" in payload["message"]


def test_generation_failure_returns_server_error(client, seed) -> None:
    seed.topic("2A.1.1")
    response = client.get("/full-plan", params=_query(priorities="9Z"))
    assert response.status_code == 500
    payload = response.json()
    assert payload["error"] == "Internal server error"
    assert "No topics found for priorities: 9Z" in payload["message"]
