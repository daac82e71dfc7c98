from __future__ import annotations

from datetime import date, timedelta
from typing import List

import pytest

from mcat_planner.models import FullLengthDay, ScheduleRequest, StudyDay, Topic, resource_uid
from mcat_planner.repositories.used_resources import used_resources
from mcat_planner.schedule_generator import SCHEDULE_ID_PREFIX, ScheduleGenerator, new_schedule_id
from mcat_planner.telemetry import TelemetryEvent, register_listener

START = date(2025, 10, 6)
EXAM = date(2025, 12, 15)


def _request(priorities: List[str], **overrides) -> ScheduleRequest:  # type: ignore[no-untyped-def]
    payload = {
        "start_date": START,
        "test_date": EXAM,
        "priorities": priorities,
        "availability": ["Mon", "Tue", "Thu", "Fri", "Sat"],
        "fl_weekday": "Sat",
    }
    payload.update(overrides)
    return ScheduleRequest(**payload)


def _seed_topic_material(seed, key: str, *, high_yield: bool = True) -> None:  # type: ignore[no-untyped-def]
    seed.topic(key, high_yield=high_yield)
    seed.kaplan(key, f"Kaplan {key}")
    seed.khan(key, f"Video {key} a")
    seed.khan(key, f"Video {key} b")
    seed.khan(key, f"Article {key}", "Articles", minutes=10)
    seed.khan(key, f"KA Discretes {key}", "Discrete Practice Questions", minutes=30)
    seed.jack_westin(key, f"JW Discretes {key}", "fundamental_discrete", minutes=30)
    seed.jack_westin(key, f"Passage {key} one")
    seed.jack_westin(key, f"Passage {key} two")
    seed.uworld(key, f"UWorld {key}")


def _seed_catalog(seed) -> None:  # type: ignore[no-untyped-def]
    for key in ("1A.1.1", "1A.1.2", "1B.1.1", "1B.2.1"):
        _seed_topic_material(seed, key)
    _seed_topic_material(seed, "1A.3.1", high_yield=False)
    for index in range(1, 9):
        seed.cars_passage(f"CARS Passage {index}")
    for index in range(1, 5):
        seed.aamc(f"Section Bank Pack {index}", pack_name=f"Section Bank {index % 2}")
        seed.aamc(f"CARS Question Pack Vol {index}")


def test_reference_calendar_layout(session, seed) -> None:
    _seed_catalog(seed)
    events: List[TelemetryEvent] = []
    register_listener(events.append)

    response = ScheduleGenerator(session, "schedule_reference").generate(_request(["1A", "1B"]))

    assert response.metadata.model_dump() == {
        "total_days": 70,
        "study_days": 50,
        "break_days": 20,
        "phase_1_days": 15,
        "phase_2_days": 15,
        "phase_3_days": 14,
        "full_length_days": 6,
    }
    days = response.schedule
    assert [day.date for day in days] == [START + timedelta(days=offset) for offset in range(70)]

    full_lengths = [day for day in days if isinstance(day, FullLengthDay)]
    assert [(day.date, day.name, day.provider) for day in full_lengths] == [
        (date(2025, 10, 11), "FL #1", "AAMC"),
        (date(2025, 10, 18), "FL #2", "AAMC"),
        (date(2025, 10, 25), "FL #3", "AAMC"),
        (date(2025, 11, 1), "FL #4", "AAMC"),
        (date(2025, 11, 8), "FL #5", "AAMC"),
        (date(2025, 11, 15), "FL #6", "AAMC"),
    ]

    study_days = [day for day in days if isinstance(day, StudyDay)]
    assert [day.phase for day in study_days] == [1] * 15 + [2] * 15 + [3] * 14
    assert all(0 <= day.total_resource_minutes <= 240 for day in study_days)
    assert all(day.written_review_minutes == 60 for day in study_days)

    generated = [event for event in events if event.name == "schedule_generated"]
    assert len(generated) == 1
    assert generated[0].payload["strategy"] == "balanced"


def test_full_lengths_off_the_study_week_count_as_breaks(session, seed) -> None:
    seed.topic("1A.1.1")
    response = ScheduleGenerator(session).generate(
        _request(["1A"], availability=["Mon", "Tue", "Wed", "Thu", "Fri"])
    )

    metadata = response.metadata
    assert (metadata.study_days, metadata.break_days, metadata.full_length_days) == (50, 20, 6)
    assert metadata.break_days == metadata.total_days - metadata.study_days
    assert (metadata.phase_1_days, metadata.phase_2_days, metadata.phase_3_days) == (17, 17, 16)
    planned = [day for day in response.schedule if isinstance(day, StudyDay)]
    assert len(planned) == 50


def test_phase_two_keeps_exactly_two_cars_passages(session, seed) -> None:
    _seed_catalog(seed)
    response = ScheduleGenerator(session).generate(_request(["1A", "1B"]))
    phase_two = [day for day in response.schedule if isinstance(day, StudyDay) and day.phase == 2]
    assert phase_two
    assert all(len(day.blocks["cars"]) == 2 for day in phase_two)


def test_topic_material_is_not_repeated_while_supply_lasts(session, seed) -> None:
    _seed_catalog(seed)
    response = ScheduleGenerator(session).generate(_request(["1A", "1B"]))
    phase_one = [day for day in response.schedule if isinstance(day, StudyDay) and day.phase == 1]

    # Each high-yield topic carries one Kaplan section; the first four days anchor on each once.
    first_sections = [day.blocks["science_content"][0].title for day in phase_one[:4]]
    assert first_sections == ["Kaplan 1A.1.1", "Kaplan 1B.1.1", "Kaplan 1A.1.2", "Kaplan 1B.2.1"]
    for day in phase_one:
        assert len({item.title for item in day.blocks["cars"]}) == len(day.blocks["cars"])


def test_ledger_rows_are_unique_and_scoped_to_run(session, seed) -> None:
    _seed_catalog(seed)
    first = ScheduleGenerator(session, new_schedule_id())
    second = ScheduleGenerator(session, new_schedule_id())
    first.generate(_request(["1A"]))
    second.generate(_request(["1A"]))

    first_used = used_resources.get(session, first.schedule_id)
    second_used = used_resources.get(session, second.schedule_id)
    assert first_used
    assert first_used == second_used


def test_ledger_only_grows_during_a_run(session, seed, monkeypatch) -> None:
    _seed_catalog(seed)
    generator = ScheduleGenerator(session)
    snapshots = []
    plan_day = generator.planner.plan_day

    def recording(*args, **kwargs):  # type: ignore[no-untyped-def]
        study_day = plan_day(*args, **kwargs)
        snapshots.append(generator.manager.used_resources())
        return study_day

    monkeypatch.setattr(generator.planner, "plan_day", recording)
    generator.generate(_request(["1A", "1B"]))

    assert len(snapshots) == 44
    assert all(earlier <= later for earlier, later in zip(snapshots, snapshots[1:]))
    assert snapshots[0]
    assert len(snapshots[-1]) > len(snapshots[0])


def test_missing_topics_are_a_configuration_error(session, seed) -> None:
    _seed_catalog(seed)
    with pytest.raises(ValueError, match="No topics found"):
        ScheduleGenerator(session).generate(_request(["9Z"]))


def test_topics_without_material_still_produce_days(session, seed) -> None:
    seed.topic("4A.1.1")
    response = ScheduleGenerator(session).generate(_request(["4A"]))
    study_days = [day for day in response.schedule if isinstance(day, StudyDay)]
    assert len(study_days) == 44
    assert all(day.total_resource_minutes == 0 for day in study_days)


def test_new_schedule_ids_are_unique() -> None:
    first, second = new_schedule_id(), new_schedule_id()
    assert first.startswith(SCHEDULE_ID_PREFIX)
    assert first != second


def _topics(generator: ScheduleGenerator, priorities: List[str]) -> List[Topic]:
    return generator.manager.topics_by_priority(priorities)


def test_anchor_rotation_alternates_categories(session, seed) -> None:
    _seed_catalog(seed)
    generator = ScheduleGenerator(session)
    topics = _topics(generator, ["1A", "1B"])

    anchors = [generator.select_anchor(topics, index, 1, ["1A", "1B"], set()).key for index in range(4)]
    assert anchors == ["1A.1.1", "1B.1.1", "1A.1.2", "1B.2.1"]
    assert generator.category_cursors == {"1A": 0, "1B": 0}


def test_anchor_skips_topics_without_supply(session, seed) -> None:
    _seed_catalog(seed)
    generator = ScheduleGenerator(session)
    topics = _topics(generator, ["1A"])
    manager = generator.manager
    used = {resource_uid(r) for r in manager.kaplan_resources("1A.1.1")}
    used.update(resource_uid(r) for r in manager.discrete_resources("1A.1.1"))

    anchor = generator.select_anchor(topics, 0, 1, ["1A"], used)
    assert anchor.key == "1A.1.2"


def test_exhausted_category_returns_cursor_topic(session, seed) -> None:
    seed.topic("2A.1.1")
    seed.topic("2A.1.2")
    events: List[TelemetryEvent] = []
    register_listener(events.append)
    generator = ScheduleGenerator(session)
    topics = _topics(generator, ["2A"])

    anchor = generator.select_anchor(topics, 0, 2, ["2A"], set())
    assert anchor.key == "2A.1.1"
    assert [event.name for event in events] == ["anchor_supply_exhausted"]


def test_low_yield_only_category_still_rotates(session, seed) -> None:
    _seed_topic_material(seed, "3A.1.1", high_yield=False)
    _seed_topic_material(seed, "3A.1.2", high_yield=False)
    generator = ScheduleGenerator(session)
    topics = _topics(generator, ["3A"])

    keys = [generator.select_anchor(topics, index, 1, ["3A"], set()).key for index in range(3)]
    assert keys == ["3A.1.1", "3A.1.2", "3A.1.1"]


def test_phase_three_rotates_over_all_topics(session, seed) -> None:
    _seed_catalog(seed)
    generator = ScheduleGenerator(session)
    topics = _topics(generator, ["1A", "1B"])
    picks = [generator.select_anchor(topics, index, 3, ["1A", "1B"], set()).key for index in range(len(topics))]
    assert picks == [topic.key for topic in topics]
    assert "1A.3.1" in picks
