from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import (
    DataFetchFailedError,
    DepartmentNotFoundError,
    EmptyScopeError,
    PersistenceFailedError,
)
from app.models.schedule import Schedule, ScheduleStatus
from app.schemas.catalog import ClassroomOut
from app.schemas.generator import GenerationSettingsBase
from app.services.schedule_grid import WeekGrid
from app.services.schedule_service import (
    classrooms_in_scope,
    generate_schedule,
    reserved_bookings_for,
    resolve_generation_settings,
)

FAST = GenerationSettingsBase(population_size=16, generations=25, elite_count=2, random_seed=11)


def run(db, **kwargs):
    params = {"admin_id": "admin-1", "department": "Computer Science", "semester": 3, "settings": FAST}
    params.update(kwargs)
    return generate_schedule(db, **params)


def test_generate_persists_a_draft_with_metrics(db_session, seed_catalog):
    ids = seed_catalog()

    response = run(db_session)

    stored = db_session.get(Schedule, response.schedule.id)
    assert stored is not None
    assert stored.status == ScheduleStatus.draft
    assert stored.generated_by == "AI"
    assert set(stored.weekly_schedule) == {"monday", "tuesday", "wednesday", "thursday", "friday"}
    entries = [entry for day in stored.weekly_schedule.values() for entry in day]
    assert len(entries) == response.metrics.assigned_hours
    assert {entry["faculty"] for entry in entries} <= {"Dr. Rao", "Dr. Iyer"}
    lab_rooms = {entry["classroom"] for entry in entries if entry["subject"] == "Networks Lab"}
    assert lab_rooms <= {"CS-Lab"}
    assert response.metrics.total_conflicts == 0
    assert response.warnings == []
    assert response.fitness >= response.initial_fitness
    assert response.settings_used.random_seed == 11
    assert all(item["facultyId"] in {ids["Dr. Rao"], ids["Dr. Iyer"]} for item in stored.assignments)


def test_missing_lab_room_becomes_a_warning(db_session, seed_catalog):
    seed_catalog(with_lab=False)

    response = run(db_session)

    assert [(item.subject_name, item.reason) for item in response.warnings] == [
        ("Networks Lab", "no_eligible_classroom")
    ]
    assert response.metrics.unassigned_hours == 2
    entries = [entry for day in response.schedule.weekly_schedule.values() for entry in day]
    assert all(entry.subject != "Networks Lab" for entry in entries)
    # Other departments' labs stay out of scope.
    assert all(entry.classroom != "M-Lab" for entry in entries)


def test_regenerating_replaces_draft_but_keeps_published(db_session, seed_catalog):
    seed_catalog()
    first = run(db_session)
    second = run(db_session)

    drafts = db_session.execute(select(Schedule).where(Schedule.status == ScheduleStatus.draft)).scalars().all()
    assert [item.id for item in drafts] == [second.schedule.id]

    published = db_session.get(Schedule, second.schedule.id)
    published.status = ScheduleStatus.published
    db_session.commit()
    third = run(db_session)

    ids = {item.id for item in db_session.execute(select(Schedule)).scalars().all()}
    assert ids == {second.schedule.id, third.schedule.id}
    assert first.schedule.id not in ids


def test_unknown_department_is_rejected(db_session, seed_catalog):
    seed_catalog()
    with pytest.raises(DepartmentNotFoundError):
        run(db_session, department="Astronomy")


def test_scope_without_subjects_is_rejected(db_session, seed_catalog):
    seed_catalog()
    with pytest.raises(EmptyScopeError) as exc_info:
        run(db_session, semester=7)
    assert exc_info.value.details["missing"] == ["subjects"]


def test_catalog_read_failure_aborts_generation():
    db = MagicMock()
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    with pytest.raises(DataFetchFailedError):
        run(db)


def test_save_failure_is_reported_with_scope(db_session, seed_catalog, monkeypatch):
    seed_catalog()

    def fail_commit():
        raise OperationalError("COMMIT", {}, Exception("disk full"))

    monkeypatch.setattr(db_session, "commit", fail_commit)
    with pytest.raises(PersistenceFailedError) as exc_info:
        run(db_session)
    assert exc_info.value.details == {"admin_id": "admin-1", "department": "Computer Science", "semester": 3}


def test_other_semesters_reserve_their_faculty(db_session, seed_catalog):
    ids = seed_catalog()
    grid = WeekGrid.from_definition()
    other = Schedule(
        admin_id="admin-1",
        department="Computer Science",
        semester=5,
        weekly_schedule={},
        assignments=[
            {
                "day": "monday",
                "startTime": slot.start_time,
                "endTime": slot.end_time,
                "subjectId": "other",
                "facultyId": ids["Dr. Rao"],
                "classroomId": ids["A-101"],
            }
            for slot in grid.slots
        ],
        status=ScheduleStatus.published,
    )
    db_session.add(other)
    db_session.commit()

    reserved = reserved_bookings_for([other], grid)
    assert reserved.faculty[(0, 0)] == [ids["Dr. Rao"]]
    assert (1, 0) not in reserved.faculty

    response = run(db_session)
    monday = response.schedule.weekly_schedule["monday"]
    assert all(entry.faculty != "Dr. Rao" and entry.classroom != "A-101" for entry in monday)


def test_shared_rooms_and_own_labs_are_in_scope():
    rooms = [
        ClassroomOut(id="1", name="Lecture", department="Physics"),
        ClassroomOut(id="2", name="Own lab", department="CSE", is_lab=True),
        ClassroomOut(id="3", name="Foreign lab", department="Physics", is_lab=True),
        ClassroomOut(id="4", name="Open lab", is_lab=True),
    ]
    assert [room.id for room in classrooms_in_scope(rooms, "CSE")] == ["1", "2", "4"]


def test_runtime_defaults_fill_unset_settings(monkeypatch):
    from app.services import schedule_service

    fake = MagicMock(generation_random_seed=99, generation_workers=3, generation_deadline_seconds=12.5)
    monkeypatch.setattr(schedule_service, "get_settings", lambda: fake)

    resolved = resolve_generation_settings(GenerationSettingsBase(random_seed=4))

    assert resolved.random_seed == 4
    assert resolved.workers == 3
    assert resolved.deadline_seconds == 12.5
