from app.models.schedule import ScheduleStatus
from app.schemas.catalog import ClassroomOut, FacultyOut, SubjectOut
from app.services.schedule_grid import Assignment, WeekGrid
from app.services.schedule_materializer import materialize

SUBJECTS = [SubjectOut(id="s1", name="Algorithms", department="CSE", semester=3)]
FACULTY = [FacultyOut(id="f1", name="Dr. Rao", department="CSE")]
CLASSROOMS = [ClassroomOut(id="r1", name="A-101")]


def render(candidate, grid):
    return materialize(
        candidate,
        grid,
        admin_id="admin-1",
        department="CSE",
        semester=3,
        subjects=SUBJECTS,
        faculty=FACULTY,
        classrooms=CLASSROOMS,
    )


def test_materialized_schedule_uses_lowercase_days_and_names():
    grid = WeekGrid.from_definition()
    candidate = grid.empty_candidate()
    candidate.set(0, 4, Assignment("s1", "f1", "r1"))
    candidate.set(0, 1, Assignment("s1", "f1", "r1"))

    schedule = render(candidate, grid)

    assert list(schedule.weekly_schedule) == ["monday", "tuesday", "wednesday", "thursday", "friday"]
    assert schedule.weekly_schedule["monday"] == [
        {"startTime": "10:00", "endTime": "11:00", "subject": "Algorithms", "faculty": "Dr. Rao", "classroom": "A-101"},
        {"startTime": "14:00", "endTime": "15:00", "subject": "Algorithms", "faculty": "Dr. Rao", "classroom": "A-101"},
    ]
    assert schedule.weekly_schedule["friday"] == []
    assert schedule.status == ScheduleStatus.draft
    assert schedule.generated_by == "AI"
    assert schedule.assignments[0]["facultyId"] == "f1"


def test_materialize_is_idempotent():
    grid = WeekGrid.from_definition()
    candidate = grid.empty_candidate()
    candidate.set(2, 0, Assignment("s1", "f1", "r1"))
    candidate.set(3, 5, Assignment("s1", "f1", "r1"))
    snapshot = candidate.clone()

    assert render(candidate, grid) == render(candidate, grid)
    assert candidate == snapshot


def test_cells_pointing_at_unknown_records_are_skipped():
    grid = WeekGrid.from_definition()
    candidate = grid.empty_candidate()
    candidate.set(0, 0, Assignment("s1", "f-missing", "r1"))

    schedule = render(candidate, grid)

    assert schedule.weekly_schedule["monday"] == []
    assert schedule.assignments == []
