from __future__ import annotations

from dataclasses import dataclass, field

from app.models.schedule import ScheduleStatus
from app.schemas.catalog import ClassroomOut, FacultyOut, SubjectOut
from app.services.schedule_grid import Candidate, WeekGrid

GENERATED_BY = "AI"


@dataclass
class MaterializedSchedule:
    admin_id: str
    department: str
    semester: int
    weekly_schedule: dict[str, list[dict]]
    assignments: list[dict] = field(default_factory=list)
    status: ScheduleStatus = ScheduleStatus.draft
    generated_by: str = GENERATED_BY


def materialize(
    candidate: Candidate,
    grid: WeekGrid,
    *,
    admin_id: str,
    department: str,
    semester: int,
    subjects: list[SubjectOut],
    faculty: list[FacultyOut],
    classrooms: list[ClassroomOut],
) -> MaterializedSchedule:
    """Translate a candidate into the persisted weekly layout.

    Every grid day gets a key (lowercase day name), even when nothing is
    scheduled on it. Entries are ordered by slot. Cells that point at an id
    missing from the catalog are skipped.
    """
    subject_names = {item.id: item.name for item in subjects}
    faculty_names = {item.id: item.name for item in faculty}
    classroom_names = {item.id: item.name for item in classrooms}

    weekly_schedule: dict[str, list[dict]] = {day.lower(): [] for day in grid.days}
    assignments: list[dict] = []
    for day_index, slot_index, assignment in candidate.occupied():
        subject = subject_names.get(assignment.subject_id)
        teacher = faculty_names.get(assignment.faculty_id)
        room = classroom_names.get(assignment.classroom_id)
        if subject is None or teacher is None or room is None:
            continue
        day = grid.days[day_index].lower()
        slot = grid.slots[slot_index]
        weekly_schedule[day].append(
            {
                "startTime": slot.start_time,
                "endTime": slot.end_time,
                "subject": subject,
                "faculty": teacher,
                "classroom": room,
            }
        )
        assignments.append(
            {
                "day": day,
                "startTime": slot.start_time,
                "endTime": slot.end_time,
                "subjectId": assignment.subject_id,
                "facultyId": assignment.faculty_id,
                "classroomId": assignment.classroom_id,
            }
        )

    return MaterializedSchedule(
        admin_id=admin_id,
        department=department,
        semester=semester,
        weekly_schedule=weekly_schedule,
        assignments=assignments,
    )
